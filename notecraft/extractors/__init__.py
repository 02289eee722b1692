"""Extraction sub-package: HTML clean-up, rule-based conversion and site strategies."""

from .generic import GenericExtractor
from .markdown import html_to_markdown, postprocess
from .preprocess import preprocess
from .rules import ConversionRule, RuleEngine, build_engine
from .skillbuilder import SkillBuilderExtractor

__all__ = [
    "ConversionRule",
    "GenericExtractor",
    "RuleEngine",
    "SkillBuilderExtractor",
    "build_engine",
    "html_to_markdown",
    "postprocess",
    "preprocess",
]
