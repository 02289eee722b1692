"""CLI entry point: python -m notecraft (--file PAGE.html | --url URL) [options]"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from notecraft.errors import NotecraftError
from notecraft.items import ExportMode, ExtractedContent
from notecraft.notes import note_filename, render_note
from notecraft.profiles import Profile, apply_profile, load_profile
from notecraft.query import extract, fetch_html

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notecraft",
        description=(
            "Convert a web page into a structured Markdown note.\n"
            "Course pages get objectives and study sections, everything else a clean article."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", metavar="PATH",
                        help="Read HTML from a local file")
    source.add_argument("--url", metavar="URL",
                        help="Fetch HTML from a URL")
    parser.add_argument("--source-url", default="", metavar="URL",
                        help="Page URL to assume for --file (strategy choice and frontmatter)")
    parser.add_argument("--mode", default=None,
                        choices=[m.value for m in ExportMode],
                        help="Export mode (default: profile value, else per strategy)")
    parser.add_argument("--profile", default=None, metavar="YAML",
                        help="YAML profile with default and per-domain settings")
    parser.add_argument("--out", default=None, metavar="PATH",
                        help="Write the note to PATH (a directory gets a templated file name); "
                             "default: stdout")
    parser.add_argument("--no-frontmatter", action="store_true", default=False,
                        help="Omit the YAML frontmatter block")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: WARNING)")
    return parser


def _configure_logging(level: str, console: Console) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _read_source(args: argparse.Namespace) -> tuple[str, str]:
    """Return (html, url) for the requested source."""
    if args.url:
        return fetch_html(args.url), args.url
    return Path(args.file).read_text(encoding="utf-8", errors="replace"), args.source_url


def _output_path(out: str, content: ExtractedContent, profile: Profile) -> Path:
    path = Path(out)
    # Trailing separator or no suffix: a directory, created on write
    if path.is_dir() or out.endswith(("/", "\\")) or not path.suffix:
        return path / note_filename(content.title, profile.filename_template)
    return path


def _print_summary(console: Console, content: ExtractedContent, target: Path | None) -> None:
    meta = content.metadata
    console.print(f"  [bold]Title      :[/bold] [cyan]{content.title}[/cyan]")
    console.print(f"  [bold]Extractor  :[/bold] {meta.get('extractor', '-')}")
    console.print(f"  [bold]Mode       :[/bold] {meta.get('export_mode', '-')}")
    console.print(f"  [bold]Words      :[/bold] {meta.get('word_count', 0):,}")
    console.print(f"  [bold]Images     :[/bold] {len(content.images)}")
    console.print(f"  [bold]Tags       :[/bold] {', '.join(content.tags) or '-'}")
    if target is not None:
        console.print(f"  [bold]Written to :[/bold] [green]{target}[/green]")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    console = Console(stderr=True)
    _configure_logging(args.log_level, console)

    try:
        html, url = _read_source(args)
        profile = load_profile(args.profile, url) if args.profile else Profile()
        # A profile always names a mode; without one each strategy keeps its own
        mode = args.mode or (profile.export_mode if args.profile else None)
        content = apply_profile(extract(html, url, export_mode=mode), profile)
    except NotecraftError as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("Cannot read %s: %s", args.file, exc)
        return 1

    note = render_note(content, show_frontmatter=profile.show_frontmatter and not args.no_frontmatter)

    target: Path | None = None
    if args.out:
        target = _output_path(args.out, content, profile)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(note, encoding="utf-8")
        except OSError as exc:
            logger.error("Cannot write %s: %s", target, exc)
            return 1
    else:
        sys.stdout.write(note)

    _print_summary(console, content, target)
    return 0


if __name__ == "__main__":
    sys.exit(main())
