"""Command-line front door for lazyjsonl.

Parses CLI options, configures logging, and resolves the target path.
Then dispatches into the interactive viewer or a print-and-exit mode.
"""

from __future__ import annotations

import argparse
import logging
import shutil
from pathlib import Path

from .runtime import config, run_pager
from .ui_theme import available_theme_names

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _default_render_size() -> tuple[int, int]:
    """Resolve default print-mode width and height from the terminal."""
    term = shutil.get_terminal_size((80, 24))
    return max(1, term.columns), max(1, term.lines - 1)


def configure_logging(log_file: Path | None) -> None:
    """Send package logs to ``log_file``; never to the terminal being drawn on."""
    if log_file is None:
        return
    logging.basicConfig(filename=str(log_file), level=logging.DEBUG, format=LOG_FORMAT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Browse very large JSON Lines files with a pretty view of the selected line."
    )
    parser.add_argument("path", nargs="?", default=None, help="Path to a .jsonl file.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument(
        "--nopager",
        action="store_true",
        help="Print the first screenful of numbered lines and exit.",
    )
    parser.add_argument(
        "--line",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Print the structured view of 1-based line N and exit.",
    )
    parser.add_argument(
        "--max-cols",
        type=_positive_int,
        default=None,
        help="Column width for --nopager output (default: terminal width).",
    )
    parser.add_argument(
        "--no-index-cache",
        action="store_true",
        help="Always rebuild the line-offset index instead of using the on-disk cache.",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Write debug logs to this file.")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch lazyjsonl.

    Without a path the interactive viewer starts empty and a file can be
    opened from its path prompt.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file)

    path: Path | None = None
    if args.path is not None:
        path = Path(args.path).expanduser()
        if not path.exists():
            raise SystemExit(f"Path not found: {path}")
        if not path.is_file():
            raise SystemExit(f"Not a file: {path}")
    elif args.nopager or args.line is not None:
        raise SystemExit("A file path is required with --nopager or --line.")

    columns, lines = _default_render_size()
    run_pager(
        path,
        theme_name=args.theme,
        no_color=args.no_color,
        nopager=args.nopager,
        line_number=args.line,
        max_cols=args.max_cols if args.max_cols is not None else columns,
        max_lines=lines,
        use_index_cache=config.load_index_cache_enabled() and not args.no_index_cache,
    )


if __name__ == "__main__":
    main()
