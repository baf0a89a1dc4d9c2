"""
Command-line entry point for zg.

Search a git working tree for a regular expression and print matches with
the most recently and frequently edited code first.

Exit status: 0 if any line matched, 1 if none did, 2 on error.
"""

import argparse
import sys

from zg import __version__
from zg.core.errors import ZgError
from zg.facade import FrecencyGrep


def tool_output(*messages):
    """Print informational messages."""
    print(*messages, file=sys.stderr)


def tool_warning(message):
    """Print warning messages."""
    print(f"Warning: {message}", file=sys.stderr)


def tool_error(message):
    """Print error messages."""
    print(f"Error: {message}", file=sys.stderr)


def write_output(text: str):
    """Write rendered matches to stdout.

    File names that are not valid UTF-8 carry surrogate escapes; those are
    written back as their original bytes.
    """
    try:
        sys.stdout.write(text)
    except UnicodeEncodeError:
        encoding = getattr(sys.stdout, "encoding", None) or "utf-8"
        sys.stdout.flush()
        sys.stdout.buffer.write(text.encode(encoding, "surrogateescape"))
    sys.stdout.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zg",
        description="Search frecently edited code in a git repository.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s 'def \\w+_handler'          # Recently edited handlers first
  %(prog)s TODO --score                # Show frecency scores
  %(prog)s -i config --max-commits 2000  # Bound the history walk
        """
    )

    parser.add_argument(
        "pattern",
        help="Regular expression pattern"
    )

    parser.add_argument(
        "--score",
        action="store_true",
        help="Show frecency scores in output"
    )

    parser.add_argument(
        "--root",
        default=".",
        help="Directory to search (default: current directory)"
    )

    parser.add_argument(
        "-i", "--ignore-case",
        action="store_true",
        help="Case-insensitive matching"
    )

    parser.add_argument(
        "--max-commits",
        type=int,
        default=None,
        help="Stop the history walk after N commits (default: full history). "
             "Trades accuracy for speed on very large repositories."
    )

    parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="Number of search threads"
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.max_commits is not None and args.max_commits < 0:
        parser.error("--max-commits must be >= 0")
    if args.jobs is not None and args.jobs < 1:
        parser.error("--jobs must be >= 1")

    output_handlers = {
        'info': tool_output,
        'warning': tool_warning,
        'error': tool_error
    }

    options = {}
    if args.jobs is not None:
        options['workers'] = args.jobs

    color = not args.no_color and sys.stdout.isatty()

    searcher = FrecencyGrep(
        root=args.root,
        ignore_case=args.ignore_case,
        max_commits=args.max_commits,
        show_score=args.score,
        color=color,
        verbose=args.verbose,
        output_handler_funcs=output_handlers,
        **options
    )

    try:
        matches, report = searcher.search(args.pattern)
        if not matches:
            return 1

        write_output(searcher.render(matches, args.pattern))

        if args.verbose and not report.scored:
            tool_output(f"Printed {report.total_matches} unranked matches")
        return 0

    except BrokenPipeError:
        # Output closed early (e.g. piped into head)
        return 0
    except KeyboardInterrupt:
        tool_error("Interrupted by user")
        return 130
    except ZgError as e:
        tool_error(str(e))
        return 2
    except Exception as e:
        tool_error(f"Error during search: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
