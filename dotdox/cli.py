"""CLI entrypoints for dotdox commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .builder import Builder
from .errors import DotdoxError
from .logging import configure_logging


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity and report unrecognized comments.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_source_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project directory holding .dotdox.yml (defaults to current directory).",
    )
    parser.add_argument(
        "-c",
        "--comments",
        action="append",
        default=[],
        metavar="FILE",
        help="JSON file of parsed comments; may be repeated. Overrides 'sources' in the config.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dotdox",
        description="Build an API reference from parsed source comments.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Index comments and render the API reference.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_source_options(build_parser)
    build_parser.add_argument(
        "--readme",
        help="README markdown rendered at the top of the reference.",
    )
    build_parser.add_argument(
        "-o",
        "--output",
        help="Write the reference here instead of printing it.",
    )
    build_parser.add_argument(
        "--include-private",
        action="store_true",
        help="Include entities tagged as private.",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Index comments and report references that never resolved.",
    )
    _add_verbose_option(check_parser, suppress_default=True)
    _add_source_options(check_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for dotdox commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    verbose = bool(args.verbose)
    configure_logging(
        verbose=verbose,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    builder = Builder()
    sources = [Path(item) for item in args.comments]

    try:
        config = builder.load_config(args.path, verbose=verbose)
    except DotdoxError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "build":
        if args.include_private:
            config.include_private = True
        try:
            outcome = builder.run_build(
                config,
                sources,
                readme=Path(args.readme) if args.readme else None,
                output=Path(args.output) if args.output else None,
            )
        except (DotdoxError, FileNotFoundError) as exc:
            parser.exit(1, f"dotdox build failed: {exc}\n")
        if outcome.path is None:
            sys.stdout.write(outcome.markdown)
        else:
            print(f"Reference written to {_relativize(outcome.path)}")
    elif args.command == "check":
        try:
            index = builder.index(config, sources)
        except (DotdoxError, FileNotFoundError) as exc:
            parser.exit(1, f"dotdox check failed: {exc}\n")
        unresolved = index.unresolved()
        if not unresolved:
            print("All references resolved")
            return
        for pending in unresolved:
            print(f"{pending.reference}: {pending.state}, waiting for {pending.waiting_for}")
        parser.exit(1, f"{len(unresolved)} unresolved references\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
