"""CLI entrypoints for codedocs commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .config import CodeDocsConfig, ConfigError, load_config
from .errors import InvalidRepositoryURL
from .logging import configure_logging
from .models import JobStatus
from .pipeline import JobService


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
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


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codedocs",
        description="Generate README documentation for GitHub repositories.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .codedocs.yml file or the directory containing it.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument(
        "--host", default=None, help="Interface to bind (default from config)."
    )
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Port to bind (default from config)."
    )

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate a README for one repository and exit.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument("url", help="GitHub repository URL.")
    generate_parser.add_argument(
        "--context",
        default=None,
        help="Extra notes about the project to include in the prompt.",
    )
    generate_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the README to this path instead of standard output.",
    )

    return parser


def _build_service(config: CodeDocsConfig) -> JobService:
    return JobService.from_config(config)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for codedocs commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        config = load_config(args.config or Path.cwd())
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(args.host, args.port, config)
    elif args.command == "generate":
        service = _build_service(config)
        try:
            job = asyncio.run(service.run_job(args.url, args.context))
        except InvalidRepositoryURL as exc:
            parser.exit(1, f"{exc}\n")
        if job.status is not JobStatus.COMPLETED or job.result is None:
            parser.exit(
                1, f"codedocs generate failed: {job.error}\nRun with --verbose for more details.\n"
            )
        if args.output is None:
            sys.stdout.write(job.result.document)
        else:
            args.output.write_text(job.result.document, encoding="utf-8")
            print(f"README written to {_relativize(args.output.resolve())}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
