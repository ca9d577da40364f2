"""CLI entrypoints for clawgate commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .config import ClawGateConfig, ConfigError, load_config
from .logging import configure_logging, get_logger
from .models import ValidationResult
from .orchestrator import Orchestrator
from .rules.tables import DIMENSIONS
from .scanning import strip_comments

EXIT_REJECTED = 1
EXIT_ERROR = 2

_logger = get_logger("cli")


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


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .clawgate.yml or its directory (defaults to the current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clawgate",
        description="Validate clawmachine game submissions before they are published.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug-level logs to this file.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate HTML, script or zip bundle submissions.",
    )
    _add_verbose_option(validate_parser, suppress_default=True)
    _add_config_option(validate_parser)
    validate_parser.add_argument("paths", nargs="+", type=Path, help="Submission files to check.")
    validate_parser.add_argument(
        "--format",
        choices=("html", "script"),
        default=None,
        help="Declared format for non-archive files (defaults to html).",
    )
    validate_parser.add_argument(
        "--dimensions",
        choices=DIMENSIONS,
        default="2d",
        help="Declared rendering dimensions.",
    )
    validate_parser.add_argument("--tier", default=None, help="Asset bundle tier.")
    validate_parser.add_argument(
        "--lib",
        dest="libs",
        action="append",
        default=[],
        metavar="KEY",
        help="Declared library key; repeat for several libraries.",
    )
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable results.",
    )
    validate_parser.add_argument(
        "--jobs",
        type=int,
        default=None,
        help="Number of submissions validated in parallel.",
    )
    validate_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-submission time budget in seconds.",
    )

    strip_parser = subparsers.add_parser(
        "strip-comments",
        help="Print a script with its comments removed.",
    )
    _add_verbose_option(strip_parser, suppress_default=True)
    strip_parser.add_argument("path", type=Path, help="Script file to strip.")

    rules_parser = subparsers.add_parser(
        "rules",
        help="Show the active limits, deny-list and allowed APIs.",
    )
    _add_verbose_option(rules_parser, suppress_default=True)
    _add_config_option(rules_parser)
    rules_parser.add_argument("--json", action="store_true", help="Print the tables as JSON.")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP validation service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_config_option(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for clawgate commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "json", False)),
        service=args.command == "serve",
        log_file=args.log_file,
    )

    if args.command == "strip-comments":
        try:
            source = args.path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            parser.exit(EXIT_ERROR, f"Cannot read {args.path}: {exc}\n")
        sys.stdout.write(strip_comments(source))
        return

    try:
        config = load_config(args.config or Path.cwd())
    except ConfigError as exc:
        parser.exit(EXIT_ERROR, f"Invalid configuration: {exc}\n")

    if args.command == "validate":
        _run_validate(parser, args, config)
    elif args.command == "rules":
        _print_rules(config, as_json=bool(args.json))
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, config=config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(EXIT_ERROR, "Unknown command\n")


def _run_validate(
    parser: argparse.ArgumentParser, args: argparse.Namespace, config: ClawGateConfig
) -> None:
    submissions: List[Tuple[bytes, Dict[str, Any]]] = []
    metadata = {
        "format": args.format,
        "dimensions": args.dimensions,
        "tier": args.tier,
        "libs": list(args.libs),
    }
    for path in args.paths:
        try:
            submissions.append((path.read_bytes(), metadata))
        except OSError as exc:
            parser.exit(EXIT_ERROR, f"Cannot read {path}: {exc}\n")

    orchestrator = Orchestrator(
        config.rules,
        timeout_seconds=args.timeout if args.timeout is not None else config.timeout_seconds,
        max_workers=args.jobs if args.jobs is not None else config.max_workers,
    )
    results = orchestrator.validate_many(submissions)

    if args.json:
        report = [
            {"path": str(path), "error_code": result.error_code, **result.to_dict()}
            for path, result in zip(args.paths, results)
        ]
        print(json.dumps(report, indent=2))
    else:
        for path, result in zip(args.paths, results):
            _print_result(path, result)

    unfinished = [(path, result) for path, result in zip(args.paths, results) if result.incomplete]
    if unfinished:
        _logger.debug("%d of %d submission(s) did not finish", len(unfinished), len(results))
        message = "".join(
            f"clawgate validate failed for {path}: {result.incomplete}\n" for path, result in unfinished
        )
        parser.exit(EXIT_ERROR, message)
    if not all(result.ok for result in results):
        parser.exit(EXIT_REJECTED)


def _print_result(path: Path, result: ValidationResult) -> None:
    if result.incomplete is not None:
        print(f"ERROR {path}")
        return
    print(f"{'PASS' if result.ok else 'FAIL'} {path}")
    for issue in result.errors:
        print(f"  error   {issue.code.value}: {issue.message}")
    for issue in result.warnings:
        print(f"  warning {issue.code.value}: {issue.message}")


def _print_rules(config: ClawGateConfig, *, as_json: bool) -> None:
    summary = config.rules.summary()
    if as_json:
        print(json.dumps(summary, indent=2))
        return
    print(f"Rule tables {summary['version']}")
    print("Size limits (bytes):")
    for key, value in summary["size_limits"].items():
        print(f"  {key}: {value}")
    print("Bundle tiers (bytes):")
    for key, value in summary["tier_budgets"].items():
        print(f"  {key}: {value}")
    print("Asset limits (bytes):")
    for key, value in summary["asset_limits"].items():
        print(f"  {key}: {value}")
    print(f"Allowed script host: {summary['cdn_host']}")
    print("Libraries:")
    for key, url in summary["libraries"].items():
        print(f"  {key}: {url}")
    print(f"Required methods: {', '.join(summary['required_methods'])}")
    print("Forbidden APIs:")
    for rule in summary["forbidden_rules"]:
        print(f"  [{rule['category']}] {rule['token']}")
    print(f"Allowed APIs: {', '.join(summary['allowed_apis'])}")


if __name__ == "__main__":
    main(sys.argv[1:])
