from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
import threading

from kt_style_lint.config import ConfigError, build_registry, load_config
from kt_style_lint.models import LintConfig
from kt_style_lint.pipeline import (
    EXIT_CANCELLED,
    EXIT_OK,
    EXIT_USAGE,
    CancellationToken,
    exit_code,
    lint_paths,
)
from kt_style_lint.registry import RegistryError
from kt_style_lint.reporting import STYLES, format_violations, summarize, write_report

logger = logging.getLogger("kt_style_lint")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kt-style",
        description="Check Kotlin sources against the Kotlin coding conventions",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser("check", help="Check files or directories")
    check_parser.add_argument("paths", nargs="+", help="Kotlin files or directories to check")
    check_parser.add_argument("--config", default=None, help="Config JSON path")
    check_parser.add_argument("--format", choices=STYLES, default="plain")
    check_parser.add_argument("--output", default=None, help="Write the report here instead of stdout")
    check_parser.add_argument("--jobs", type=int, default=None, help="Worker threads (default from config)")
    check_parser.add_argument("--timeout", type=float, default=None, help="Wall-clock budget in seconds")
    check_parser.add_argument("--max-file-size-bytes", type=int, default=None)
    check_parser.add_argument(
        "--include-exts",
        default=None,
        help="Comma-separated extensions to include, e.g. .kt,.kts",
    )
    check_parser.add_argument(
        "--exclude-dirs",
        default=None,
        help="Comma-separated directory names to skip",
    )
    check_parser.add_argument("-v", "--verbose", action="store_true")

    rules_parser = subparsers.add_parser("rules", help="List the effective rule set")
    rules_parser.add_argument("--config", default=None, help="Config JSON path")
    rules_parser.add_argument("--format", choices=["plain", "json"], default="plain")
    rules_parser.add_argument("-v", "--verbose", action="store_true")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = _apply_arguments(load_config(args.config), args)
        registry = build_registry(config)
    except (ConfigError, RegistryError) as exc:
        parser.error(str(exc))
        return EXIT_USAGE

    if args.command == "rules":
        payload = [
            {"id": rule.id, "severity": rule.severity.value, "description": rule.description}
            for rule in registry.all()
        ]
        if args.format == "json":
            print(json.dumps(payload, indent=2, ensure_ascii=True))
        else:
            for item in payload:
                print(f"{item['id']:<22} {item['severity']:<8} {item['description']}")
        return EXIT_OK

    if args.command == "check":
        token = CancellationToken()
        timer = None
        if args.timeout:
            timer = threading.Timer(args.timeout, token.cancel)
            timer.daemon = True
            timer.start()

        try:
            batch = lint_paths(args.paths, registry, config, jobs=args.jobs, cancel_token=token)
        finally:
            if timer is not None:
                timer.cancel()

        violations = batch.violations
        text = format_violations(violations, args.format)
        if args.output:
            write_report(args.output, text)
        else:
            sys.stdout.write(text)

        logger.info("Summary: %s", json.dumps({**batch.to_dict(), **summarize(violations)}))
        if batch.cancelled:
            logger.warning("Time budget exhausted: %d file(s) not checked", batch.files_skipped)
            return EXIT_CANCELLED
        return exit_code(violations)

    parser.error(f"Unsupported command: {args.command}")
    return EXIT_USAGE


def _apply_arguments(config: LintConfig, args: argparse.Namespace) -> LintConfig:
    changes: dict = {}
    if getattr(args, "include_exts", None):
        changes["include_exts"] = tuple(
            item.strip().lower() for item in args.include_exts.split(",") if item.strip()
        )
    if getattr(args, "exclude_dirs", None):
        changes["exclude_dirs"] = tuple(item.strip() for item in args.exclude_dirs.split(",") if item.strip())
    if getattr(args, "max_file_size_bytes", None) is not None:
        if args.max_file_size_bytes <= 0:
            raise ConfigError("'max_file_size_bytes' must be positive")
        changes["max_file_size_bytes"] = args.max_file_size_bytes
    return dataclasses.replace(config, **changes) if changes else config


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


if __name__ == "__main__":
    raise SystemExit(main())
