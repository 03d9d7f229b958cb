"""Command line interface for cachediff."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Optional

from .config import CONFIG_ENV_VAR, default_config
from .engine import compile_diff, descriptor_for, generate_source
from .exceptions import CacheDiffError, DiagnosticReport
from .runner import build_instance, load_document, load_target, run_golden

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cachediff",
        description="Explain why a cached artifact must be invalidated",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cachediff check example:Metadata
  cachediff source example:Metadata
  cachediff diff example:Metadata previous.yaml current.yaml
  cachediff golden cases.yaml --report report.json
        """
    )
    parser.add_argument("-c", "--config", help="Path to YAML/JSON config file")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress console output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser("check", help="Validate a decorated type")
    check.add_argument("target", help="module:Class")

    source = commands.add_parser("source", help="Print the generated diff procedure")
    source.add_argument("target", help="module:Class")

    diff = commands.add_parser("diff", help="Diff two records loaded from files")
    diff.add_argument("target", help="module:Class")
    diff.add_argument("previous", help="YAML/JSON file with the cached record")
    diff.add_argument("current", help="YAML/JSON file with the current record")

    golden = commands.add_parser("golden", help="Run a golden-output case file")
    golden.add_argument("cases", help="YAML/JSON file with golden cases")
    golden.add_argument("-r", "--report", help="Path to output JSON report file")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Types imported below are decorated with this config
    if args.config:
        os.environ[CONFIG_ENV_VAR] = args.config
        default_config.cache_clear()

    try:
        config = default_config()
    except CacheDiffError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    level = "DEBUG" if args.verbose else config.log_level.value
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return _run(args)
    except DiagnosticReport as report:
        print(report.render(), file=sys.stderr)
        return EXIT_INVALID if args.command == "check" else EXIT_ERROR
    except (CacheDiffError, ValueError, ImportError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def _run(args) -> int:
    if args.command == "golden":
        report = run_golden(args.cases, print_report=not args.quiet)
        if args.report:
            with open(args.report, 'w') as f:
                json.dump(report.to_dict(), indent=2, fp=f)
            if not args.quiet:
                print(f"\nReport saved to: {args.report}")
        return EXIT_VALID if report.failed == 0 else EXIT_INVALID

    cls = load_target(args.target)

    if args.command == "check":
        compile_diff(cls)
        descriptor = descriptor_for(cls)
        if not args.quiet:
            print(f"{descriptor.type_id}: {len(descriptor.fields)} field(s) compared")
        return EXIT_VALID

    if args.command == "source":
        print(generate_source(cls), end="")
        return EXIT_VALID

    previous = build_instance(cls, load_document(args.previous))
    current = build_instance(cls, load_document(args.current))
    differences = current.diff(previous)
    if not args.quiet:
        for difference in differences:
            print(difference)
    return EXIT_INVALID if differences else EXIT_VALID


if __name__ == "__main__":
    sys.exit(main())
