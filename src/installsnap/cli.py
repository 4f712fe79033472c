"""Command line entrypoint: run, list and clean fixtures."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from installsnap.config import HarnessConfig, load_config
from installsnap.discovery import discover_fixtures
from installsnap.errors import SnapshotError
from installsnap.lockfile import LockfileGate
from installsnap.observability import StructuredLogger
from installsnap.orchestrator import Orchestrator


def cmd_run(args: argparse.Namespace) -> int:
    config = _config(args)
    if args.timeout is not None:
        config = config.replace(timeout=args.timeout)
    logger = StructuredLogger(stream=sys.stderr, echo_level="info" if args.verbose else "warning")
    orchestrator = Orchestrator(config, logger=logger)
    suite = orchestrator.run_root(args.root, args.fixture)

    for result in suite.results:
        print(result.message())
    print(suite.summary())

    if args.log_json:
        logger.to_json_lines(args.log_json)
    if args.report_json:
        report_path = Path(args.report_json)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(
            json.dumps(suite.to_dict(), indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
    return 0 if suite.passed else 1


def cmd_list(args: argparse.Namespace) -> int:
    config = _config(args)
    for fixture in discover_fixtures(args.root, config):
        flags = []
        if fixture.keep_lockfile:
            flags.append("keep-lockfile")
        if fixture.skip_tree_check:
            flags.append("skip-tree-check")
        if fixture.skip_reason:
            flags.append(f"skipped: {fixture.skip_reason}")
        suffix = f"  ({', '.join(flags)})" if flags else ""
        print(f"{fixture.name}{suffix}")
    return 0


def cmd_clean(args: argparse.Namespace) -> int:
    config = _config(args)
    gate = LockfileGate()
    removed = 0
    for fixture in discover_fixtures(args.root, config):
        if gate.reset(fixture, force=True):
            print(f"removed {fixture.lockfile_path}")
            removed += 1
    print(f"{removed} lockfile(s) removed")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="installsnap",
        description="Golden snapshot harness for an install/bundle CLI",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Run fixtures and compare against golden files")
    run_p.add_argument("root", type=Path, help="Fixtures root directory")
    run_p.add_argument(
        "--fixture",
        action="append",
        default=[],
        help="Only run this fixture (repeatable)",
    )
    run_p.add_argument("--timeout", type=float, help="Per-fixture timeout in seconds")
    run_p.add_argument("--log-json", type=Path, help="Write structured logs as JSON lines")
    run_p.add_argument("--report-json", type=Path, help="Write the suite report as JSON")
    run_p.add_argument("-v", "--verbose", action="store_true", help="Also echo info logs to stderr")
    run_p.set_defaults(func=cmd_run)

    list_p = sub.add_parser("list", help="List fixtures and their flags")
    list_p.add_argument("root", type=Path, help="Fixtures root directory")
    list_p.set_defaults(func=cmd_list)

    clean_p = sub.add_parser("clean", help="Remove generated lockfiles, retained ones too")
    clean_p.add_argument("root", type=Path, help="Fixtures root directory")
    clean_p.set_defaults(func=cmd_clean)

    for sub_p in (run_p, list_p, clean_p):
        sub_p.add_argument("--config", type=Path, help="JSON harness config file")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except SnapshotError as exc:
        print(f"[{exc.code}] {exc}", file=sys.stderr)
        return 2


def _config(args: argparse.Namespace) -> HarnessConfig:
    if args.config is not None:
        return load_config(args.config)
    return HarnessConfig()
