#!/usr/bin/env python3

import argparse
import asyncio
import json
import re
import sys
import uuid
from datetime import datetime
from pathlib import Path

from app_contract import AppContract
from config import load_settings
from errors import ConfigError, SuiteFormatError
from identity import IdentityFactory
from loader import dump_scenarios, load_scenarios
from models import SuiteResult
from report import archive_files, format_summary, log_to_csv, write_html_report
from runner import run_test_suite
from suites import SUITES, builtin_suite


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Auth / RBAC UI acceptance runner")
    parser.add_argument("--base-url", help="Base URL of the application under test (or BASE_URL)")
    parser.add_argument("--suite", default="all", choices=list(SUITES) + ["all"], help="Built-in suite to run")
    parser.add_argument("--scenarios", help="JSON or YAML scenario file to run instead of a built-in suite")
    parser.add_argument("--grep", help="Only run scenarios whose name matches this regex")
    parser.add_argument("--concurrency", type=int, default=1, help="Scenarios run in parallel, each in its own context")
    parser.add_argument("--run-id", help="Namespace mixed into generated emails/usernames (or RUN_ID)")
    parser.add_argument("--dry-run", action="store_true", help="Only write the resolved test cases, do not execute")
    parser.add_argument("--headful", action="store_true", help="Run browser headful for debugging")
    parser.add_argument("--verbose", action="store_true", help="Print step-by-step logs")
    parser.add_argument("--runs-dir", default="data/runs", help="Where run artifacts are written")
    return parser


def select_scenarios(args, identities: IdentityFactory):
    if args.scenarios:
        scenarios = load_scenarios(args.scenarios, identities)
    else:
        scenarios = builtin_suite(args.suite, identities, AppContract())
    if args.grep:
        pattern = re.compile(args.grep, re.I)
        scenarios = [s for s in scenarios if pattern.search(s.name)]
    return scenarios


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(base_url=args.base_url, run_id=args.run_id)
    except ConfigError as e:
        print(f"✖ Configuration error: {e}")
        return 2
    if not settings.base_url:
        print("✖ Configuration error: --base-url or BASE_URL is required")
        return 2

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_id = settings.run_id or uuid.uuid4().hex[:6]
    run_dir = Path(args.runs_dir) / f"run_{timestamp}"
    run_dir.mkdir(parents=True, exist_ok=True)

    identities = IdentityFactory(namespace=run_id)
    try:
        scenarios = select_scenarios(args, identities)
    except (SuiteFormatError, ValueError, re.error) as e:
        print(f"✖ Scenario error: {e}")
        return 2

    test_cases_path = dump_scenarios(scenarios, run_dir / "test_cases.json")
    print(f"📄 Test cases written: {test_cases_path} ({len(scenarios)} scenario(s), run id {run_id})")
    artifacts = {"test_cases": test_cases_path}

    results = SuiteResult()
    results_path = None
    if not args.dry_run:
        print("🏃 Running scenarios with Playwright...")
        results = asyncio.run(run_test_suite(
            base_url=settings.base_url,
            scenarios=scenarios,
            run_dir=run_dir,
            settings=settings,
            headless=(not args.headful),
            verbose=args.verbose,
            concurrency=args.concurrency,
        ))
        results_path = run_dir / "results.json"
        with open(results_path, "w", encoding="utf-8") as f:
            json.dump(results.to_dict(), f, indent=2)
        print(f"📊 Results written: {results_path}")
        artifacts["results"] = results_path

    report_path = run_dir / "report.html"
    write_html_report(results, report_path)
    artifacts["report"] = report_path
    print(f"📝 HTML report: {report_path}")

    archive_path = run_dir / "archive.zip"
    archive_files(archive_path, [test_cases_path, report_path] + ([results_path] if results_path else []))
    artifacts["archive"] = archive_path
    print(f"📦 Archive: {archive_path}")

    log_to_csv(Path(args.runs_dir) / "run_log.csv", timestamp, artifacts, results if not args.dry_run else None)

    if results.total:
        print(format_summary(results))
        print(f"✅ Done. Total: {results.total}, Passed: {results.passed}, Failed: {results.failed}")
    else:
        print("✅ Done. No scenarios executed (dry run or empty suite).")
    return 1 if results.failed else 0


if __name__ == "__main__":
    sys.exit(main())
