"""Batch validation of rule package files.

Usage:
    eligibility-validate                      # every package in the rules directory
    eligibility-validate snap.json wic.yaml   # specific files
    eligibility-validate --strict --verbose rules/

Each file is validated structurally and, when its schema is valid, its
embedded test cases are run. Files are processed concurrently.

Exit Codes:
    0   every file loaded, validated and passed its tests
    1   at least one file failed to load, failed validation, or failed a test
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from eligibility.core.config import get_settings
from eligibility.core.exceptions import RulePackageLoadError
from eligibility.logic.evaluator import LogicEvaluator
from eligibility.rules.loader import discover_package_files, read_document
from eligibility.rules.schema import RulePackage
from eligibility.verification.runner import TestSuiteReport, format_test_report, run_package_tests
from eligibility.verification.service import ValidationReport, validate_rule_package

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1


# =============================================================================
# Output formatting
# =============================================================================


class Colors:
    """ANSI color codes for terminal output."""
    CYAN = "\033[96m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD = "\033[1m"
    END = "\033[0m"

    @classmethod
    def disable(cls):
        cls.CYAN = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.RED = ""
        cls.BOLD = ""
        cls.END = ""


def print_header(text: str):
    print(f"\n{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{text}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}")


def print_success(text: str):
    print(f"{Colors.GREEN}[OK] {text}{Colors.END}")


def print_error(text: str):
    print(f"{Colors.RED}[ERROR] {text}{Colors.END}")


def print_warning(text: str):
    print(f"{Colors.YELLOW}[WARN] {text}{Colors.END}")


# =============================================================================
# Per-file processing
# =============================================================================


@dataclass
class FileResult:
    """Outcome of validating and testing one package file."""

    path: Path
    load_error: str | None = None
    validation: ValidationReport | None = None
    tests: TestSuiteReport | None = None
    notes: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        if self.load_error or self.validation is None or not self.validation.valid:
            return False
        return self.tests is None or self.tests.all_passed


def process_file(path: Path, strict: bool, evaluator: LogicEvaluator) -> FileResult:
    """Load, validate and test one file. Load failures are recorded, not raised."""
    try:
        document = read_document(path)
    except RulePackageLoadError as e:
        return FileResult(path=path, load_error=e.reason)

    report = validate_rule_package(document, strict=strict, registry=evaluator.registry)
    result = FileResult(path=path, validation=report)

    try:
        package = RulePackage.model_validate(document)
    except ValidationError:
        result.notes.append("Embedded tests not run: package does not match the schema")
        return result

    result.tests = run_package_tests(package, evaluator)
    return result


async def process_files(paths: list[Path], strict: bool, evaluator: LogicEvaluator) -> list[FileResult]:
    """Process every file concurrently, preserving input order."""
    tasks = [asyncio.to_thread(process_file, path, strict, evaluator) for path in paths]
    return list(await asyncio.gather(*tasks))


def print_file_result(result: FileResult, verbose: bool = False):
    print_header(str(result.path))

    if result.load_error:
        print_error(f"Failed to load: {result.load_error}")
        return

    report = result.validation
    for issue in report.errors:
        print_error(issue.message)
    for issue in report.warnings:
        print_warning(issue.message)
    if report.valid:
        mode = " (strict)" if report.strict else ""
        print_success(f"Structure valid{mode}: {report.rule_count} rules")

    for note in result.notes:
        print_warning(note)

    if result.tests is not None:
        print(format_test_report(result.tests, verbose=verbose))
        if result.tests.all_passed:
            print_success(f"{result.tests.passed}/{result.tests.total} tests passed")
        else:
            print_error(f"{result.tests.failed}/{result.tests.total} tests failed")


def print_summary(results: list[FileResult]):
    passed = sum(1 for r in results if r.ok)
    failed = len(results) - passed
    print_header("Summary")
    print(f"Files: {len(results)} | Passed: {passed} | Failed: {failed}")
    if failed:
        print(f"{Colors.RED}{Colors.BOLD}OVERALL: FAIL{Colors.END}")
    else:
        print(f"{Colors.GREEN}{Colors.BOLD}OVERALL: PASS{Colors.END}")


# =============================================================================
# Entry point
# =============================================================================


def collect_paths(targets: list[str]) -> list[Path]:
    """Expand directories into their package files; keep explicit files as given."""
    paths: list[Path] = []
    for target in targets:
        path = Path(target)
        if path.is_dir():
            paths.extend(discover_package_files(path))
        else:
            paths.append(path)
    return paths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eligibility-validate",
        description="Validate rule package files and run their embedded tests",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Package files or directories (default: the configured rules directory)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Treat missing citations and missing test cases as errors (also: STRICT=true)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show expected/actual values and skipped tests")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(levelname)s: %(message)s",
    )
    if args.no_color or not sys.stdout.isatty():
        Colors.disable()

    strict = settings.strict if args.strict is None else args.strict
    paths = collect_paths(args.paths or [settings.rules_dir])
    if not paths:
        print_error("No rule package files found")
        return EXIT_FAILED

    logger.debug("Validating %d files (strict=%s)", len(paths), strict)
    evaluator = LogicEvaluator(max_depth=settings.max_depth)
    results = asyncio.run(process_files(paths, strict, evaluator))

    for result in results:
        print_file_result(result, verbose=args.verbose)
    print_summary(results)

    return EXIT_OK if all(r.ok for r in results) else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
