"""
Report generation for escrow conformance runs.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from comparator import ComparisonResult, Divergence

TITLE = "Escrow Conformance Report"


@dataclass
class TestResult:
    """Outcome of one vector."""
    vector_name: str
    suite_name: str
    passed: bool
    execution_time_ms: float
    skipped: bool = False
    comparison: Optional[ComparisonResult] = None
    error: Optional[str] = None


@dataclass
class SuiteResult:
    """Outcome of one vector file."""
    suite_name: str
    execution_time_ms: float
    test_results: List[TestResult] = field(default_factory=list)

    @property
    def total_tests(self) -> int:
        return len(self.test_results)

    @property
    def skipped_tests(self) -> int:
        return sum(1 for t in self.test_results if t.skipped)

    @property
    def passed_tests(self) -> int:
        return sum(1 for t in self.test_results if t.passed and not t.skipped)

    @property
    def failed_tests(self) -> int:
        return sum(1 for t in self.test_results if not t.passed)

    @property
    def pass_rate(self) -> float:
        ran = self.total_tests - self.skipped_tests
        if ran == 0:
            return 0.0
        return self.passed_tests / ran * 100


@dataclass
class ConformanceReport:
    timestamp: str
    clients: List[str]
    reference_client: str
    total_tests: int
    total_passed: int
    total_failed: int
    total_skipped: int
    execution_time_ms: float
    suite_results: List[SuiteResult]
    divergences: List[Divergence]

    @property
    def pass_rate(self) -> float:
        return self.total_passed / max(self.total_tests - self.total_skipped, 1) * 100


class ReportGenerator:
    """Writes JSON and text reports into the result directory."""

    def __init__(self, result_dir: str):
        self.result_dir = result_dir
        os.makedirs(result_dir, exist_ok=True)

    def generate_report(
        self,
        suite_results: List[SuiteResult],
        clients: List[str],
        reference_client: str,
        execution_time_ms: float,
    ) -> ConformanceReport:
        divergences: List[Divergence] = []
        failures: List[TestResult] = []
        for suite in suite_results:
            for test in suite.test_results:
                if test.comparison and test.comparison.divergences:
                    divergences.extend(test.comparison.divergences)
                if not test.passed:
                    failures.append(test)

        return ConformanceReport(
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            clients=clients,
            reference_client=reference_client,
            total_tests=sum(s.total_tests for s in suite_results),
            total_passed=sum(s.passed_tests for s in suite_results),
            total_failed=len(failures),
            total_skipped=sum(s.skipped_tests for s in suite_results),
            execution_time_ms=execution_time_ms,
            suite_results=suite_results,
            divergences=divergences,
        )

    def write_json_report(
        self,
        report: ConformanceReport,
        filename: str = "conformance-report.json",
    ) -> str:
        path = os.path.join(self.result_dir, filename)
        with open(path, "w") as f:
            json.dump(self._report_to_dict(report), f, indent=2)
        return path

    def write_summary(
        self,
        report: ConformanceReport,
        filename: str = "conformance-summary.txt",
    ) -> str:
        """Write the human-readable summary and return its path."""
        path = os.path.join(self.result_dir, filename)
        lines = [
            "=" * 60,
            TITLE,
            "=" * 60,
            f"Timestamp: {report.timestamp}",
            f"Clients: {', '.join(report.clients)}",
            f"Reference: {report.reference_client}",
            "",
            "Results:",
            f"  Total Vectors: {report.total_tests}",
            f"  Passed:        {report.total_passed}",
            f"  Failed:        {report.total_failed}",
            f"  Skipped:       {report.total_skipped}",
            f"  Divergences:   {len(report.divergences)}",
            f"  Pass Rate:     {report.pass_rate:.1f}%",
            f"  Duration:      {report.execution_time_ms:.2f}ms",
            "",
            "Suite Results:",
        ]
        for suite in report.suite_results:
            status = "PASS" if suite.failed_tests == 0 else "FAIL"
            lines.append(
                f"  [{status}] {suite.suite_name}: "
                f"{suite.passed_tests}/{suite.total_tests - suite.skipped_tests} "
                f"({suite.pass_rate:.1f}%)"
            )

        errors = [
            t for s in report.suite_results for t in s.test_results if t.error
        ]
        if errors:
            lines += ["", "Errors:"]
            lines += [f"  - {t.suite_name}/{t.vector_name}: {t.error}" for t in errors]

        if report.divergences:
            lines += ["", "Divergences:"]
            for div in report.divergences:
                lines.append(f"  - {div.vector_name} ({div.field}):")
                lines.append(f"      {div.reference_client}: {div.expected}")
                lines.append(f"      {div.client}: {div.actual}")
                if div.details:
                    lines.append(f"      Details: {div.details}")

        lines += ["", "=" * 60]
        with open(path, "w") as f:
            f.write("\n".join(lines))
        return path

    def print_summary(self, report: ConformanceReport) -> None:
        print("\n" + "=" * 60)
        print(TITLE)
        print("=" * 60)
        print(f"Clients:     {', '.join(report.clients)}")
        print(f"Total:       {report.total_tests}")
        print(f"Passed:      {report.total_passed}")
        print(f"Failed:      {report.total_failed}")
        print(f"Skipped:     {report.total_skipped}")
        print(f"Divergences: {len(report.divergences)}")
        print(f"Pass Rate:   {report.pass_rate:.1f}%")

        if report.divergences:
            print()
            print("DIVERGENCES FOUND:")
            for div in report.divergences[:10]:
                print(f"  - {div.vector_name}: {div.field} ({div.client} vs {div.reference_client})")
            if len(report.divergences) > 10:
                print(f"  ... and {len(report.divergences) - 10} more")

        print()
        print(f"Overall: {'PASSED' if report.total_failed == 0 else 'FAILED'}")
        print("=" * 60)

    def _report_to_dict(self, report: ConformanceReport) -> Dict[str, Any]:
        return {
            "timestamp": report.timestamp,
            "clients": report.clients,
            "reference_client": report.reference_client,
            "total_tests": report.total_tests,
            "total_passed": report.total_passed,
            "total_failed": report.total_failed,
            "total_skipped": report.total_skipped,
            "execution_time_ms": report.execution_time_ms,
            "suite_results": [
                {
                    "suite_name": s.suite_name,
                    "total_tests": s.total_tests,
                    "passed_tests": s.passed_tests,
                    "failed_tests": s.failed_tests,
                    "skipped_tests": s.skipped_tests,
                    "execution_time_ms": s.execution_time_ms,
                    "pass_rate": s.pass_rate,
                    "failures": [
                        {"vector_name": t.vector_name, "error": t.error}
                        for t in s.test_results
                        if not t.passed
                    ],
                }
                for s in report.suite_results
            ],
            "divergences": [
                {
                    "field": d.field,
                    "expected": str(d.expected),
                    "actual": str(d.actual),
                    "client": d.client,
                    "reference_client": d.reference_client,
                    "vector_name": d.vector_name,
                    "details": d.details,
                }
                for d in report.divergences
            ],
        }
