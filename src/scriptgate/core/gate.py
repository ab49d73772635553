"""Report aggregation and the build pass/fail gate."""

from typing import Iterable, List

from scriptgate.models.report import AnalysisResult, OverallStatus, ValidationReport
from scriptgate.models.script import Script


def overall_status(results: Iterable[AnalysisResult]) -> OverallStatus:
    """Fail iff any analyzer failed. Skipped analyzers never fail the gate."""
    if any(result.failed for result in results):
        return OverallStatus.FAIL
    return OverallStatus.PASS


class ReportAggregator:
    """Builds the immutable report for one script."""

    def aggregate(self, script: Script, results: Iterable[AnalysisResult]) -> ValidationReport:
        """Order results canonically and wrap them in a report.

        Results may arrive in completion order; the report always lists them
        in analyzer priority order.
        """
        ordered = sorted(results, key=lambda r: r.analyzer_kind.priority)
        return ValidationReport(
            script_id=script.name,
            fingerprint=script.fingerprint,
            language=script.display_language,
            results=ordered,
        )


class Gate:
    """Accumulates reports across scripts and decides the build outcome."""

    def __init__(self, reports: Iterable[ValidationReport] = ()):
        self.reports: List[ValidationReport] = list(reports)

    def add(self, report: ValidationReport) -> None:
        self.reports.append(report)

    @property
    def status(self) -> OverallStatus:
        return overall_status(r for report in self.reports for r in report.results)

    @property
    def passed(self) -> bool:
        return self.status == OverallStatus.PASS

    @property
    def exit_code(self) -> int:
        """Process exit code for a CLI build step."""
        return 0 if self.passed else 1

    def failures(self) -> List[ValidationReport]:
        """Reports whose own gate failed."""
        return [report for report in self.reports if not report.passed]

    def summary(self) -> str:
        """Build outcome: script count, gate status and failing scripts."""
        failed = self.failures()
        lines = [
            f"Scripts validated: {len(self.reports)}",
            f"Gate: {self.status.value.upper()}",
        ]
        if failed:
            lines.append(f"Failing scripts: {', '.join(r.script_id for r in failed)}")
        return "\n".join(lines)
