"""Analysis report data models."""

from typing import Any, Dict, List, Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from scriptgate.config.settings import AnalyzerKind


class FindingCategory(str, Enum):
    """Category of a reported issue."""

    SYNTAX_ERROR = "syntax-error"
    LINT_ERROR = "lint-error"
    LINT_WARNING = "lint-warning"
    LINT_STYLE = "lint-style"
    HEURISTIC = "heuristic"

    @property
    def is_fatal(self) -> bool:
        """Whether this category fails the analyzer that reports it."""
        return self in (FindingCategory.SYNTAX_ERROR, FindingCategory.LINT_ERROR)


class AnalysisStatus(str, Enum):
    """Outcome of one analyzer on one script."""

    PASS = "pass"
    FAIL = "fail"
    SKIPPED = "skipped"


class OverallStatus(str, Enum):
    """Gate decision for a whole report."""

    PASS = "pass"
    FAIL = "fail"


class TestOutcome(str, Enum):
    """Result of re-running a generated test case."""

    __test__ = False

    PASS = "pass"
    FAIL = "fail"


class Location(BaseModel):
    """Position of a finding in the script source."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=1)
    column: Optional[int] = Field(default=None, ge=1)

    def __str__(self) -> str:
        if self.column is None:
            return f"{self.line}"
        return f"{self.line}:{self.column}"


class Finding(BaseModel):
    """A single issue reported by an analyzer."""

    model_config = ConfigDict(frozen=True)

    category: FindingCategory
    message: str
    location: Optional[Location] = None
    code: Optional[str] = Field(default=None, description="Tool rule id, e.g. SC2086")

    def format(self) -> str:
        """One-line human readable form."""
        where = f"line {self.location}: " if self.location else ""
        code = f"[{self.code}] " if self.code else ""
        return f"{self.category.value}: {where}{code}{self.message}"


class AnalysisResult(BaseModel):
    """Result of a single analyzer on a single script."""

    model_config = ConfigDict(frozen=True)

    analyzer_kind: AnalyzerKind
    status: AnalysisStatus
    skip_reason: Optional[str] = None
    findings: List[Finding] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_findings(
        cls,
        kind: AnalyzerKind,
        findings: List[Finding],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "AnalysisResult":
        """Fail if any finding is fatal, pass otherwise."""
        failed = any(f.category.is_fatal for f in findings)
        return cls(
            analyzer_kind=kind,
            status=AnalysisStatus.FAIL if failed else AnalysisStatus.PASS,
            findings=findings,
            metadata=metadata or {},
        )

    @classmethod
    def skipped(cls, kind: AnalyzerKind, reason: str) -> "AnalysisResult":
        return cls(analyzer_kind=kind, status=AnalysisStatus.SKIPPED, skip_reason=reason)

    @property
    def failed(self) -> bool:
        return self.status == AnalysisStatus.FAIL

    @property
    def status_label(self) -> str:
        if self.status == AnalysisStatus.SKIPPED and self.skip_reason:
            return f"skipped ({self.skip_reason})"
        return self.status.value


class ValidationReport(BaseModel):
    """Validation report for one script. Never mutated after construction."""

    model_config = ConfigDict(frozen=True)

    script_id: str
    fingerprint: str
    language: str
    results: List[AnalysisResult] = Field(default_factory=list)

    @computed_field
    @property
    def overall_status(self) -> OverallStatus:
        """Fail iff at least one analyzer failed; skips never fail."""
        if any(r.failed for r in self.results):
            return OverallStatus.FAIL
        return OverallStatus.PASS

    @property
    def passed(self) -> bool:
        return self.overall_status == OverallStatus.PASS

    @property
    def failed_results(self) -> List[AnalysisResult]:
        return [r for r in self.results if r.failed]

    @property
    def findings(self) -> List[Finding]:
        """Union of all findings, in canonical analyzer order."""
        return [f for r in self.results for f in r.findings]

    def result_for(self, kind: AnalyzerKind) -> Optional[AnalysisResult]:
        """Get the result of a specific analyzer, if it ran."""
        for result in self.results:
            if result.analyzer_kind == kind:
                return result
        return None

    def count_by_category(self) -> Dict[FindingCategory, int]:
        counts: Dict[FindingCategory, int] = {}
        for finding in self.findings:
            counts[finding.category] = counts.get(finding.category, 0) + 1
        return counts

    def to_summary(self) -> str:
        """Generate human-readable summary."""
        summary_parts = [
            f"Validation Report for {self.script_id} ({self.language})",
            f"Status: {self.overall_status.value.upper()}",
            f"",
        ]

        for result in self.results:
            summary_parts.append(f"[{result.status_label}] {result.analyzer_kind.value}")
            for finding in result.findings:
                summary_parts.append(f"  - {finding.format()}")

        counts = self.count_by_category()
        if counts:
            summary_parts.extend([f"", f"Findings Summary:"])
            for category in FindingCategory:
                count = counts.get(category, 0)
                if count > 0:
                    summary_parts.append(f"  - {category.value}: {count}")

        return "\n".join(summary_parts)
