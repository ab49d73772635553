"""Variable assignment and reference analysis for bash scripts."""

import re
from typing import Dict, FrozenSet, Iterable, List, Optional

from scriptgate.config.settings import AnalyzerKind, Settings
from scriptgate.models.report import (
    AnalysisResult,
    AnalysisStatus,
    Finding,
    FindingCategory,
    Location,
)
from scriptgate.models.script import Script
from scriptgate.tools.base import Analyzer
from scriptgate.tools import patterns


def extract_assignments(text: str) -> List[str]:
    """Names assigned at the start of a line, sorted and deduplicated."""
    return sorted({m.group(1) for m in patterns.ASSIGNMENT_PATTERN.finditer(text)})


def extract_references(text: str) -> Dict[str, int]:
    """Referenced variable names mapped to the line of their first use."""
    first_seen: Dict[str, int] = {}
    for pattern in (patterns.BRACED_REFERENCE_PATTERN, patterns.UNBRACED_REFERENCE_PATTERN):
        for match in pattern.finditer(text):
            name = match.group(1)
            line = patterns.line_of(text, match.start())
            if name not in first_seen or line < first_seen[name]:
                first_seen[name] = line
    return dict(sorted(first_seen.items()))


def is_guarded(text: str, name: str) -> bool:
    """Check for a ``${NAME:-...}``-style default or error guard anywhere."""
    guard = re.compile(patterns.GUARD_TEMPLATE.format(name=re.escape(name)))
    return guard.search(text) is not None


def unguarded_references(
    text: str,
    ignored: Iterable[str] = (),
) -> Dict[str, int]:
    """References with neither a guard form nor an assignment in ``text``.

    A single guarded use anywhere counts for every use of the name, and an
    assignment after the first use still counts.
    """
    assigned = set(extract_assignments(text))
    skip = frozenset(ignored)
    return {
        name: line
        for name, line in extract_references(text).items()
        if name not in assigned and name not in skip and not is_guarded(text, name)
    }


class VariableUsageAnalyzer(Analyzer):
    """Flags variables that may be unbound at runtime.

    Advisory only: the status is always ``pass``.
    """

    kind = AnalyzerKind.VARIABLE_USAGE
    version = "1"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        shell_variables: Optional[Iterable[str]] = None,
    ):
        super().__init__(settings)
        self.shell_variables: FrozenSet[str] = frozenset(
            shell_variables if shell_variables is not None else self.settings.shell_variables
        )

    async def get_version(self, script: Script) -> str:
        base = await super().get_version(script)
        return f"{base}+{','.join(sorted(self.shell_variables))}"

    async def run_check(self, script: Script) -> AnalysisResult:
        text = script.source_text
        references = extract_references(text)
        unguarded = unguarded_references(text, ignored=self.shell_variables)

        findings = [
            Finding(
                category=FindingCategory.HEURISTIC,
                message=f"Variable '{name}' used without default value or error handling",
                location=Location(line=line),
            )
            for name, line in unguarded.items()
        ]

        return AnalysisResult(
            analyzer_kind=self.kind,
            status=AnalysisStatus.PASS,
            findings=findings,
            metadata={
                "assignments": extract_assignments(text),
                "references": sorted(references),
                "unguarded": sorted(unguarded),
            },
        )
