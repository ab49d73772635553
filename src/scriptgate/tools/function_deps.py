"""Function and external command dependency analysis for bash scripts."""

from typing import FrozenSet, Iterable, List, Optional

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


def extract_functions(text: str) -> List[str]:
    """Names of functions defined in ``text``, deduplicated, in order of appearance.

    Recognises ``function NAME`` and ``NAME() {``. A brace on the following
    line (``NAME()`` newline ``{``) is not recognised.
    """
    matches = []
    for pattern in (patterns.FUNCTION_KEYWORD_PATTERN, patterns.FUNCTION_BRACE_PATTERN):
        matches.extend((m.start(), m.group(1)) for m in pattern.finditer(text))

    functions: List[str] = []
    for _, name in sorted(matches):
        if name not in functions:
            functions.append(name)
    return functions


def extract_commands(text: str, allowlist: Iterable[str]) -> List[str]:
    """Allow-listed commands mentioned anywhere in ``text``, sorted and deduplicated.

    Any word token counts, so a command named only inside a string or comment
    is reported as well.
    """
    allowed = frozenset(allowlist)
    return sorted({word for word in patterns.WORD_PATTERN.findall(text) if word in allowed})


def strictness_findings(text: str) -> List[Finding]:
    """Advisory findings about missing strict-mode directives."""
    findings: List[Finding] = []

    reference_line = _first_reference_line(text)
    if reference_line is not None and not patterns.has_nounset(text):
        findings.append(Finding(
            category=FindingCategory.HEURISTIC,
            message="Variables used without 'set -u' protection",
            location=Location(line=reference_line),
        ))

    if not patterns.has_errexit(text) and not patterns.has_err_trap(text):
        findings.append(Finding(
            category=FindingCategory.HEURISTIC,
            message="No explicit error handling detected",
        ))

    pipe_line = patterns.first_line_matching(text, patterns.PIPE_PATTERN)
    if pipe_line is not None and not patterns.has_pipefail(text):
        findings.append(Finding(
            category=FindingCategory.HEURISTIC,
            message="Pipelines used without pipefail",
            location=Location(line=pipe_line),
        ))

    return findings


def _first_reference_line(text: str) -> Optional[int]:
    lines = [
        patterns.first_line_matching(text, pattern)
        for pattern in (patterns.BRACED_REFERENCE_PATTERN, patterns.UNBRACED_REFERENCE_PATTERN)
    ]
    found = [line for line in lines if line is not None]
    return min(found) if found else None


class FunctionDependencyAnalyzer(Analyzer):
    """Reports defined functions, external commands and strict-mode gaps.

    Purely informational: the status is always ``pass``.
    """

    kind = AnalyzerKind.FUNCTION_DEPS
    version = "1"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        command_allowlist: Optional[Iterable[str]] = None,
    ):
        super().__init__(settings)
        self.command_allowlist: FrozenSet[str] = frozenset(
            command_allowlist if command_allowlist is not None else self.settings.command_allowlist
        )

    async def get_version(self, script: Script) -> str:
        base = await super().get_version(script)
        # The allow-list changes the output, so it is part of the cache key.
        return f"{base}+{','.join(sorted(self.command_allowlist))}"

    async def run_check(self, script: Script) -> AnalysisResult:
        text = script.source_text
        return AnalysisResult(
            analyzer_kind=self.kind,
            status=AnalysisStatus.PASS,
            findings=strictness_findings(text),
            metadata={
                "functions": extract_functions(text),
                "commands": extract_commands(text, self.command_allowlist),
            },
        )
