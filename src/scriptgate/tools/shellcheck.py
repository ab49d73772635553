"""ShellCheck static analysis tool wrapper."""

import json
import logging
from typing import Any, Dict, List, Optional
from pathlib import Path

from scriptgate.config.settings import AnalyzerKind, Language
from scriptgate.exceptions import ToolExecutionError
from scriptgate.models.report import AnalysisResult, Finding, FindingCategory, Location
from scriptgate.models.script import Script
from scriptgate.tools.subprocess_tool import SubprocessAnalyzer


logger = logging.getLogger(__name__)


class LintAnalyzer(SubprocessAnalyzer):
    """Wrapper for the ShellCheck linter.

    Any ``error`` level comment fails the analyzer; warnings, info and style
    comments are reported without failing it.
    """

    kind = AnalyzerKind.LINT
    version = "1"

    # Map ShellCheck levels to finding categories
    level_mapping = {
        "error": FindingCategory.LINT_ERROR,
        "warning": FindingCategory.LINT_WARNING,
        "info": FindingCategory.LINT_STYLE,
        "style": FindingCategory.LINT_STYLE,
    }

    def tool_for(self, language: Language) -> Optional[str]:
        return "shellcheck" if language == Language.BASH else None

    async def run_check(self, script: Script) -> AnalysisResult:
        """Lint a script with ShellCheck.

        Args:
            script: Bash script to lint

        Returns:
            AnalysisResult with one finding per ShellCheck comment
        """
        with self.create_temp_directory() as temp_dir:
            script_path = self.write_script_copy(script.source_text, script.language, Path(temp_dir))
            try:
                # ShellCheck exits 1 when it has comments, so the exit code alone
                # does not mean failure.
                stdout, stderr, returncode = await self.run_tool(
                    "shellcheck",
                    ["--format=json1", "--shell=bash"],
                    script_path,
                )
            except ToolExecutionError as e:
                return self._tool_failure(str(e))

        records = self._parse_output(stdout)
        if records is None or returncode > 1:
            detail = stderr.strip()[:500] or f"exit status {returncode}"
            return self._tool_failure(f"ShellCheck did not produce a report: {detail}")

        findings = [self._to_finding(record) for record in records]
        return AnalysisResult.from_findings(
            self.kind,
            findings,
            metadata={"levels": sorted({str(r.get("level", r.get("severity"))) for r in records})},
        )

    def _parse_output(self, output: str) -> Optional[List[Dict[str, Any]]]:
        """Parse ShellCheck JSON output into comment records.

        Accepts both ``json1`` (``{"comments": [...]}``) and the older ``json``
        format (a bare list).

        Returns:
            List of records or None if parsing failed
        """
        if not output.strip():
            return []

        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            logger.debug("Failed to parse ShellCheck JSON: %s", e)
            return None

        if isinstance(data, dict):
            data = data.get("comments", [])
        if not isinstance(data, list):
            return None
        return [record for record in data if isinstance(record, dict)]

    def _to_finding(self, record: Dict[str, Any]) -> Finding:
        level = str(record.get("level", record.get("severity", "warning"))).lower()
        code = record.get("code")

        location = None
        line = record.get("line")
        if isinstance(line, int) and line >= 1:
            column = record.get("column")
            location = Location(
                line=line,
                column=column if isinstance(column, int) and column >= 1 else None,
            )

        return Finding(
            category=self.level_mapping.get(level, FindingCategory.LINT_WARNING),
            message=str(record.get("message", "")),
            location=location,
            code=f"SC{code}" if isinstance(code, int) else code,
        )

    def _tool_failure(self, message: str) -> AnalysisResult:
        return AnalysisResult.from_findings(self.kind, [
            Finding(category=FindingCategory.LINT_ERROR, message=message),
        ])
