"""Parse-only syntax checks using each language's own interpreter."""

import logging
import re
from typing import Dict, List, Optional, Tuple
from pathlib import Path

from scriptgate.config.settings import AnalyzerKind, Language
from scriptgate.exceptions import ToolExecutionError
from scriptgate.models.report import AnalysisResult, Finding, FindingCategory, Location
from scriptgate.models.script import Script
from scriptgate.tools.subprocess_tool import SubprocessAnalyzer


logger = logging.getLogger(__name__)


# Prints one "line L, column C: message" per parse error and exits 1.
POWERSHELL_PARSE_CHECK = """\
param([string]$Path)
$tokens = $null
$errors = $null
[System.Management.Automation.Language.Parser]::ParseFile($Path, [ref]$tokens, [ref]$errors) | Out-Null
if ($errors.Count -gt 0) {
    foreach ($e in $errors) {
        "line $($e.Extent.StartLineNumber), column $($e.Extent.StartColumnNumber): $($e.Message)"
    }
    exit 1
}
"""

# bash: "script.sh: line 3: ...", python: 'File "script.py", line 3',
# pwsh checker: "line 3, column 7: ..."
LOCATION_PATTERN = re.compile(r"\bline (\d+)(?:, column (\d+))?")

PARSE_TOOLS: Dict[Language, str] = {
    Language.BASH: "bash",
    Language.PYTHON3: "python3",
    Language.POWERSHELL: "pwsh",
}


class SyntaxAnalyzer(SubprocessAnalyzer):
    """Runs the target language's parse-only pass over the script.

    bash uses ``bash -n``, Python ``python3 -m py_compile`` and PowerShell
    the ``System.Management.Automation.Language.Parser`` API. Scripts in
    other languages are skipped.
    """

    kind = AnalyzerKind.SYNTAX
    version = "1"

    def tool_for(self, language: Language) -> Optional[str]:
        return PARSE_TOOLS.get(language)

    async def run_check(self, script: Script) -> AnalysisResult:
        if self.tool_for(script.language) is None:
            reason = f"no syntax checker for language '{script.display_language}'"
            logger.warning("Skipping syntax analysis of %s: %s", script.name, reason)
            return AnalysisResult.skipped(self.kind, reason)

        source_text, line_offset = self.prepare_source(script)
        return await self.parse_check(script, source_text, line_offset)

    def prepare_source(self, script: Script) -> Tuple[str, int]:
        """Text to parse, and how many lines were prepended to the original."""
        return script.source_text, 0

    async def parse_check(self, script: Script, source_text: str, line_offset: int = 0) -> AnalysisResult:
        """Parse ``source_text`` and turn a parser error into a finding.

        Args:
            script: Script the text belongs to
            source_text: Text actually handed to the parser
            line_offset: Lines prepended to the original source

        Returns:
            ``fail`` with one syntax-error finding, or ``pass``
        """
        tool_name = self.tool_for(script.language)

        with self.create_temp_directory() as temp_dir:
            temp_path = Path(temp_dir)
            script_path = self.write_script_copy(source_text, script.language, temp_path)
            args = self._parse_args(script.language, temp_path)

            try:
                stdout, stderr, returncode = await self.run_tool(tool_name, args, script_path)
            except ToolExecutionError as e:
                return AnalysisResult.from_findings(self.kind, [
                    Finding(category=FindingCategory.SYNTAX_ERROR, message=str(e)),
                ])

        if returncode == 0:
            return AnalysisResult.from_findings(self.kind, [])

        message = (stderr.strip() or stdout.strip() or f"parser exited with status {returncode}")
        message = message.replace(str(script_path), script_path.name)
        finding = Finding(
            category=FindingCategory.SYNTAX_ERROR,
            message=message,
            location=self._parse_location(message, line_offset),
        )
        return AnalysisResult.from_findings(self.kind, [finding])

    def _parse_args(self, language: Language, temp_dir: Path) -> List[str]:
        if language == Language.BASH:
            return ["-n"]
        if language == Language.PYTHON3:
            return ["-m", "py_compile"]

        checker = temp_dir / "parse-check.ps1"
        checker.write_text(POWERSHELL_PARSE_CHECK, encoding="utf-8")
        return ["-NoProfile", "-NonInteractive", "-File", str(checker)]

    @staticmethod
    def _parse_location(message: str, line_offset: int) -> Optional[Location]:
        match = LOCATION_PATTERN.search(message)
        if match is None:
            return None

        line = int(match.group(1)) - line_offset
        if line < 1:
            return None
        column = int(match.group(2)) if match.group(2) else None
        return Location(line=line, column=column)
