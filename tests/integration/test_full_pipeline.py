"""Integration tests running the real interpreters and linters.

Each test is skipped when the tool it needs is not installed.
"""

import shutil
import pytest

from scriptgate.config.settings import AnalyzerKind, Language
from scriptgate.core.pipeline import ValidationPipeline
from scriptgate.models.report import (
    AnalysisStatus,
    FindingCategory,
    OverallStatus,
    TestOutcome,
)
from scriptgate.models.script import Script, ScriptDescriptor
from scriptgate.tools.strict_mode import StrictModeAnalyzer
from scriptgate.tools.syntax import SyntaxAnalyzer
from scriptgate.tools.shellcheck import LintAnalyzer


pytestmark = pytest.mark.integration

requires_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="bash not installed")
requires_python3 = pytest.mark.skipif(shutil.which("python3") is None, reason="python3 not installed")
requires_shellcheck = pytest.mark.skipif(shutil.which("shellcheck") is None, reason="shellcheck not installed")


WELL_FORMED = """\
set -euo pipefail

greet() {
  local name="${1:-world}"
  echo "hello ${name}" | tr a-z A-Z
}

greet "$@"
"""

UNMATCHED_QUOTE = """\
echo "start
ls
"""


@requires_bash
class TestBashAnalyzers:
    """Real bash parse checks."""

    @pytest.mark.asyncio
    async def test_strict_script_passes_strict_mode(self, settings):
        result = await StrictModeAnalyzer(settings).analyze(Script(name="ok", source_text=WELL_FORMED))

        assert result.status == AnalysisStatus.PASS
        assert result.findings == []

    @pytest.mark.asyncio
    async def test_unmatched_quote_fails_syntax(self, settings):
        result = await SyntaxAnalyzer(settings).analyze(Script(name="bad", source_text=UNMATCHED_QUOTE))

        assert result.status == AnalysisStatus.FAIL
        assert len(result.findings) == 1
        finding = result.findings[0]
        assert finding.category == FindingCategory.SYNTAX_ERROR
        assert finding.location is not None
        assert "script.sh" in finding.message
        assert str(settings.temp_dir) not in finding.message

    @pytest.mark.asyncio
    async def test_strict_mode_error_lines_match_original(self, settings):
        script = Script(name="bad", source_text="echo one\nif true; then\n  echo two\nfi fi\n")

        syntax = await SyntaxAnalyzer(settings).analyze(script)
        strict = await StrictModeAnalyzer(settings).analyze(script)

        assert syntax.failed and strict.failed
        assert syntax.findings[0].location == strict.findings[0].location

    @pytest.mark.asyncio
    async def test_pipeline_does_not_short_circuit(self, settings):
        pipeline = ValidationPipeline(settings)

        report = await pipeline.run(Script(name="bad", source_text=UNMATCHED_QUOTE))

        assert report.overall_status == OverallStatus.FAIL
        assert [r.analyzer_kind for r in report.results] == list(AnalyzerKind)
        assert report.result_for(AnalyzerKind.SYNTAX).failed
        assert report.result_for(AnalyzerKind.FUNCTION_DEPS).status == AnalysisStatus.PASS
        assert report.result_for(AnalyzerKind.VARIABLE_USAGE).status == AnalysisStatus.PASS

    @pytest.mark.asyncio
    async def test_build_and_rerun_generated_tests(self, settings):
        pipeline = ValidationPipeline(settings)
        descriptor = ScriptDescriptor(
            name="greet",
            text=WELL_FORMED,
            disabled_analyzers=[AnalyzerKind.LINT],
        )

        output = await pipeline.build(descriptor)

        assert output.passed
        assert output.artifact.read_text().startswith("#!")
        for case in output.tests.values():
            assert await case.run() == TestOutcome.PASS


@requires_python3
class TestPythonSyntax:
    """Real py_compile checks."""

    @pytest.mark.asyncio
    async def test_valid_python(self, settings):
        script = Script(name="tool", language=Language.PYTHON3, source_text="print('ok')\n")

        result = await SyntaxAnalyzer(settings).analyze(script)

        assert result.status == AnalysisStatus.PASS

    @pytest.mark.asyncio
    async def test_invalid_python(self, settings):
        script = Script(name="tool", language=Language.PYTHON3, source_text="x = 1\ndef broken(:\n")

        result = await SyntaxAnalyzer(settings).analyze(script)

        assert result.status == AnalysisStatus.FAIL
        assert result.findings[0].location.line == 2


@requires_shellcheck
class TestShellCheck:
    """Real ShellCheck runs."""

    @pytest.mark.asyncio
    async def test_clean_script(self, settings):
        result = await LintAnalyzer(settings).analyze(Script(name="ok", source_text="#!/bin/bash\n" + WELL_FORMED))

        assert result.status == AnalysisStatus.PASS

    @pytest.mark.asyncio
    async def test_warnings_reported(self, settings):
        script = Script(name="warn", source_text="#!/bin/bash\nunused=1\necho $HOME\n")

        result = await LintAnalyzer(settings).analyze(script)

        assert result.status == AnalysisStatus.PASS
        codes = {f.code for f in result.findings}
        assert "SC2034" in codes
