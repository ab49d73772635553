"""Tests for script and report models."""

import pytest
from pydantic import ValidationError

from scriptgate.config.settings import AnalyzerKind, Language
from scriptgate.exceptions import ConfigurationError
from scriptgate.models.report import (
    AnalysisResult,
    AnalysisStatus,
    Finding,
    FindingCategory,
    Location,
    OverallStatus,
    ValidationReport,
)
from scriptgate.models.script import Script, ScriptDescriptor


class TestScript:
    """Test Script model."""

    def test_fingerprint_ignores_name(self):
        a = Script(name="one", source_text="echo hi\n")
        b = Script(name="two", source_text="echo hi\n")

        assert a.fingerprint == b.fingerprint

    def test_fingerprint_covers_content(self):
        base = Script(name="s", source_text="echo hi\n")

        assert base.fingerprint != Script(name="s", source_text="echo ho\n").fingerprint
        assert base.fingerprint != Script(
            name="s", source_text="echo hi\n", language=Language.PYTHON3
        ).fingerprint
        assert base.fingerprint != Script(
            name="s", source_text="echo hi\n", dependencies=["curl"]
        ).fingerprint

    def test_fingerprint_distinguishes_other_languages(self):
        ruby = Script(name="s", source_text="puts 1", language=Language.OTHER, language_name="ruby")
        perl = Script(name="s", source_text="puts 1", language=Language.OTHER, language_name="perl")

        assert ruby.fingerprint != perl.fingerprint

    def test_is_immutable(self):
        script = Script(name="s", source_text="true")

        with pytest.raises(ValidationError):
            script.source_text = "false"

    def test_empty_source_rejected(self):
        with pytest.raises(ValidationError):
            Script(name="s", source_text="")

    @pytest.mark.parametrize("name", ["", ".", "..", "../../escaped", "a/b", "a b", ".hidden"])
    def test_name_must_be_single_path_component(self, name):
        with pytest.raises(ValidationError):
            Script(name=name, source_text="true")

    @pytest.mark.parametrize("name", ["deploy", "deploy.sh", "git-sync_2", "c++"])
    def test_valid_names(self, name):
        assert Script(name=name, source_text="true").name == name

    def test_display_language(self):
        assert Script(name="s", source_text="x").display_language == "bash"
        assert Script(
            name="s", source_text="x", language=Language.OTHER, language_name="ruby"
        ).display_language == "ruby"


class TestScriptDescriptor:
    """Test ScriptDescriptor model."""

    def test_requires_exactly_one_source(self, tmp_path):
        with pytest.raises(ValidationError):
            ScriptDescriptor(name="s")
        with pytest.raises(ValidationError):
            ScriptDescriptor(name="s", text="true", path=tmp_path / "s.sh")

    def test_path_like_name_rejected(self):
        with pytest.raises(ValidationError):
            ScriptDescriptor(name="../../x", text="true")

    def test_to_script_from_text(self):
        descriptor = ScriptDescriptor(name="deploy", language="sh", text="echo ok\n", dependencies=["git"])

        script = descriptor.to_script()

        assert script.name == "deploy"
        assert script.language == Language.BASH
        assert script.language_name is None
        assert script.dependencies == ["git"]

    def test_to_script_from_relative_path(self, tmp_path):
        (tmp_path / "tool.py").write_text("print('x')\n")
        descriptor = ScriptDescriptor(name="tool", language="python", path="tool.py")

        script = descriptor.to_script(base_dir=tmp_path)

        assert script.language == Language.PYTHON3
        assert script.source_text == "print('x')\n"

    def test_missing_file_raises_configuration_error(self, tmp_path):
        descriptor = ScriptDescriptor(name="gone", path=tmp_path / "missing.sh")

        with pytest.raises(ConfigurationError, match="gone"):
            descriptor.to_script()

    def test_unknown_language_kept_by_name(self):
        script = ScriptDescriptor(name="r", language="ruby", text="puts 1").to_script()

        assert script.language == Language.OTHER
        assert script.language_name == "ruby"

    def test_analyzer_config(self):
        descriptor = ScriptDescriptor(
            name="s",
            text="true",
            disabled_analyzers=[AnalyzerKind.LINT],
        )

        config = descriptor.analyzer_config()

        assert not config.is_enabled(AnalyzerKind.LINT)
        assert config.is_enabled(AnalyzerKind.VARIABLE_USAGE)


class TestAnalysisResult:
    """Test AnalysisResult construction."""

    def test_fatal_finding_fails(self):
        result = AnalysisResult.from_findings(AnalyzerKind.LINT, [
            Finding(category=FindingCategory.LINT_WARNING, message="w"),
            Finding(category=FindingCategory.LINT_ERROR, message="e"),
        ])

        assert result.status == AnalysisStatus.FAIL
        assert result.failed

    def test_non_fatal_findings_pass(self):
        result = AnalysisResult.from_findings(AnalyzerKind.LINT, [
            Finding(category=FindingCategory.LINT_STYLE, message="s"),
            Finding(category=FindingCategory.HEURISTIC, message="h"),
        ])

        assert result.status == AnalysisStatus.PASS
        assert len(result.findings) == 2

    def test_skipped(self):
        result = AnalysisResult.skipped(AnalyzerKind.LINT, "tool not found: shellcheck")

        assert result.status == AnalysisStatus.SKIPPED
        assert not result.failed
        assert result.status_label == "skipped (tool not found: shellcheck)"


class TestValidationReport:
    """Test ValidationReport aggregation."""

    @pytest.fixture
    def failing_report(self):
        return ValidationReport(
            script_id="broken",
            fingerprint="abc",
            language="bash",
            results=[
                AnalysisResult.from_findings(AnalyzerKind.SYNTAX, [
                    Finding(
                        category=FindingCategory.SYNTAX_ERROR,
                        message="unexpected EOF",
                        location=Location(line=3),
                    ),
                ]),
                AnalysisResult.skipped(AnalyzerKind.LINT, "tool not found: shellcheck"),
                AnalysisResult.from_findings(AnalyzerKind.VARIABLE_USAGE, [
                    Finding(category=FindingCategory.HEURISTIC, message="Variable 'FOO' used"),
                ]),
            ],
        )

    def test_overall_status_fails_on_any_failure(self, failing_report):
        assert failing_report.overall_status == OverallStatus.FAIL
        assert not failing_report.passed
        assert [r.analyzer_kind for r in failing_report.failed_results] == [AnalyzerKind.SYNTAX]

    def test_skips_and_heuristics_never_fail(self):
        report = ValidationReport(
            script_id="ok",
            fingerprint="abc",
            language="bash",
            results=[
                AnalysisResult.from_findings(AnalyzerKind.SYNTAX, []),
                AnalysisResult.skipped(AnalyzerKind.LINT, "tool not found: shellcheck"),
                AnalysisResult.from_findings(AnalyzerKind.FUNCTION_DEPS, [
                    Finding(category=FindingCategory.HEURISTIC, message="No explicit error handling detected"),
                ]),
            ],
        )

        assert report.overall_status == OverallStatus.PASS

    def test_empty_report_passes(self):
        assert ValidationReport(script_id="x", fingerprint="f", language="bash").passed

    def test_findings_union(self, failing_report):
        assert [f.category for f in failing_report.findings] == [
            FindingCategory.SYNTAX_ERROR,
            FindingCategory.HEURISTIC,
        ]
        assert failing_report.count_by_category() == {
            FindingCategory.SYNTAX_ERROR: 1,
            FindingCategory.HEURISTIC: 1,
        }

    def test_result_for(self, failing_report):
        assert failing_report.result_for(AnalyzerKind.LINT).status == AnalysisStatus.SKIPPED
        assert failing_report.result_for(AnalyzerKind.STRICT_MODE) is None

    def test_json_includes_overall_status(self, failing_report):
        data = failing_report.model_dump(mode="json")

        assert data["overall_status"] == "fail"

    def test_summary(self, failing_report):
        summary = failing_report.to_summary()

        assert "Validation Report for broken (bash)" in summary
        assert "Status: FAIL" in summary
        assert "syntax-error: line 3: unexpected EOF" in summary
        assert "[skipped (tool not found: shellcheck)] lint" in summary
