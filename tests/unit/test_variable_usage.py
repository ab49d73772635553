"""Tests for the variable usage analyzer."""

import pytest

from scriptgate.models.report import AnalysisStatus, FindingCategory
from scriptgate.tools.variable_usage import (
    VariableUsageAnalyzer,
    extract_assignments,
    extract_references,
    is_guarded,
    unguarded_references,
)


class TestHelpers:
    """Test assignment and reference extraction."""

    def test_assignments(self):
        text = (
            "NAME=value\n"
            "export PATH_EXTRA=/opt\n"
            "local -r count=0\n"
            "items[0]=a\n"
            "items+=(b)\n"
            "echo x=1\n"
        )

        assert extract_assignments(text) == ["NAME", "PATH_EXTRA", "count", "items"]

    def test_references_with_first_line(self):
        text = "echo $B\necho ${A}\necho ${#B} $1 $@\n"

        assert extract_references(text) == {"A": 2, "B": 1}

    @pytest.mark.parametrize("text", [
        "echo ${FOO:-default}",
        "echo ${FOO-default}",
        ": ${FOO:=x}",
        ": ${FOO:?FOO must be set}",
        ": ${FOO?}",
    ])
    def test_guard_forms(self, text):
        assert is_guarded(text, "FOO")

    def test_prefix_name_is_not_a_guard(self):
        assert not is_guarded("echo ${FOOBAR:-x}", "FOO")

    def test_guard_anywhere_covers_every_use(self):
        text = "echo $FOO\n: ${FOO:=fallback}\n"

        assert unguarded_references(text) == {}

    def test_assignment_after_use_still_counts(self):
        assert unguarded_references("echo $X\nX=1\n") == {}

    def test_ignored_names(self):
        assert unguarded_references("echo $LINENO $FOO", ignored={"LINENO"}) == {"FOO": 1}


class TestVariableUsageAnalyzer:
    """Test VariableUsageAnalyzer."""

    @pytest.fixture
    def analyzer(self, settings):
        return VariableUsageAnalyzer(settings)

    @pytest.mark.asyncio
    async def test_unassigned_variable_reported(self, analyzer, make_script):
        result = await analyzer.analyze(make_script('echo "$FOO"\n'))

        assert result.status == AnalysisStatus.PASS
        assert len(result.findings) == 1
        finding = result.findings[0]
        assert finding.category == FindingCategory.HEURISTIC
        assert "FOO" in finding.message
        assert finding.location.line == 1

    @pytest.mark.asyncio
    async def test_metadata(self, analyzer, make_script):
        text = 'OUT=/tmp/out\necho "$OUT" "$IN" "${BASH_SOURCE[0]}"\n'

        result = await analyzer.analyze(make_script(text))

        assert result.metadata == {
            "assignments": ["OUT"],
            "references": ["BASH_SOURCE", "IN", "OUT"],
            "unguarded": ["IN"],
        }

    @pytest.mark.asyncio
    async def test_clean_script(self, analyzer, make_script):
        result = await analyzer.analyze(make_script('DIR="${1:-.}"\nls "$DIR"\n'))

        assert result.status == AnalysisStatus.PASS
        assert result.findings == []

    @pytest.mark.asyncio
    async def test_last_argument_variable_not_reported(self, analyzer, make_script):
        result = await analyzer.analyze(make_script('mkdir -p /tmp/work && cd "$_"\n'))

        assert "_" in result.metadata["references"]
        assert result.findings == []

    @pytest.mark.asyncio
    async def test_custom_shell_variables(self, settings, make_script):
        analyzer = VariableUsageAnalyzer(settings, shell_variables=["CI"])

        result = await analyzer.analyze(make_script("echo $CI $RANDOM\n"))

        assert result.metadata["unguarded"] == ["RANDOM"]
