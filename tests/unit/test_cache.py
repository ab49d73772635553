"""Tests for the result cache."""

from scriptgate.config.settings import AnalyzerKind
from scriptgate.core.cache import ResultCache, cache_key
from scriptgate.models.report import AnalysisResult, Finding, FindingCategory, Location


RESULT = AnalysisResult.from_findings(
    AnalyzerKind.VARIABLE_USAGE,
    [Finding(category=FindingCategory.HEURISTIC, message="Variable 'FOO'", location=Location(line=2))],
    metadata={"unguarded": ["FOO"]},
)


class TestCacheKey:
    """Test cache key derivation."""

    def test_stable(self):
        assert cache_key("abc", AnalyzerKind.LINT, "lint/1") == cache_key("abc", AnalyzerKind.LINT, "lint/1")

    def test_every_component_matters(self):
        base = cache_key("abc", AnalyzerKind.LINT, "lint/1")

        assert base != cache_key("abd", AnalyzerKind.LINT, "lint/1")
        assert base != cache_key("abc", AnalyzerKind.SYNTAX, "lint/1")
        assert base != cache_key("abc", AnalyzerKind.LINT, "lint/2")


class TestResultCache:
    """Test ResultCache."""

    def test_memory_only(self):
        cache = ResultCache()

        assert cache.get("k") is None
        cache.put("k", RESULT)

        assert cache.get("k") == RESULT
        assert len(cache) == 1

    def test_skipped_not_stored(self):
        cache = ResultCache()

        cache.put("k", AnalysisResult.skipped(AnalyzerKind.LINT, "tool not found: shellcheck"))

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_persisted_entries_survive(self, tmp_path):
        ResultCache(tmp_path / "cache").put("k", RESULT)

        reloaded = ResultCache(tmp_path / "cache")

        assert reloaded.get("k") == RESULT

    def test_corrupt_entry_ignored(self, tmp_path):
        cache = ResultCache(tmp_path)
        (tmp_path / "k.json").write_text("{not json")

        assert cache.get("k") is None

    def test_clear(self, tmp_path):
        cache = ResultCache(tmp_path)
        cache.put("k", RESULT)

        cache.clear()

        assert len(cache) == 0
        assert cache.get("k") is None
