"""Re-runnable test cases generated alongside each validation report."""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Mapping, Optional, Union
from pathlib import Path

from scriptgate.config.settings import AnalyzerConfig, AnalyzerKind, Settings
from scriptgate.core.builder import BuiltArtifact
from scriptgate.models.report import AnalysisStatus, TestOutcome, ValidationReport
from scriptgate.tools import create_analyzers
from scriptgate.tools.base import Analyzer


logger = logging.getLogger(__name__)


ExtraTest = Callable[[BuiltArtifact], Union[TestOutcome, Awaitable[TestOutcome]]]


def namespaced_test_id(script_name: str, test_name: str) -> str:
    """Namespaced test id, unique across scripts."""
    return f"script-{script_name}-{test_name}"


@dataclass(frozen=True)
class TestCase:
    """One independently re-runnable check against a built artifact."""

    __test__ = False

    id: str
    artifact: BuiltArtifact
    check: Callable[[], Awaitable[TestOutcome]]
    analyzer_kind: Optional[AnalyzerKind] = None

    @property
    def artifact_path(self) -> Path:
        return self.artifact.path

    async def run(self) -> TestOutcome:
        """Run the check from inside an event loop."""
        return await self.check()

    def invoke(self) -> TestOutcome:
        """Run the check synchronously."""
        return asyncio.run(self.run())


class TestArtifactGenerator:
    """Turns each analyzer that ran into a test against the built artifact.

    Generated tests re-read the artifact and call the analyzer directly, so
    a downstream runner needs neither the pipeline nor its cache.
    """

    __test__ = False

    def __init__(
        self,
        settings: Optional[Settings] = None,
        analyzers: Optional[Mapping[AnalyzerKind, Analyzer]] = None,
    ):
        self.settings = settings or Settings()
        self.analyzers = dict(analyzers) if analyzers is not None else create_analyzers(self.settings)

    def generate(
        self,
        report: ValidationReport,
        artifact: BuiltArtifact,
        config: AnalyzerConfig,
        extra_tests: Optional[Mapping[str, ExtraTest]] = None,
    ) -> Dict[str, TestCase]:
        """Create the test cases for one script.

        Args:
            report: Validation report of the script
            artifact: Built artifact the tests will check
            config: Analyzer selection used for the report
            extra_tests: Caller tests by name; they replace generated tests
                with the same id

        Returns:
            Mapping of test id to TestCase
        """
        kinds = [r.analyzer_kind for r in report.results if config.is_enabled(r.analyzer_kind)]
        if AnalyzerKind.SYNTAX not in kinds:
            kinds.insert(0, AnalyzerKind.SYNTAX)

        tests: Dict[str, TestCase] = {}
        for kind in kinds:
            case_id = namespaced_test_id(artifact.name, kind.value)
            tests[case_id] = TestCase(
                id=case_id,
                artifact=artifact,
                check=self._analyzer_check(kind, artifact),
                analyzer_kind=kind,
            )

        for name, func in (extra_tests or {}).items():
            case_id = namespaced_test_id(artifact.name, name)
            tests[case_id] = TestCase(
                id=case_id,
                artifact=artifact,
                check=self._extra_check(func, artifact),
            )

        return tests

    def _analyzer_check(self, kind: AnalyzerKind, artifact: BuiltArtifact) -> Callable[[], Awaitable[TestOutcome]]:
        analyzer = self.analyzers[kind]

        async def check() -> TestOutcome:
            result = await analyzer.analyze(artifact.to_script())
            if result.status == AnalysisStatus.SKIPPED:
                logger.warning("%s: %s skipped (%s), counting as pass", artifact.name, kind.value, result.skip_reason)
            if result.failed:
                for finding in result.findings:
                    logger.error("%s: %s", artifact.name, finding.format())
                return TestOutcome.FAIL
            return TestOutcome.PASS

        return check

    @staticmethod
    def _extra_check(func: ExtraTest, artifact: BuiltArtifact) -> Callable[[], Awaitable[TestOutcome]]:
        async def check() -> TestOutcome:
            outcome = func(artifact)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            return TestOutcome(outcome)

        return check


def collect_tests(test_maps: Iterable[Mapping[str, TestCase]]) -> Dict[str, TestCase]:
    """Merge the test maps of several scripts into one."""
    collected: Dict[str, TestCase] = {}
    for tests in test_maps:
        collected.update(tests)
    return collected
