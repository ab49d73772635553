"""Main validation pipeline orchestrator."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence
from pathlib import Path

from scriptgate.config.settings import AnalyzerConfig, AnalyzerKind, Settings
from scriptgate.core.artifacts import ExtraTest, TestArtifactGenerator, TestCase
from scriptgate.core.builder import BuiltArtifact, ScriptBuilder
from scriptgate.core.cache import ResultCache, cache_key
from scriptgate.core.gate import ReportAggregator
from scriptgate.exceptions import ConfigurationError
from scriptgate.models.report import AnalysisResult, ValidationReport
from scriptgate.models.script import Script, ScriptDescriptor
from scriptgate.tools import create_analyzers
from scriptgate.tools.base import Analyzer


logger = logging.getLogger(__name__)


@dataclass
class BuildOutput:
    """Everything the packaging layer receives for one script."""

    artifact: BuiltArtifact
    report: ValidationReport
    tests: Dict[str, TestCase] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.report.passed


class ValidationPipeline:
    """Runs the enabled analyzers for a script and builds its report."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        analyzers: Optional[Mapping[AnalyzerKind, Analyzer]] = None,
        cache: Optional[ResultCache] = None,
    ):
        """Initialize the pipeline.

        Args:
            settings: Global settings
            analyzers: Analyzer per kind (defaults to the built-in set)
            cache: Result cache (defaults per ``Settings.cache_results``)
        """
        self.settings = settings or Settings()
        self.analyzers: Dict[AnalyzerKind, Analyzer] = (
            dict(analyzers) if analyzers is not None else create_analyzers(self.settings)
        )

        if cache is None and self.settings.cache_results:
            cache = ResultCache(self.settings.cache_dir if self.settings.persist_cache else None)
        self.cache = cache
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._semaphore_loop: Optional[asyncio.AbstractEventLoop] = None

        self.aggregator = ReportAggregator()
        self.builder = ScriptBuilder(self.settings)
        self.generator = TestArtifactGenerator(self.settings, analyzers=self.analyzers)

    async def run(
        self,
        script: Script,
        config: Optional[AnalyzerConfig] = None,
        use_cache: bool = True,
    ) -> ValidationReport:
        """Run every enabled analyzer on ``script``.

        Analyzers run concurrently and all of them run to completion; one
        failing never stops the others.

        Args:
            script: Script to validate
            config: Analyzer selection (defaults for the script's language)
            use_cache: Consult and fill the result cache

        Returns:
            Report with one result per enabled analyzer, in canonical order
        """
        config = config or AnalyzerConfig.for_language(script.language)
        kinds = config.kinds_for(script.language)
        semaphore = self._worker_semaphore()

        async def run_one(kind: AnalyzerKind) -> AnalysisResult:
            async with semaphore:
                return await self._analyze(kind, script, use_cache)

        results = await asyncio.gather(*(run_one(kind) for kind in kinds))
        report = self.aggregator.aggregate(script, results)

        logger.info(
            "Validated %s: %s (%d analyzers, %d findings)",
            script.name,
            report.overall_status.value,
            len(report.results),
            len(report.findings),
        )
        return report

    def _worker_semaphore(self) -> asyncio.Semaphore:
        """Semaphore shared by every run on the current event loop.

        Concurrent runs, e.g. from ``build_all``, draw from one pool of
        ``max_workers`` slots.
        """
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore_loop is not loop:
            self._semaphore = asyncio.Semaphore(self.settings.max_workers)
            self._semaphore_loop = loop
        return self._semaphore

    async def _analyze(self, kind: AnalyzerKind, script: Script, use_cache: bool) -> AnalysisResult:
        analyzer = self.analyzers[kind]
        if self.cache is None or not use_cache:
            return await analyzer.analyze(script)

        key = cache_key(script.fingerprint, kind, await analyzer.get_version(script))
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s/%s", script.name, kind.value)
            return cached

        result = await analyzer.analyze(script)
        self.cache.put(key, result)
        return result

    async def build(
        self,
        descriptor: ScriptDescriptor,
        extra_tests: Optional[Mapping[str, ExtraTest]] = None,
        base_dir: Optional[Path] = None,
    ) -> BuildOutput:
        """Validate a described script, write its artifact and generate tests.

        The artifact is written even when the gate fails, so the failing
        checks can be re-run against it.

        Args:
            descriptor: Script descriptor from the configuration layer
            extra_tests: Additional caller tests by name
            base_dir: Directory relative descriptor paths are resolved from

        Returns:
            BuildOutput with artifact, report and test cases
        """
        script = descriptor.to_script(base_dir)
        config = descriptor.analyzer_config()

        report = await self.run(script, config)
        artifact = self.builder.build(script)
        tests = self.generator.generate(report, artifact, config, extra_tests)

        return BuildOutput(artifact=artifact, report=report, tests=tests)

    async def build_all(
        self,
        descriptors: Sequence[ScriptDescriptor],
        base_dir: Optional[Path] = None,
    ) -> List[BuildOutput]:
        """Build several scripts concurrently.

        Raises:
            ConfigurationError: If two descriptors share a name
        """
        seen = set()
        for descriptor in descriptors:
            if descriptor.name in seen:
                raise ConfigurationError(f"Duplicate script name: {descriptor.name}")
            seen.add(descriptor.name)

        outputs = await asyncio.gather(*(self.build(d, base_dir=base_dir) for d in descriptors))
        return list(outputs)
