"""Base classes for analyzers."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from scriptgate.config.settings import AnalyzerKind, Language, Settings
from scriptgate.exceptions import ToolUnavailableError
from scriptgate.models.report import AnalysisResult
from scriptgate.models.script import Script


logger = logging.getLogger(__name__)


class Analyzer(ABC):
    """Abstract base class for all analyzers.

    An analyzer is a pure function of the script it is given: it holds no
    per-script state, so one instance can serve concurrent ``analyze`` calls.
    """

    kind: AnalyzerKind
    # Bump when the analyzer's logic changes so cached results are invalidated.
    version: str = "1"

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize analyzer.

        Args:
            settings: Global settings (tool paths, allow-lists)
        """
        self.settings = settings or Settings()

    async def analyze(self, script: Script) -> AnalysisResult:
        """Analyze a script and return its result.

        A missing external tool yields a ``skipped`` result instead of an
        error; anything else raised by the check propagates.

        Args:
            script: Script to analyze

        Returns:
            AnalysisResult with status and findings
        """
        start_time = time.time()
        try:
            result = await self.run_check(script)
        except ToolUnavailableError as e:
            logger.warning("Skipping %s analysis of %s: %s", self.kind.value, script.name, e)
            return AnalysisResult.skipped(self.kind, str(e))

        logger.info(
            "%s analysis of %s: %s (%d findings, %.2fs)",
            self.kind.value,
            script.name,
            result.status.value,
            len(result.findings),
            time.time() - start_time,
        )
        return result

    @abstractmethod
    async def run_check(self, script: Script) -> AnalysisResult:
        """Run the check itself.

        Raises:
            ToolUnavailableError: If a required external tool is missing
        """

    def is_available(self, language: Language = Language.BASH) -> bool:
        """Check if everything the analyzer needs is installed."""
        return True

    async def get_version(self, script: Script) -> str:
        """Version string used in cache keys."""
        return f"{self.kind.value}/{self.version}"
