"""Content-addressed cache of analyzer results."""

import logging
from typing import Dict, Optional
from pathlib import Path
from hashlib import sha256

from pydantic import ValidationError

from scriptgate.config.settings import AnalyzerKind
from scriptgate.models.report import AnalysisResult, AnalysisStatus


logger = logging.getLogger(__name__)


def cache_key(fingerprint: str, kind: AnalyzerKind, analyzer_version: str) -> str:
    """Key for one (script content, analyzer, analyzer version) triple."""
    raw = "\0".join([fingerprint, kind.value, analyzer_version])
    return sha256(raw.encode()).hexdigest()


class ResultCache:
    """In-memory result cache with optional JSON persistence.

    Results are deterministic in their key, so entries never expire.
    Skipped results are not stored: the missing tool may be installed
    before the next run.
    """

    def __init__(self, directory: Optional[Path] = None):
        """Initialize the cache.

        Args:
            directory: Where to persist entries (None = memory only)
        """
        self.directory = directory
        self._entries: Dict[str, AnalysisResult] = {}
        if directory is not None:
            directory.mkdir(parents=True, exist_ok=True)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[AnalysisResult]:
        """Look up a result, falling back to disk."""
        if key in self._entries:
            return self._entries[key]

        path = self._path_for(key)
        if path is None or not path.exists():
            return None

        try:
            result = AnalysisResult.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable cache entry %s: %s", path, e)
            return None

        self._entries[key] = result
        return result

    def put(self, key: str, result: AnalysisResult) -> None:
        """Store a result unless it was skipped."""
        if result.status == AnalysisStatus.SKIPPED:
            return

        self._entries[key] = result
        path = self._path_for(key)
        if path is not None:
            path.write_text(result.model_dump_json(), encoding="utf-8")

    def clear(self) -> None:
        self._entries.clear()
        if self.directory is not None:
            for path in self.directory.glob("*.json"):
                path.unlink()

    def _path_for(self, key: str) -> Optional[Path]:
        if self.directory is None:
            return None
        return self.directory / f"{key}.json"
