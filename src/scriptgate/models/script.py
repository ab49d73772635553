"""Script data models."""

from typing import List, Optional
from pathlib import Path
from hashlib import sha256

from pydantic import BaseModel, ConfigDict, Field, model_validator

from scriptgate.config.settings import AnalyzerConfig, AnalyzerKind, Language
from scriptgate.exceptions import ConfigurationError


# One path component: no separators, and never "." or "..".
SCRIPT_NAME_PATTERN = r"^[A-Za-z0-9_+-][A-Za-z0-9._+-]*$"


class Script(BaseModel):
    """A script submitted for validation.

    Immutable once constructed. Two scripts with the same language, source
    and dependencies share a fingerprint regardless of name.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(pattern=SCRIPT_NAME_PATTERN)
    language: Language = Language.BASH
    language_name: Optional[str] = Field(
        default=None,
        description="Declared language name, kept for OTHER languages",
    )
    source_text: str = Field(min_length=1)
    dependencies: List[str] = Field(default_factory=list)
    executable: bool = True

    @property
    def display_language(self) -> str:
        """Language name as the caller declared it."""
        return self.language_name or self.language.value

    @property
    def fingerprint(self) -> str:
        """Get SHA256 content fingerprint for caching."""
        digest = sha256()
        digest.update(self.language.value.encode())
        if self.language == Language.OTHER and self.language_name:
            digest.update(self.language_name.encode())
        digest.update(b"\0")
        digest.update(self.source_text.encode())
        for dependency in self.dependencies:
            digest.update(b"\0")
            digest.update(dependency.encode())
        return digest.hexdigest()


class ScriptDescriptor(BaseModel):
    """Script description handed over by the configuration layer.

    Exactly one of ``text`` or ``path`` supplies the source.
    """

    name: str = Field(pattern=SCRIPT_NAME_PATTERN)
    language: str = "bash"
    text: Optional[str] = None
    path: Optional[Path] = None
    dependencies: List[str] = Field(default_factory=list)
    executable: bool = True
    enabled_analyzers: Optional[List[AnalyzerKind]] = None
    disabled_analyzers: List[AnalyzerKind] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_source(self) -> "ScriptDescriptor":
        """Require exactly one source of script text."""
        if (self.text is None) == (self.path is None):
            raise ValueError("exactly one of 'text' or 'path' must be given")
        return self

    @property
    def resolved_language(self) -> Language:
        return Language.parse(self.language)

    def read_text(self, base_dir: Optional[Path] = None) -> str:
        """Return the script source, reading it from disk if needed."""
        if self.text is not None:
            return self.text

        path = self.path
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read script '{self.name}' from {path}: {e}") from e

    def to_script(self, base_dir: Optional[Path] = None) -> Script:
        """Build the immutable Script this descriptor describes."""
        language = self.resolved_language
        return Script(
            name=self.name,
            language=language,
            language_name=self.language if language == Language.OTHER else None,
            source_text=self.read_text(base_dir),
            dependencies=list(self.dependencies),
            executable=self.executable,
        )

    def analyzer_config(self) -> AnalyzerConfig:
        """Analyzer selection for this descriptor."""
        return AnalyzerConfig.for_language(
            self.resolved_language,
            requested=self.enabled_analyzers,
            disabled=self.disabled_analyzers,
        )
