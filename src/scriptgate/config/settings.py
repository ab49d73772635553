"""Configuration settings for scriptgate using Pydantic."""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional
from pathlib import Path
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class Language(str, Enum):
    """Script languages the pipeline knows how to validate."""

    BASH = "bash"
    PYTHON3 = "python3"
    POWERSHELL = "powershell"
    OTHER = "other"

    @classmethod
    def parse(cls, name: str) -> "Language":
        """Map a declared language name to a Language, falling back to OTHER."""
        normalized = name.strip().lower()
        return _LANGUAGE_ALIASES.get(normalized, cls.OTHER)


_LANGUAGE_ALIASES = {
    "bash": Language.BASH,
    "sh": Language.BASH,
    "shell": Language.BASH,
    "python3": Language.PYTHON3,
    "python": Language.PYTHON3,
    "py": Language.PYTHON3,
    "powershell": Language.POWERSHELL,
    "pwsh": Language.POWERSHELL,
    "ps1": Language.POWERSHELL,
}


class AnalyzerKind(str, Enum):
    """Available analyzers, declared in canonical report order."""

    SYNTAX = "syntax"
    LINT = "lint"
    STRICT_MODE = "strict-mode"
    FUNCTION_DEPS = "function-deps"
    VARIABLE_USAGE = "variable-usage"

    @property
    def priority(self) -> int:
        """Position of this kind in the canonical order."""
        return list(AnalyzerKind).index(self)


# Which analyzers apply to which language. Everything but bash gets the
# parse-only check; OTHER gets it too so a skip is recorded in the report.
LANGUAGE_ANALYZERS: Dict[Language, FrozenSet[AnalyzerKind]] = {
    Language.BASH: frozenset(AnalyzerKind),
    Language.PYTHON3: frozenset({AnalyzerKind.SYNTAX}),
    Language.POWERSHELL: frozenset({AnalyzerKind.SYNTAX}),
    Language.OTHER: frozenset({AnalyzerKind.SYNTAX}),
}


DEFAULT_COMMAND_ALLOWLIST: FrozenSet[str] = frozenset({
    "git", "ssh", "scp", "curl", "wget", "jq", "grep", "awk", "sed", "find",
    "sort", "uniq", "head", "tail", "cut", "tr", "wc", "cat", "echo", "printf",
    "date", "mkdir", "rm", "cp", "mv", "chmod", "chown", "ls", "cd", "pwd",
    "which", "command", "type", "test",
})

# Variables bash maintains itself; referencing them is never "unbound".
DEFAULT_SHELL_VARIABLES: FrozenSet[str] = frozenset({
    "BASH", "BASHPID", "BASH_ARGC", "BASH_ARGV", "BASH_COMMAND",
    "BASH_LINENO", "BASH_REMATCH", "BASH_SOURCE", "BASH_SUBSHELL",
    "BASH_VERSINFO", "BASH_VERSION", "EUID", "FUNCNAME", "GROUPS", "HOSTNAME",
    "HOSTTYPE", "IFS", "LINENO", "MACHTYPE", "OLDPWD", "OPTARG", "OPTIND",
    "OSTYPE", "PIPESTATUS", "PPID", "PWD", "RANDOM", "REPLY", "SECONDS",
    "SHELLOPTS", "SHLVL", "UID", "_",
})


class ToolConfig(BaseModel):
    """Configuration for an external tool an analyzer shells out to."""

    enabled: bool = True
    executable: str
    timeout: Optional[int] = Field(
        default=None,
        description="Tool timeout in seconds (None = bounded by the caller)",
    )
    extra_args: List[str] = Field(default_factory=list)


class AnalyzerConfig(BaseModel):
    """Which analyzers run for a single script.

    Built once per script descriptor. The syntax analyzer is mandatory and
    is re-enabled whatever the caller asks for.
    """

    model_config = ConfigDict(frozen=True)

    enabled: Dict[AnalyzerKind, bool] = Field(default_factory=dict)

    @field_validator("enabled")
    @classmethod
    def syntax_always_enabled(cls, v: Dict[AnalyzerKind, bool]) -> Dict[AnalyzerKind, bool]:
        """Force the mandatory syntax check on."""
        return {**v, AnalyzerKind.SYNTAX: True}

    @classmethod
    def for_language(
        cls,
        language: Language,
        requested: Optional[Iterable[AnalyzerKind]] = None,
        disabled: Optional[Iterable[AnalyzerKind]] = None,
    ) -> "AnalyzerConfig":
        """Build the configuration for a script of the given language.

        Args:
            language: Declared script language
            requested: Explicit analyzer set (None = language defaults)
            disabled: Kinds to switch off after defaults are applied

        Returns:
            Configuration with every analyzer kind mapped to a flag
        """
        if requested is None:
            chosen = set(AnalyzerKind) if language == Language.BASH else {AnalyzerKind.SYNTAX}
        else:
            chosen = set(requested)
        chosen -= set(disabled or ())

        valid = LANGUAGE_ANALYZERS[language]
        for kind in sorted(chosen - valid, key=lambda k: k.priority):
            logger.debug("Analyzer %s does not apply to %s scripts, ignoring", kind.value, language.value)

        return cls(enabled={kind: kind in chosen and kind in valid for kind in AnalyzerKind})

    def is_enabled(self, kind: AnalyzerKind) -> bool:
        """Check whether an analyzer kind is switched on."""
        return self.enabled.get(kind, False)

    def kinds_for(self, language: Language) -> List[AnalyzerKind]:
        """Enabled analyzer kinds valid for ``language``, in canonical order."""
        valid = LANGUAGE_ANALYZERS[language]
        return [kind for kind in AnalyzerKind if self.is_enabled(kind) and kind in valid]


class Settings(BaseSettings):
    """Global application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SCRIPTGATE_",
        case_sensitive=False,
        validate_default=True,
    )

    # Paths
    project_root: Path = Field(default_factory=Path.cwd, description="Project root directory")
    cache_dir: Path = Field(default=Path(".scriptgate_cache"), description="Analysis result cache")
    build_dir: Path = Field(default=Path("build"), description="Built script artifacts")
    temp_dir: Path = Field(default=Path("/tmp/scriptgate"), description="Temporary files")

    # Tool configurations
    tools: Dict[str, ToolConfig] = Field(
        default_factory=lambda: {
            "bash": ToolConfig(executable="bash"),
            "python3": ToolConfig(executable="python3"),
            "pwsh": ToolConfig(executable="pwsh", timeout=120),
            "shellcheck": ToolConfig(
                executable="shellcheck",
                extra_args=["--external-sources"],
            ),
        }
    )

    # Heuristic analyzer inputs
    command_allowlist: FrozenSet[str] = Field(default=DEFAULT_COMMAND_ALLOWLIST)
    shell_variables: FrozenSet[str] = Field(default=DEFAULT_SHELL_VARIABLES)

    # Caching
    cache_results: bool = Field(default=True, description="Cache analysis results")
    persist_cache: bool = Field(default=False, description="Write cached results to cache_dir")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Performance
    max_workers: int = Field(default=4, ge=1, description="Maximum concurrent analyzers")

    @field_validator("cache_dir", "build_dir", "temp_dir", mode="before")
    @classmethod
    def resolve_paths(cls, v, info) -> Path:
        """Resolve paths relative to project root."""
        if isinstance(v, str):
            v = Path(v)
        project_root = info.data.get("project_root")
        if not v.is_absolute() and project_root is not None:
            return Path(project_root) / v
        return v

    def get_tool_config(self, tool_name: str) -> ToolConfig:
        """Get configuration for a specific tool."""
        return self.tools.get(tool_name, ToolConfig(executable=tool_name))

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        for dir_path in [self.cache_dir, self.build_dir, self.temp_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)
