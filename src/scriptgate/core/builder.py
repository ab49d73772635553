"""Writes validated scripts out as installable artifacts."""

import json
import logging
import shutil
from typing import Dict, List, Optional
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from scriptgate.config.settings import Language, Settings
from scriptgate.models.script import SCRIPT_NAME_PATTERN, Script


logger = logging.getLogger(__name__)


INTERPRETER_TOOLS: Dict[Language, str] = {
    Language.BASH: "bash",
    Language.PYTHON3: "python3",
    Language.POWERSHELL: "pwsh",
}


class BuiltArtifact(BaseModel):
    """A script written to disk by the builder."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(pattern=SCRIPT_NAME_PATTERN)
    path: Path
    language: Language
    language_name: Optional[str] = None
    dependencies: List[str] = Field(default_factory=list)
    executable: bool = True

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8")

    def to_script(self) -> Script:
        """The built file as a Script, for re-running checks against it."""
        return Script(
            name=self.name,
            language=self.language,
            language_name=self.language_name,
            source_text=self.read_text(),
            dependencies=list(self.dependencies),
            executable=self.executable,
        )


class ScriptBuilder:
    """Lays out scripts as ``<build_dir>/<name>/bin/<name>`` or ``.../lib/<name>``.

    Executables get an interpreter shebang and mode 0755; non-executable
    scripts are libraries meant to be sourced and are written as-is.
    """

    def __init__(self, settings: Optional[Settings] = None, build_dir: Optional[Path] = None):
        self.settings = settings or Settings()
        self.build_dir = build_dir or self.settings.build_dir

    def build(self, script: Script) -> BuiltArtifact:
        """Write ``script`` into the build directory.

        Args:
            script: Validated script

        Returns:
            BuiltArtifact pointing at the written file
        """
        subdir = "bin" if script.executable else "lib"
        path = self.build_dir / script.name / subdir / script.name
        path.parent.mkdir(parents=True, exist_ok=True)

        text = script.source_text
        if script.executable:
            text = self._with_shebang(script)
        path.write_text(text, encoding="utf-8")
        if script.executable:
            path.chmod(0o755)

        deps_path = path.parent / f"{script.name}.deps.json"
        deps_path.write_text(json.dumps(script.dependencies, indent=2), encoding="utf-8")

        logger.info("Built %s -> %s", script.name, path)
        return BuiltArtifact(
            name=script.name,
            path=path,
            language=script.language,
            language_name=script.language_name,
            dependencies=list(script.dependencies),
            executable=script.executable,
        )

    def _with_shebang(self, script: Script) -> str:
        if script.source_text.startswith("#!"):
            return script.source_text

        tool_name = INTERPRETER_TOOLS.get(script.language)
        if tool_name is None:
            return script.source_text

        executable = self.settings.get_tool_config(tool_name).executable
        interpreter = shutil.which(executable) or f"/usr/bin/env {executable}"
        return f"#!{interpreter}\n{script.source_text}"
