"""Base class for analyzers that shell out to an external tool."""

import asyncio
import logging
import shutil
import tempfile
from typing import Dict, List, Optional, Tuple
from pathlib import Path

from scriptgate.config.settings import Language, Settings
from scriptgate.exceptions import ToolExecutionError, ToolUnavailableError
from scriptgate.models.script import Script
from scriptgate.tools.base import Analyzer


logger = logging.getLogger(__name__)


SCRIPT_SUFFIXES: Dict[Language, str] = {
    Language.BASH: ".sh",
    Language.PYTHON3: ".py",
    Language.POWERSHELL: ".ps1",
    Language.OTHER: "",
}


class SubprocessAnalyzer(Analyzer):
    """Base class for analyzers backed by an external binary.

    Every invocation works on its own temporary copy of the source text, so
    concurrent analyzers never share files.
    """

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        self._tool_versions: Dict[str, str] = {}

    def tool_for(self, language: Language) -> Optional[str]:
        """Name of the tool (a key of ``Settings.tools``) used for ``language``."""
        return None

    def resolve_executable(self, tool_name: str) -> str:
        """Find the executable for a configured tool.

        Raises:
            ToolUnavailableError: If the tool is disabled or not on PATH
        """
        tool_config = self.settings.get_tool_config(tool_name)
        if not tool_config.enabled:
            raise ToolUnavailableError(tool_name, reason="tool disabled")

        executable = shutil.which(tool_config.executable)
        if executable is None:
            raise ToolUnavailableError(tool_name)
        return executable

    def is_available(self, language: Language = Language.BASH) -> bool:
        """Check if the tool for ``language`` is installed and enabled."""
        tool_name = self.tool_for(language)
        if tool_name is None:
            return False
        try:
            self.resolve_executable(tool_name)
        except ToolUnavailableError:
            return False
        return True

    async def get_version(self, script: Script) -> str:
        """Analyzer version combined with the tool's own ``--version``."""
        base = await super().get_version(script)
        tool_name = self.tool_for(script.language)
        if tool_name is None:
            return base

        if tool_name not in self._tool_versions:
            try:
                executable = self.resolve_executable(tool_name)
                stdout, _, returncode = await self._run_command([executable, "--version"], timeout=30)
                lines = stdout.strip().splitlines()
                version = lines[0] if returncode == 0 and lines else "unknown"
            except (ToolUnavailableError, ToolExecutionError, OSError):
                version = "unavailable"
            self._tool_versions[tool_name] = version

        return f"{base}+{tool_name}:{self._tool_versions[tool_name]}"

    async def run_tool(
        self,
        tool_name: str,
        args: List[str],
        script_path: Path,
    ) -> Tuple[str, str, int]:
        """Run a configured tool against a script file.

        Args:
            tool_name: Key of the tool in ``Settings.tools``
            args: Arguments placed between the executable and the file path
            script_path: Path of the temporary script copy

        Returns:
            Tuple of (stdout, stderr, return_code)
        """
        executable = self.resolve_executable(tool_name)
        tool_config = self.settings.get_tool_config(tool_name)
        cmd = [executable, *args, *tool_config.extra_args, str(script_path)]
        return await self._run_command(cmd, timeout=tool_config.timeout)

    async def _run_command(
        self,
        cmd: List[str],
        timeout: Optional[int] = None,
    ) -> Tuple[str, str, int]:
        """Run a command and return output.

        Args:
            cmd: Command to run
            timeout: Timeout in seconds

        Returns:
            Tuple of (stdout, stderr, return_code)
        """
        logger.debug("Running %s", " ".join(cmd))
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        try:
            if timeout:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(),
                    timeout=timeout,
                )
            else:
                stdout, stderr = await process.communicate()
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ToolExecutionError(f"{cmd[0]} timed out after {timeout}s")

        stdout_str = stdout.decode('utf-8', errors='replace') if stdout else ""
        stderr_str = stderr.decode('utf-8', errors='replace') if stderr else ""

        return stdout_str, stderr_str, process.returncode

    def create_temp_directory(self) -> tempfile.TemporaryDirectory:
        """Create a private temporary directory for one invocation."""
        self.settings.temp_dir.mkdir(parents=True, exist_ok=True)
        return tempfile.TemporaryDirectory(
            prefix=f"scriptgate_{self.kind.value}_",
            dir=self.settings.temp_dir,
        )

    def write_script_copy(self, source_text: str, language: Language, dest: Path) -> Path:
        """Write the source text into ``dest`` and return the file path."""
        script_path = dest / f"script{SCRIPT_SUFFIXES[language]}"
        script_path.write_text(source_text, encoding="utf-8")
        return script_path
