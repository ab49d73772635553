"""Strict mode compatibility check for bash scripts."""

from typing import Tuple

from scriptgate.config.settings import AnalyzerKind, Language
from scriptgate.models.script import Script
from scriptgate.tools.syntax import SyntaxAnalyzer


STRICT_MODE_PROLOGUE = "#!/usr/bin/env bash\nset -euo pipefail\n\n"


class StrictModeAnalyzer(SyntaxAnalyzer):
    """Checks that the script still parses with ``set -euo pipefail`` prepended.

    Only syntax is checked. A script can pass here and still abort at
    runtime under strict mode, e.g. on an unguarded unset variable; the
    variable usage analyzer reports those cases.
    """

    kind = AnalyzerKind.STRICT_MODE
    version = "1"

    def tool_for(self, language: Language):
        return "bash" if language == Language.BASH else None

    def prepare_source(self, script: Script) -> Tuple[str, int]:
        return STRICT_MODE_PROLOGUE + script.source_text, STRICT_MODE_PROLOGUE.count("\n")
