"""Analyzer implementations for scriptgate."""

from typing import Dict, Optional, Type

from scriptgate.config.settings import AnalyzerKind, Settings
from scriptgate.tools.base import Analyzer
from scriptgate.tools.subprocess_tool import SubprocessAnalyzer
from scriptgate.tools.syntax import SyntaxAnalyzer
from scriptgate.tools.shellcheck import LintAnalyzer
from scriptgate.tools.strict_mode import StrictModeAnalyzer
from scriptgate.tools.function_deps import FunctionDependencyAnalyzer
from scriptgate.tools.variable_usage import VariableUsageAnalyzer


ANALYZER_CLASSES: Dict[AnalyzerKind, Type[Analyzer]] = {
    AnalyzerKind.SYNTAX: SyntaxAnalyzer,
    AnalyzerKind.LINT: LintAnalyzer,
    AnalyzerKind.STRICT_MODE: StrictModeAnalyzer,
    AnalyzerKind.FUNCTION_DEPS: FunctionDependencyAnalyzer,
    AnalyzerKind.VARIABLE_USAGE: VariableUsageAnalyzer,
}


def create_analyzers(settings: Optional[Settings] = None) -> Dict[AnalyzerKind, Analyzer]:
    """Instantiate one analyzer per kind, sharing ``settings``."""
    settings = settings or Settings()
    return {kind: cls(settings=settings) for kind, cls in ANALYZER_CLASSES.items()}


__all__ = [
    "Analyzer",
    "SubprocessAnalyzer",
    "SyntaxAnalyzer",
    "LintAnalyzer",
    "StrictModeAnalyzer",
    "FunctionDependencyAnalyzer",
    "VariableUsageAnalyzer",
    "ANALYZER_CLASSES",
    "create_analyzers",
]
