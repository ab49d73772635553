"""Data models for scriptgate."""

from scriptgate.models.script import Script, ScriptDescriptor
from scriptgate.models.report import (
    AnalysisResult,
    AnalysisStatus,
    Finding,
    FindingCategory,
    Location,
    OverallStatus,
    TestOutcome,
    ValidationReport,
)

__all__ = [
    "Script",
    "ScriptDescriptor",
    "AnalysisResult",
    "AnalysisStatus",
    "Finding",
    "FindingCategory",
    "Location",
    "OverallStatus",
    "TestOutcome",
    "ValidationReport",
]
