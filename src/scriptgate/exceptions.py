"""scriptgate exception hierarchy.

Analyzer-local problems are reported through ``AnalysisResult`` statuses, not
exceptions. The classes below cover the cases that are not findings about a
script: a missing tool, a tool that misbehaved, or bad caller input.
"""


class ScriptGateError(Exception):
    """Base exception for all scriptgate errors."""


class ToolUnavailableError(ScriptGateError):
    """Raised when an external tool an analyzer needs cannot be found.

    The analyzer base class converts this into a ``skipped`` result so the
    gate is never failed by a missing binary.
    """

    def __init__(self, tool_name: str, reason: str = "tool not found"):
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(f"{reason}: {tool_name}")


class ToolExecutionError(ScriptGateError):
    """Raised when an external tool times out or exits in an unexpected way."""


class ConfigurationError(ScriptGateError):
    """Raised for invalid descriptors, manifests or settings."""
