"""scriptgate - build-time validation for shell-like scripts.

Runs a set of independent static analyzers over a script, aggregates their
findings into a report, gates the build on it and emits re-runnable tests
for the built artifact.
"""

__version__ = "0.1.0"

from scriptgate.core.pipeline import BuildOutput, ValidationPipeline

__all__ = ["BuildOutput", "ValidationPipeline"]
