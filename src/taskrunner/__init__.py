"""Small declarative task runner for the styleguide build.

Provides Task and Pipeline primitives, dependency-ordered execution, glob-driven
file pipelines, debounced watch mode, and a Typer CLI.
"""

from .core import Pipeline, RunReport, TaskContext, TaskSpec, alias, task  # re-export for convenience
from .watch import WatchRule

__all__ = ["Pipeline", "RunReport", "TaskContext", "TaskSpec", "WatchRule", "alias", "task"]
