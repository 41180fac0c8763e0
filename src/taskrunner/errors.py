from __future__ import annotations

from pathlib import Path
from typing import Iterable


class TaskRunnerError(Exception):
    """Base class for every error the runner reports to the CLI."""


class ConfigValidationError(TaskRunnerError):
    def __init__(self, problems: Iterable[str], source: str | Path | None = None):
        self.problems = list(problems)
        self.source = str(source) if source is not None else None
        where = f" ({self.source})" if self.source else ""
        super().__init__(
            f"Invalid build config{where}:\n  " + "\n  ".join(self.problems)
        )


class DuplicateTaskError(TaskRunnerError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Task already registered: {name}")


class UnknownDependencyError(TaskRunnerError):
    def __init__(self, name: str, required_by: str | None = None):
        self.name = name
        self.required_by = required_by
        if required_by is None:
            msg = f"Unknown task: {name}"
        else:
            msg = f"Unknown task '{name}' (dependency of '{required_by}')"
        super().__init__(msg)


class CyclicDependencyError(TaskRunnerError):
    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        loop = " → ".join(self.cycle + self.cycle[:1])
        super().__init__(f"Cycle detected in task graph: {loop}")


class TransformError(TaskRunnerError):
    """A single file failed a pipeline transform. Logged, never fatal."""

    def __init__(self, path: str | Path, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path}: {message}")


class TaskExecutionError(TaskRunnerError):
    def __init__(self, task: str, cause: BaseException):
        self.task = task
        self.cause = cause
        super().__init__(f"Task '{task}' failed: {cause}")


class StyleguideBuildError(TaskRunnerError):
    pass
