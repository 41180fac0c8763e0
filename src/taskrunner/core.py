from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Coroutine, Dict, Iterable, List, Optional, Sequence, Set

from .errors import CyclicDependencyError, DuplicateTaskError, TaskExecutionError, UnknownDependencyError
from .logging import get_logger
from .watch import Debouncer, WatchRule, Watcher


Action = Callable[["TaskContext"], Optional[Awaitable[None]]]


@dataclass
class TaskSpec:
    name: str
    deps: tuple[str, ...] = ()
    fn: Optional[Action] = None
    description: str = ""

    @property
    def is_alias(self) -> bool:
        return self.fn is None


@dataclass(frozen=True)
class TaskContext:
    """What an action gets to see: read-only config plus the pipeline running it."""

    config: Any
    pipeline: "Pipeline"
    logger: logging.Logger


@dataclass
class StepResult:
    name: str
    status: str
    attempts: int = 0
    duration: float = 0.0


@dataclass
class RunReport:
    pipeline: str
    task: str
    steps: List[StepResult] = field(default_factory=list)

    @property
    def executed(self) -> List[str]:
        return [s.name for s in self.steps if s.status == "ok"]


def task(name: str, deps: Sequence[str] = (), description: str = ""):
    """Decorator to declare a task on a function.

    The wrapped function receives a single `TaskContext`. It may be a plain
    function (run in a worker thread) or a coroutine function.
    """

    def deco(fn: Action):
        doc = description or (inspect.getdoc(fn) or "").split("\n", 1)[0]
        spec = TaskSpec(name=name, deps=tuple(deps), fn=fn, description=doc)
        setattr(fn, "_task_spec", spec)
        return fn

    return deco


def alias(name: str, deps: Sequence[str], description: str = "") -> TaskSpec:
    """Declare a task that only groups its dependencies."""
    return TaskSpec(name=name, deps=tuple(deps), fn=None, description=description)


class Pipeline:
    def __init__(
        self,
        tasks: Optional[Dict[str, TaskSpec]] = None,
        config: Any = None,
        name: str = "pipeline",
    ):
        self.name = name
        self.config = config
        self.tasks: Dict[str, TaskSpec] = {}
        self._background: Set[asyncio.Task] = set()
        self.logger = get_logger(f"taskrunner.{self.name}")
        for spec in (tasks or {}).values():
            self.add(spec)

    @classmethod
    def from_specs(cls, specs: Iterable[TaskSpec], config: Any = None, name: str = "pipeline") -> "Pipeline":
        pipe = cls(config=config, name=name)
        for spec in specs:
            pipe.add(spec)
        return pipe

    def add(self, spec: TaskSpec) -> TaskSpec:
        if spec.name in self.tasks:
            raise DuplicateTaskError(spec.name)
        self.tasks[spec.name] = spec
        return spec

    def register(self, name: str, deps: Sequence[str] = (), fn: Optional[Action] = None) -> TaskSpec:
        """Add a task. Dependencies are only checked when a run resolves them."""
        return self.add(TaskSpec(name=name, deps=tuple(deps), fn=fn))

    def resolve(self, name: str) -> List[str]:
        """Transitive dependencies of `name` followed by `name`, dependencies first.

        Depth-first in declared dependency order, so the result is stable.
        """
        ordered: List[str] = []
        done: Set[str] = set()
        path: List[str] = []

        def visit(node: str, parent: Optional[str]) -> None:
            if node in done:
                return
            if node in path:
                raise CyclicDependencyError(path[path.index(node):])
            spec = self.tasks.get(node)
            if spec is None:
                raise UnknownDependencyError(node, parent)
            path.append(node)
            for dep in spec.deps:
                visit(dep, node)
            path.pop()
            done.add(node)
            ordered.append(node)

        visit(name, None)
        return ordered

    async def _invoke(self, spec: TaskSpec, ctx: TaskContext) -> None:
        if inspect.iscoroutinefunction(spec.fn):
            await spec.fn(ctx)
            return
        result = await asyncio.to_thread(spec.fn, ctx)
        if inspect.isawaitable(result):
            await result

    async def run(self, name: str, retries: int = 0) -> RunReport:
        selected = self.resolve(name)
        self.logger.info("Selected steps: %s", " → ".join(selected))
        report = RunReport(pipeline=self.name, task=name)

        for step_name in selected:
            spec = self.tasks[step_name]
            if spec.is_alias:
                report.steps.append(StepResult(name=step_name, status="alias"))
                continue
            step_logger = get_logger(f"taskrunner.{self.name}.{step_name}")
            ctx = TaskContext(config=self.config, pipeline=self, logger=step_logger)

            attempt = 0
            started = time.monotonic()
            while True:
                try:
                    step_logger.info("Run: %s", step_name)
                    await self._invoke(spec, ctx)
                    break
                except Exception as e:  # noqa: BLE001
                    attempt += 1
                    step_logger.exception(
                        "Step failed (%s), attempt %d/%d",
                        step_name,
                        attempt,
                        retries + 1,
                    )
                    if attempt > retries:
                        raise TaskExecutionError(step_name, e) from e
            duration = time.monotonic() - started
            step_logger.info("Done: %s (%.2fs)", step_name, duration)
            report.steps.append(
                StepResult(name=step_name, status="ok", attempts=attempt + 1, duration=duration)
            )
        return report

    async def watch(self, rules: Iterable[WatchRule], debounce: float = 0.2) -> None:
        """Re-run tasks on matching file changes until cancelled."""
        debouncer = Debouncer(self.run, delay=debounce)
        watcher = Watcher(rules, debouncer)
        watcher.start()
        try:
            await asyncio.Event().wait()
        finally:
            watcher.stop()
            await debouncer.aclose()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> asyncio.Task:
        """Keep a long-lived coroutine running alongside the current run."""
        bg = asyncio.get_running_loop().create_task(coro, name=name)
        self._background.add(bg)
        bg.add_done_callback(self._background.discard)
        return bg

    async def join(self) -> None:
        if self._background:
            await asyncio.gather(*list(self._background))

    async def aclose(self) -> None:
        pending = list(self._background)
        for bg in pending:
            bg.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
