"""File watching with an explicit per-task debounce.

Events arrive on watchdog's observer thread and are handed to the event loop.
Within the loop, triggers for the same task are coalesced: a trailing timer of
`delay` seconds is restarted on every trigger, and while a run is in flight at
most one follow-up run is queued.

Shutdown policy: pending timers and queued re-runs are dropped, runs already in
flight are awaited to completion.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, Iterable, List, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .errors import TaskExecutionError
from .logging import get_logger
from .utils import glob_base, glob_match

# watchdog also reports opened/closed events on some platforms; those are not changes.
_CHANGE_EVENTS = {"created", "modified", "moved", "deleted"}


@dataclass(frozen=True)
class WatchRule:
    pattern: str
    task: str


class Debouncer:
    def __init__(
        self,
        run: Callable[[str], Awaitable[object]],
        delay: float = 0.2,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._run = run
        self.delay = delay
        self._loop = loop
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._running: Dict[str, asyncio.Task] = {}
        self._dirty: Set[str] = set()
        self._closed = False
        self.logger = get_logger("taskrunner.watch")

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def trigger(self, name: str) -> None:
        """Request a run of `name`. Must be called from the loop's thread."""
        if self._closed:
            return
        timer = self._timers.pop(name, None)
        if timer is not None:
            timer.cancel()
        self._timers[name] = self.loop.call_later(self.delay, self._fire, name)

    def is_pending(self, name: str) -> bool:
        return name in self._timers or name in self._dirty

    def _fire(self, name: str) -> None:
        self._timers.pop(name, None)
        if name in self._running:
            self._dirty.add(name)
            return
        self._start(name)

    def _start(self, name: str) -> None:
        self._running[name] = self.loop.create_task(self._execute(name))

    async def _execute(self, name: str) -> None:
        try:
            self.logger.info("Change detected, running: %s", name)
            await self._run(name)
        except TaskExecutionError as e:
            self.logger.error("%s", e)
        except Exception:
            self.logger.exception("Watch run of %s crashed", name)
        finally:
            self._running.pop(name, None)
            if name in self._dirty and not self._closed:
                self._dirty.discard(name)
                self._start(name)

    async def aclose(self) -> None:
        self._closed = True
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._dirty.clear()
        in_flight = list(self._running.values())
        if in_flight:
            self.logger.info("Waiting for %d in-flight run(s)", len(in_flight))
            await asyncio.gather(*in_flight, return_exceptions=True)


class _Handler(FileSystemEventHandler):
    def __init__(self, watcher: "Watcher"):
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        for path in (event.src_path, getattr(event, "dest_path", "")):
            if path:
                self._watcher.notify(os.fsdecode(path))


class Watcher:
    """Maps filesystem changes onto task triggers for a set of WatchRules."""

    def __init__(self, rules: Iterable[WatchRule], debouncer: Debouncer):
        self.rules = [
            WatchRule(pattern=os.path.abspath(r.pattern), task=r.task) for r in rules
        ]
        self.debouncer = debouncer
        self._observer = None
        self.logger = get_logger("taskrunner.watch")

    def match(self, path: str | Path) -> List[str]:
        """Task names whose rule matches `path`, in rule order, without duplicates."""
        target = os.path.abspath(path)
        tasks: List[str] = []
        for rule in self.rules:
            if glob_match(target, rule.pattern) and rule.task not in tasks:
                tasks.append(rule.task)
        return tasks

    def notify(self, path: str | Path) -> None:
        """Thread-safe entry point for a changed path."""
        for name in self.match(path):
            self.debouncer.loop.call_soon_threadsafe(self.debouncer.trigger, name)

    def start(self) -> None:
        # Bind the loop before the observer thread can call notify().
        _ = self.debouncer.loop
        observer = Observer()
        handler = _Handler(self)
        scheduled: Set[Path] = set()
        for rule in self.rules:
            base = glob_base(rule.pattern)
            if base in scheduled:
                continue
            if not base.is_dir():
                self.logger.warning("Not watching %s: %s does not exist", rule.pattern, base)
                continue
            observer.schedule(handler, str(base), recursive=True)
            scheduled.add(base)
            self.logger.info("Watching %s → %s", rule.pattern, rule.task)
        observer.start()
        self._observer = observer

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
