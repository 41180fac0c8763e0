# tests/test_core.py

from __future__ import annotations

import asyncio

import pytest

from taskrunner import Pipeline, alias, task
from taskrunner.errors import (
    CyclicDependencyError,
    DuplicateTaskError,
    TaskExecutionError,
    UnknownDependencyError,
)


def recorder(log: list[str], name: str):
    def action(ctx) -> None:
        log.append(name)

    return action


def test_resolve_orders_dependencies_first_and_once() -> None:
    p = Pipeline()
    p.register("base")
    p.register("left", ["base"])
    p.register("right", ["base"])
    p.register("top", ["left", "right"])

    assert p.resolve("top") == ["base", "left", "right", "top"]


def test_resolve_is_stable_in_declared_dependency_order() -> None:
    p = Pipeline()
    for name in ("c", "a", "b"):
        p.register(name)
    p.register("all", ["b", "c", "a"])

    assert p.resolve("all") == ["b", "c", "a", "all"]
    assert p.resolve("all") == p.resolve("all")


def test_duplicate_registration_fails() -> None:
    p = Pipeline()
    p.register("sass")
    with pytest.raises(DuplicateTaskError):
        p.register("sass")


def test_unknown_dependency_is_reported_at_resolution_not_registration() -> None:
    p = Pipeline()
    p.register("build", ["sass", "fonts"])
    p.register("sass")

    with pytest.raises(UnknownDependencyError) as exc:
        p.resolve("build")
    assert exc.value.name == "fonts"
    assert exc.value.required_by == "build"


def test_unknown_top_level_task() -> None:
    with pytest.raises(UnknownDependencyError) as exc:
        Pipeline().resolve("nope")
    assert exc.value.required_by is None


def test_two_task_cycle_is_detected() -> None:
    p = Pipeline()
    p.register("A", ["B"])
    p.register("B", ["A"])

    with pytest.raises(CyclicDependencyError) as exc:
        p.resolve("A")
    assert exc.value.cycle == ["A", "B"]


def test_cycle_below_entry_point_reports_only_the_loop() -> None:
    p = Pipeline()
    p.register("entry", ["x"])
    p.register("x", ["y"])
    p.register("y", ["z"])
    p.register("z", ["x"])

    with pytest.raises(CyclicDependencyError) as exc:
        p.resolve("entry")
    assert exc.value.cycle == ["x", "y", "z"]


def test_long_chain_does_not_recurse_forever() -> None:
    p = Pipeline()
    p.register("t0")
    for i in range(1, 200):
        p.register(f"t{i}", [f"t{i - 1}"])
    assert p.resolve("t199")[0] == "t0"


@pytest.mark.asyncio
async def test_run_executes_every_transitive_dependency_exactly_once() -> None:
    log: list[str] = []
    p = Pipeline()
    p.register("base", fn=recorder(log, "base"))
    p.register("left", ["base"], recorder(log, "left"))
    p.register("right", ["base"], recorder(log, "right"))
    p.register("top", ["left", "right"], recorder(log, "top"))

    report = await p.run("top")

    assert log == ["base", "left", "right", "top"]
    assert report.executed == log
    assert all(s.attempts == 1 for s in report.steps)


@pytest.mark.asyncio
async def test_run_fails_on_missing_dependency() -> None:
    p = Pipeline()
    p.register("build", ["later"], lambda ctx: None)
    with pytest.raises(UnknownDependencyError):
        await p.run("build")


@pytest.mark.asyncio
async def test_independent_tasks_both_complete_before_run_returns() -> None:
    done: set[str] = set()

    async def slow(ctx) -> None:
        await asyncio.sleep(0.01)
        done.add("slow")

    p = Pipeline()
    p.register("slow", fn=slow)
    p.register("fast", fn=lambda ctx: done.add("fast"))
    p.register("both", ["slow", "fast"])

    await p.run("both")
    assert done == {"slow", "fast"}


@pytest.mark.asyncio
async def test_sync_and_async_actions_receive_context() -> None:
    seen = {}

    def sync_action(ctx) -> None:
        seen["sync"] = ctx.config

    async def async_action(ctx) -> None:
        seen["async"] = (ctx.config, ctx.pipeline)

    cfg = {"name": "x"}
    p = Pipeline(config=cfg)
    p.register("a", fn=sync_action)
    p.register("b", ["a"], async_action)

    await p.run("b")
    assert seen["sync"] is cfg
    assert seen["async"] == (cfg, p)


@pytest.mark.asyncio
async def test_failure_aborts_remaining_tasks() -> None:
    log: list[str] = []

    def boom(ctx) -> None:
        raise RuntimeError("bad stylesheet dir")

    p = Pipeline()
    p.register("first", fn=recorder(log, "first"))
    p.register("broken", ["first"], boom)
    p.register("last", ["broken"], recorder(log, "last"))

    with pytest.raises(TaskExecutionError) as exc:
        await p.run("last")
    assert exc.value.task == "broken"
    assert isinstance(exc.value.cause, RuntimeError)
    assert log == ["first"]


@pytest.mark.asyncio
async def test_retries_rerun_failed_step() -> None:
    calls = {"n": 0}

    def flaky(ctx) -> None:
        calls["n"] += 1
        if calls["n"] < 3:
            raise OSError("busy")

    p = Pipeline()
    p.register("flaky", fn=flaky)
    report = await p.run("flaky", retries=2)
    assert calls["n"] == 3
    assert report.steps[0].attempts == 3


def test_decorated_tasks_and_aliases_build_a_pipeline() -> None:
    @task(name="compile", description="compile things")
    def compile_(ctx) -> None:
        pass

    spec = compile_._task_spec
    group = alias("all", ["compile"])
    p = Pipeline.from_specs([spec, group])

    assert spec.description == "compile things"
    assert group.is_alias
    assert p.resolve("all") == ["compile", "all"]


@pytest.mark.asyncio
async def test_alias_steps_are_reported_without_running_anything() -> None:
    p = Pipeline()
    p.register("a", fn=lambda ctx: None)
    p.add(alias("group", ["a"]))
    report = await p.run("group")
    assert [(s.name, s.status) for s in report.steps] == [("a", "ok"), ("group", "alias")]


@pytest.mark.asyncio
async def test_aclose_cancels_background_work() -> None:
    p = Pipeline()
    started = asyncio.Event()

    async def forever() -> None:
        started.set()
        await asyncio.Event().wait()

    bg = p.spawn(forever())
    await started.wait()
    await p.aclose()
    assert bg.cancelled()
