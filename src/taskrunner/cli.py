from __future__ import annotations

import asyncio
import importlib
import pkgutil
from pathlib import Path
from typing import Dict, Optional

import typer
from dotenv import find_dotenv, load_dotenv

from .config import DEFAULT_CONFIG_PATH, BuildConfig, load_config
from .core import Pipeline, TaskSpec
from .errors import DuplicateTaskError, TaskRunnerError
from .logging import ROOT_LOGGER, get_logger


app = typer.Typer(add_completion=False, help="Build the component styleguide: styles, fonts, docs site")
log = get_logger("taskrunner.cli")

TASKS_PACKAGE = "buildtasks"


def discover_tasks(package: str = TASKS_PACKAGE) -> Dict[str, TaskSpec]:
    """Import all modules in the tasks package and collect declared tasks."""
    specs: Dict[str, TaskSpec] = {}
    try:
        pkg = importlib.import_module(package)
    except ModuleNotFoundError:
        log.warning("No tasks package found: %s", package)
        return specs
    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{package}."):
        mod = importlib.import_module(m.name)
        for attr_name in dir(mod):
            obj = getattr(mod, attr_name)
            spec = obj if isinstance(obj, TaskSpec) else getattr(obj, "_task_spec", None)
            if not isinstance(spec, TaskSpec):
                continue
            if spec.name in specs and specs[spec.name] is not spec:
                raise DuplicateTaskError(spec.name)
            specs[spec.name] = spec
    return specs


def build_pipeline(config: Optional[BuildConfig], package: str = TASKS_PACKAGE) -> Pipeline:
    specs = discover_tasks(package)
    return Pipeline.from_specs(specs.values(), config=config, name="styleguide")


async def _run_and_wait(pipe: Pipeline, name: str, retries: int) -> None:
    try:
        await pipe.run(name, retries=retries)
        # long-lived work started by the run (watchers) keeps the process alive
        await pipe.join()
    finally:
        await pipe.aclose()


def execute(name: str, config_path: str | Path, retries: int = 0) -> None:
    """Load config, run `name`, and map failures onto the exit code."""
    try:
        config = load_config(config_path)
        pipe = build_pipeline(config)
        asyncio.run(_run_and_wait(pipe, name, retries))
    except KeyboardInterrupt:
        typer.echo("Stopped.")
        raise typer.Exit(code=0)
    except TaskRunnerError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    log.info("Finished '%s'", name)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: str = typer.Option(DEFAULT_CONFIG_PATH, help="Path to JSON/YAML build config"),
    log_file: Optional[Path] = typer.Option(None, help="Also write logs to this file"),
):
    """With no command, runs `serve`."""
    load_dotenv(find_dotenv(usecwd=True))
    if log_file is not None:
        get_logger(ROOT_LOGGER, log_file=log_file)
    ctx.obj = {"config": config}
    if ctx.invoked_subcommand is None:
        execute("default", config)


@app.command("list")
def list_tasks():
    """List discovered tasks."""
    specs = discover_tasks()
    if not specs:
        typer.echo("No tasks discovered.")
        raise typer.Exit(code=0)
    typer.echo("Discovered tasks:")
    for name in sorted(specs.keys()):
        spec = specs[name]
        deps = f" [{', '.join(spec.deps)}]" if spec.deps else ""
        desc = f"  {spec.description}" if spec.description else ""
        typer.echo(f"- {name}{deps}{desc}")


@app.command("run")
def run_task(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Task name to run"),
    retries: int = typer.Option(0, help="Retries per task on failure"),
):
    """Run a single task and its dependencies."""
    execute(name, ctx.obj["config"], retries=retries)


@app.command()
def build(ctx: typer.Context):
    """Compile styles and fonts, then export the static styleguide."""
    execute("build", ctx.obj["config"])


@app.command()
def dist(ctx: typer.Context):
    """Compile styles and fonts only."""
    execute("dist", ctx.obj["config"])


@app.command()
def serve(ctx: typer.Context):
    """Compile, watch sources and serve the styleguide."""
    execute("serve", ctx.obj["config"])


if __name__ == "__main__":  # pragma: no cover
    app()
