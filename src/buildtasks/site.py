"""Styleguide export and live server tasks."""

from __future__ import annotations

import asyncio

from styleguide import Completed, Failed, Progress, Styleguide
from taskrunner import task
from taskrunner.errors import StyleguideBuildError


@task(name="styleguide:build")
def styleguide_build(ctx):
    """Export the styleguide as a static site."""
    builder = Styleguide.from_config(ctx.config, logger=ctx.logger).builder()
    for event in builder.build():
        if isinstance(event, Progress):
            ctx.logger.info("Exported %d of %d items", event.completed, event.total)
        elif isinstance(event, Failed):
            raise StyleguideBuildError(f"Styleguide export failed: {event.error}") from event.error
        elif isinstance(event, Completed):
            ctx.logger.info("Styleguide build completed! %d items in %s", event.items, event.dest)


@task(name="styleguide:start")
async def styleguide_start(ctx):
    """Serve the styleguide until interrupted."""
    server = Styleguide.from_config(ctx.config, logger=ctx.logger).server()
    server.start()
    ctx.logger.info("Styleguide server is now running at %s", server.url)
    try:
        await asyncio.Event().wait()
    finally:
        server.stop()
