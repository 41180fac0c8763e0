"""Font assets are copied verbatim."""

from taskrunner import task
from taskrunner.files import run_pipeline


@task(name="fonts")
def fonts(ctx):
    """Copy font files into the dist directory."""
    run_pipeline(ctx.config.fonts.source, ctx.config.fonts.dist, logger=ctx.logger)
