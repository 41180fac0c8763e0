"""Watch mode and the top-level task aliases."""

from taskrunner import alias, task


@task(name="watch")
async def watch(ctx):
    """Recompile stylesheets when their sources change."""
    ctx.pipeline.spawn(
        ctx.pipeline.watch(ctx.config.watch, debounce=ctx.config.watch_debounce),
        name="watch",
    )


build = alias(
    "build",
    ["sass", "styleguide:sass", "fonts", "styleguide:build"],
    "Compile styles and fonts, then export the static styleguide",
)
dist = alias("dist", ["sass", "fonts"], "Compile styles and fonts only")
serve = alias(
    "serve",
    ["sass", "styleguide:sass", "fonts", "watch", "styleguide:start"],
    "Compile, watch and serve the styleguide",
)
default = alias("default", ["serve"], "Same as serve")
