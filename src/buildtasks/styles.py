"""Stylesheet tasks: Sass → CSS with source maps, then minified.

Per file: skip partials, compile with libsass (expanding glob imports such as
`@import "components/**/*.scss";`), write `<name>.css` and `<name>.css.map`,
minify the CSS. A file that fails to compile is logged and skipped; the task
itself still succeeds.
"""

from __future__ import annotations

import logging
import os
import re
from functools import partial
from pathlib import Path
from typing import List, Optional, Tuple

import rcssmin
import sass

from taskrunner import task
from taskrunner.errors import TransformError
from taskrunner.files import Asset, PipelineReport, Transform, run_pipeline
from taskrunner.logging import get_logger
from taskrunner.utils import expand_glob, has_magic

SASS_SUFFIXES = (".scss", ".sass", ".css")

_MAP_TRAILER = re.compile(r"\s*/\*#\s*sourceMappingURL=[^*]*\*/\s*\Z")

log = get_logger("taskrunner.styles")


def glob_importer(path: str, prev: str) -> Optional[List[Tuple[str, str]]]:
    """libsass importer: expand a wildcard `@import` relative to the importing file.

    Returning None hands non-glob imports back to libsass.
    """
    if not has_magic(path):
        return None
    base = Path(prev).parent if prev and prev != "stdin" else Path.cwd()
    pattern = os.path.join(str(base), path)
    if not pattern.endswith(SASS_SUFFIXES):
        pattern += ".scss"
    # a file never imports itself
    current = Path(prev).resolve() if prev and prev != "stdin" else None
    matches = [m for m in expand_glob(pattern) if m.resolve() != current]
    if not matches:
        log.warning("Glob import %r in %s matched nothing", path, prev)
    return [(str(m.resolve()), m.read_text(encoding="utf-8")) for m in matches]


def skip_partials(asset: Asset) -> List[Asset]:
    if asset.path.name.startswith("_"):
        return []
    return [asset]


def compile_scss(asset: Asset, dest: str | Path | None = None) -> List[Asset]:
    """Compile one stylesheet into `<name>.css` plus `<name>.css.map`.

    Map `sources` are relative to where the map lands under `dest`, and the
    source text is embedded in `sourcesContent`.
    """
    css_path = asset.path.with_suffix(".css")
    map_path = css_path.with_name(css_path.name + ".map")
    out_css = Path(dest).resolve() / css_path if dest is not None else asset.source.with_suffix(".css")
    try:
        css, source_map = sass.compile(
            filename=str(asset.source),
            output_style="expanded",
            source_map_filename=str(out_css.with_name(map_path.name)),
            source_map_contents=True,
            output_filename_hint=str(out_css),
            include_paths=[str(asset.source.parent)],
            importers=[(0, glob_importer)],
        )
    except sass.CompileError as e:
        raise TransformError(asset.source, str(e).strip()) from e
    return [
        asset.derive(path=css_path, contents=css),
        asset.derive(path=map_path, contents=source_map),
    ]


def minify_css(asset: Asset) -> List[Asset]:
    if asset.path.suffix != ".css":
        return [asset]
    css = asset.text
    m = _MAP_TRAILER.search(css)
    body, trailer = (css[: m.start()], m.group(0).strip()) if m else (css, "")
    out = rcssmin.cssmin(body)
    if trailer:
        out = f"{out}\n{trailer}\n"
    return [asset.derive(contents=out)]


def style_transforms(dest: str | Path) -> Tuple[Transform, ...]:
    return (skip_partials, partial(compile_scss, dest=dest), minify_css)


def compile_stylesheets(
    pattern: str, dest: str | Path, logger: Optional[logging.Logger] = None
) -> PipelineReport:
    return run_pipeline(pattern, dest, style_transforms(dest), logger=logger or log)


@task(name="sass")
def sass_components(ctx):
    """Compile component stylesheets into the dist directory."""
    compile_stylesheets(ctx.config.sass.source, ctx.config.sass.dist, ctx.logger)


@task(name="styleguide:sass")
def sass_styleguide(ctx):
    """Compile the styleguide's own stylesheets into the dist directory."""
    compile_stylesheets(ctx.config.sass.styleguide_source, ctx.config.sass.dist, ctx.logger)
