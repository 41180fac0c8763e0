"""Glob in, transform, write out.

Every leaf task has this shape. A transform maps one Asset to zero or more
Assets. A transform that cannot handle its input raises TransformError; that
file is reported and skipped and the rest of the batch carries on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import TransformError
from .logging import get_logger
from .utils import expand_glob, glob_base


@dataclass(frozen=True)
class Asset:
    path: Path  # relative to the glob base; also the path under dest
    source: Path
    contents: bytes

    @property
    def text(self) -> str:
        return self.contents.decode("utf-8")

    def derive(self, path: Path | str | None = None, contents: bytes | str | None = None) -> "Asset":
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        return replace(
            self,
            path=Path(path) if path is not None else self.path,
            contents=contents if contents is not None else self.contents,
        )


Transform = Callable[[Asset], List[Asset]]


@dataclass
class PipelineReport:
    written: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, TransformError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def read_assets(pattern: str) -> List[Asset]:
    base = glob_base(pattern)
    assets: List[Asset] = []
    for p in expand_glob(pattern):
        assets.append(Asset(path=p.relative_to(base), source=p.resolve(), contents=p.read_bytes()))
    return assets


def apply_transforms(asset: Asset, transforms: Sequence[Transform]) -> List[Asset]:
    batch = [asset]
    for transform in transforms:
        batch = [out for item in batch for out in transform(item)]
    return batch


def write_assets(assets: Sequence[Asset], dest: str | Path) -> List[Path]:
    written: List[Path] = []
    for asset in assets:
        out = Path(dest) / asset.path
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(asset.contents)
        written.append(out)
    return written


def run_pipeline(
    pattern: str,
    dest: str | Path,
    transforms: Sequence[Transform] = (),
    logger: Optional[logging.Logger] = None,
) -> PipelineReport:
    logger = logger or get_logger("taskrunner.files")
    report = PipelineReport()
    assets = read_assets(pattern)
    if not assets:
        logger.warning("No files matched %s", pattern)
        return report

    for asset in assets:
        try:
            outputs = apply_transforms(asset, transforms)
        except TransformError as e:
            logger.warning("Transform failed, skipping %s: %s", asset.source, e.message)
            report.failed.append((asset.source, e))
            continue
        report.written.extend(write_assets(outputs, dest))

    logger.info(
        "%s → %s: %d file(s) written, %d failed",
        pattern,
        dest,
        len(report.written),
        len(report.failed),
    )
    return report
