"""Static export of the styleguide.

`Builder.build()` is a generator: it yields a `Progress` event after each item
and finishes with exactly one `Completed` or `Failed`. Output is assembled in a
staging directory beside the destination and swapped in only on success, so a
failed export leaves the previous site as it was.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Union

if TYPE_CHECKING:
    from . import Styleguide


@dataclass(frozen=True)
class Progress:
    completed: int
    total: int


@dataclass(frozen=True)
class Completed:
    dest: Path
    items: int


@dataclass(frozen=True)
class Failed:
    error: Exception


BuildEvent = Union[Progress, Completed, Failed]


class Builder:
    def __init__(self, guide: "Styleguide"):
        self.guide = guide
        self.dest = Path(guide.settings.dest)

    @property
    def staging(self) -> Path:
        return self.dest.parent / f".{self.dest.name}.staging"

    def _swap(self) -> None:
        previous = self.dest.parent / f".{self.dest.name}.previous"
        if previous.exists():
            shutil.rmtree(previous)
        if self.dest.exists():
            self.dest.rename(previous)
        self.staging.rename(self.dest)
        if previous.exists():
            shutil.rmtree(previous)

    def build(self) -> Iterator[BuildEvent]:
        staging = self.staging
        try:
            if staging.exists():
                shutil.rmtree(staging)
            staging.mkdir(parents=True)

            renderer = self.guide.renderer()
            pages = renderer.pages()
            static = Path(self.guide.settings.static)
            has_static = static.is_dir()
            total = len(pages) + (1 if has_static else 0)
            completed = 0

            if has_static:
                shutil.copytree(static, staging, dirs_exist_ok=True)
                completed += 1
                yield Progress(completed, total)

            for rel, render in pages:
                out = staging / rel
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_text(render(), encoding="utf-8")
                completed += 1
                yield Progress(completed, total)

            self._swap()
        except Exception as e:  # noqa: BLE001
            shutil.rmtree(staging, ignore_errors=True)
            yield Failed(e)
            return
        yield Completed(self.dest, completed)
