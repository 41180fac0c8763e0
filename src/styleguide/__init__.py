"""Living styleguide generator: component library, static export and live server.

Components are Jinja2 templates under the components directory, docs are
Markdown files. `Styleguide` holds the configuration; `builder()` and
`server()` do the work.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from taskrunner.config import BuildConfig, Status, StyleguideSettings
from taskrunner.logging import get_logger

from .builder import Builder, BuildEvent, Completed, Failed, Progress
from .render import Renderer
from .server import StyleguideServer, create_app


class Styleguide:
    def __init__(
        self,
        title: str,
        settings: StyleguideSettings,
        component_statuses: Mapping[str, Status],
        doc_statuses: Mapping[str, Status],
        logger: Optional[logging.Logger] = None,
    ):
        self.title = title
        self.settings = settings
        self.component_statuses = component_statuses
        self.doc_statuses = doc_statuses
        self.logger = logger or get_logger("taskrunner.styleguide")

    @classmethod
    def from_config(cls, config: BuildConfig, logger: Optional[logging.Logger] = None) -> "Styleguide":
        return cls(
            title=config.name,
            settings=config.styleguide,
            component_statuses=config.component_statuses,
            doc_statuses=config.doc_statuses,
            logger=logger,
        )

    def renderer(self) -> Renderer:
        return Renderer(self)

    def builder(self) -> Builder:
        return Builder(self)

    def server(self, host: Optional[str] = None, port: Optional[int] = None) -> StyleguideServer:
        return StyleguideServer(
            self,
            host=host or self.settings.host,
            port=self.settings.port if port is None else port,
        )


__all__ = [
    "Styleguide",
    "Renderer",
    "Builder",
    "BuildEvent",
    "Progress",
    "Completed",
    "Failed",
    "StyleguideServer",
    "create_app",
]
