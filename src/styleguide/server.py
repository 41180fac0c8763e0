from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from flask import Flask, Response, abort
from werkzeug.serving import BaseWSGIServer, make_server

from .render import THEME_CSS, THEME_CSS_PATH

if TYPE_CHECKING:
    from . import Styleguide


def create_app(guide: "Styleguide") -> Flask:
    """Flask app rendering pages on request; sources are re-read every time."""
    static = Path(guide.settings.static).resolve()
    app = Flask(__name__, static_folder=str(static), static_url_path="")

    @app.route("/")
    @app.route("/index.html")
    def index():
        return guide.renderer().render_index()

    @app.route("/components/detail/<handle>.html")
    def component_detail(handle):
        try:
            return guide.renderer().render_component(handle)
        except KeyError:
            abort(404)

    @app.route("/components/preview/<handle>.html")
    def component_preview(handle):
        try:
            return guide.renderer().render_preview(handle)
        except KeyError:
            abort(404)

    @app.route("/docs/<slug>.html")
    def doc(slug):
        try:
            return guide.renderer().render_doc(slug)
        except KeyError:
            abort(404)

    @app.route("/" + THEME_CSS_PATH)
    def theme_css():
        return Response(THEME_CSS, mimetype="text/css")

    return app


class StyleguideServer:
    def __init__(self, guide: "Styleguide", host: str, port: int):
        self.app = create_app(guide)
        self.host = host
        self.port = port
        self.logger = guide.logger
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self._server = make_server(self.host, self.port, self.app, threaded=True)
        # port 0 asks the OS for a free port
        self.port = self._server.server_port
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="styleguide-server", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
        self.logger.info("Styleguide server stopped")
