# tests/test_styleguide.py

from __future__ import annotations

import urllib.request
from pathlib import Path

import pytest

from styleguide import Completed, Failed, Progress, Styleguide, create_app
from taskrunner.config import BuildConfig

from .helpers import write


@pytest.fixture()
def guide(project: Path, config: BuildConfig) -> Styleguide:
    write(project / "dist/css/styleguide.css", ".sg{color:#333}")
    return Styleguide.from_config(config)


def test_renderer_discovers_components_and_docs(guide: Styleguide) -> None:
    r = guide.renderer()

    assert [c.handle for c in r.components] == ["button", "card"]
    button = r.components[0]
    assert button.title == "Button"
    assert button.status == "wip"
    assert button.collection == "button"
    assert "<strong>primary</strong>" in button.notes
    assert r.components[1].status == "ready"

    assert [(d.slug, d.title, d.status) for d in r.docs] == [("intro", "Introduction", "draft")]


def test_preview_renders_template_with_context(guide: Styleguide) -> None:
    html = guide.renderer().render_preview("button")
    assert '<button class="btn">Go</button>' in html
    assert '<html lang="de">' in html


def test_project_preview_wrapper_is_used(guide: Styleguide, project: Path) -> None:
    write(project / "source/components/_preview.html", "<main data-wrapper>{{ content }}</main>")
    html = guide.renderer().render_preview("card")
    assert html == '<main data-wrapper><div class="card">Card</div></main>'


def test_build_yields_progress_then_completed(guide: Styleguide, project: Path) -> None:
    events = list(guide.builder().build())

    progress = [e for e in events if isinstance(e, Progress)]
    assert isinstance(events[-1], Completed)
    assert len(progress) == events[-1].items
    assert [p.completed for p in progress] == list(range(1, len(progress) + 1))
    assert all(p.total == len(progress) for p in progress)

    public = project / "public"
    index = (public / "index.html").read_text()
    assert "Test Library" in index
    assert "WIP" in index
    assert (public / "components/detail/button.html").is_file()
    assert "Go" in (public / "components/preview/button.html").read_text()
    assert "Welcome" in (public / "docs/intro.html").read_text()
    assert (public / "_theme/default.css").is_file()
    assert (public / "css/styleguide.css").read_text() == ".sg{color:#333}"
    assert not (project / ".public.staging").exists()


def test_failed_build_leaves_previous_output_untouched(guide: Styleguide, project: Path) -> None:
    write(project / "public/old.html", "previous export")
    write(project / "source/components/broken.html", "{% if %}")

    events = list(guide.builder().build())

    assert isinstance(events[-1], Failed)
    assert not any(isinstance(e, Completed) for e in events)
    assert (project / "public/old.html").read_text() == "previous export"
    assert not (project / ".public.staging").exists()


def test_rebuild_replaces_previous_output(guide: Styleguide, project: Path) -> None:
    write(project / "public/stale.html", "stale")
    events = list(guide.builder().build())
    assert isinstance(events[-1], Completed)
    assert not (project / "public/stale.html").exists()


def test_app_serves_pages_static_files_and_theme(guide: Styleguide) -> None:
    client = create_app(guide).test_client()

    assert b"Test Library" in client.get("/").data
    assert client.get("/components/detail/button.html").status_code == 200
    assert b"Go" in client.get("/components/preview/button.html").data
    assert client.get("/docs/intro.html").status_code == 200
    assert client.get("/components/detail/nope.html").status_code == 404
    assert client.get("/css/styleguide.css").data == b".sg{color:#333}"
    theme = client.get("/_theme/default.css")
    assert theme.mimetype == "text/css"


def test_app_picks_up_new_components_without_restart(guide: Styleguide, project: Path) -> None:
    client = create_app(guide).test_client()
    assert client.get("/components/detail/badge.html").status_code == 404
    write(project / "source/components/badge.html", "<span>new</span>")
    assert client.get("/components/detail/badge.html").status_code == 200


def test_server_starts_and_stops(guide: Styleguide) -> None:
    server = guide.server(host="127.0.0.1", port=0)
    server.start()
    try:
        assert server.port != 0
        with urllib.request.urlopen(server.url + "/", timeout=5) as resp:
            assert resp.status == 200
    finally:
        server.stop()
    assert not server.running
