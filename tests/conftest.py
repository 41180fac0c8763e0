# tests/conftest.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from taskrunner.config import BuildConfig, parse_config

from .helpers import write


@pytest.fixture()
def raw_config() -> dict:
    """Config document mirroring build/config.json, with paths relative to the project dir."""
    return {
        "name": "Test Library",
        "status": {
            "docs": {"draft": {"label": "Draft", "color": "#f33"}, "ready": "Ready"},
            "component": {
                "wip": {"label": "WIP", "color": "#f93"},
                "ready": {"label": "Ready", "color": "#2c2"},
            },
        },
        "paths": {
            "sass": {
                "sourcePath": "source/scss/*.scss",
                "sourceStyleguidePath": "source/styleguide/*.scss",
                "dist": "dist/css",
            },
            "fonts": {"source": "source/fonts/**/*", "dist": "dist/fonts"},
        },
        "styleguide": {
            "components": "source/components",
            "docs": "source/docs",
            "static": "dist",
            "dest": "public",
        },
        "watchDebounce": 0.05,
    }


@pytest.fixture()
def config(raw_config: dict) -> BuildConfig:
    return parse_config(raw_config)


@pytest.fixture()
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, raw_config: dict) -> Path:
    """
    A small styleguide project on disk; the working directory is moved into it
    because every configured path is relative.
    """
    monkeypatch.chdir(tmp_path)
    write(tmp_path / "build" / "config.json", json.dumps(raw_config))

    write(tmp_path / "source/scss/_vars.scss", "$brand: #c00;\n")
    write(tmp_path / "source/scss/main.scss", '@import "vars";\n.btn { color: $brand; }\n')
    write(tmp_path / "source/styleguide/styleguide.scss", ".sg { margin: 0 auto; }\n")
    (tmp_path / "source/fonts/open-sans").mkdir(parents=True)
    (tmp_path / "source/fonts/open-sans/regular.woff2").write_bytes(b"\x00wOF2fake")

    write(
        tmp_path / "source/components/button/button.html",
        '<button class="btn">{{ label }}</button>\n',
    )
    write(
        tmp_path / "source/components/button/button.config.yml",
        "title: Button\nstatus: wip\ncontext:\n  label: Go\n",
    )
    write(tmp_path / "source/components/button/README.md", "Use for **primary** actions.\n")
    write(tmp_path / "source/components/card.html", '<div class="card">{{ title | default("Card") }}</div>\n')
    write(
        tmp_path / "source/docs/intro.md",
        "---\ntitle: Introduction\nstatus: draft\n---\n# Welcome\n\nSome *docs*.\n",
    )
    return tmp_path
