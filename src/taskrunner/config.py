"""Build configuration: load once, validate up front, hand out a frozen view.

The document is JSON or YAML (JSON parses as YAML, so one loader covers both).
All problems are reported together so a broken config can be fixed in one pass.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import yaml

from .errors import ConfigValidationError
from .utils import _get
from .watch import WatchRule

DEFAULT_CONFIG_PATH = "build/config.json"

REQUIRED_STRINGS = [
    ("name",),
    ("paths", "sass", "sourcePath"),
    ("paths", "sass", "sourceStyleguidePath"),
    ("paths", "sass", "dist"),
    ("paths", "fonts", "source"),
    ("paths", "fonts", "dist"),
]
REQUIRED_STATUS_MAPS = [("status", "docs"), ("status", "component")]

DEFAULT_WATCH = [
    {"pattern": "source/components/**/*.scss", "task": "sass"},
    {"pattern": "source/scss/**/*.scss", "task": "sass"},
    {"pattern": "source/styleguide/**/*.scss", "task": "styleguide:sass"},
]


@dataclass(frozen=True)
class Status:
    label: str
    color: str | None = None


@dataclass(frozen=True)
class SassPaths:
    source: str
    styleguide_source: str
    dist: str


@dataclass(frozen=True)
class FontPaths:
    source: str
    dist: str


@dataclass(frozen=True)
class StyleguideSettings:
    components: str = "source/components"
    docs: str = "source/docs"
    static: str = "dist"
    dest: str = "public"
    styles: Tuple[str, ...] = ("default", "/css/styleguide.css")
    lang: str = "de"
    preview: str = "@preview"
    host: str = "127.0.0.1"
    port: int = 3000


@dataclass(frozen=True)
class BuildConfig:
    name: str
    doc_statuses: Mapping[str, Status]
    component_statuses: Mapping[str, Status]
    sass: SassPaths
    fonts: FontPaths
    styleguide: StyleguideSettings = field(default_factory=StyleguideSettings)
    watch: Tuple[WatchRule, ...] = ()
    watch_debounce: float = 0.2


def _dotted(keys: Tuple[str, ...]) -> str:
    return ".".join(keys)


def _statuses(raw: Dict[str, Any], keys: Tuple[str, ...], problems: List[str]) -> Dict[str, Status]:
    out: Dict[str, Status] = {}
    for sid, entry in raw.items():
        if isinstance(entry, str):
            out[str(sid)] = Status(label=entry)
        elif isinstance(entry, dict) and isinstance(entry.get("label"), str):
            color = entry.get("color")
            out[str(sid)] = Status(label=entry["label"], color=str(color) if color else None)
        else:
            problems.append(f"{_dotted(keys + (str(sid),))}: expected a label string or {{label, color}}")
    return out


def _styleguide(raw: Any, problems: List[str]) -> StyleguideSettings:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        problems.append("styleguide: expected a mapping")
        return StyleguideSettings()
    defaults = StyleguideSettings()
    kwargs: Dict[str, Any] = {}
    for key in ("components", "docs", "static", "dest", "preview", "host"):
        if key in raw:
            if not isinstance(raw[key], str) or not raw[key]:
                problems.append(f"styleguide.{key}: expected a non-empty string")
            else:
                kwargs[key] = raw[key]
    theme = raw.get("theme") or {}
    styles = theme.get("styles", list(defaults.styles)) if isinstance(theme, dict) else None
    if not isinstance(styles, list) or not all(isinstance(s, str) for s in styles):
        problems.append("styleguide.theme.styles: expected a list of strings")
    else:
        kwargs["styles"] = tuple(styles)
    if isinstance(theme, dict) and "lang" in theme:
        kwargs["lang"] = str(theme["lang"])
    port = os.getenv("STYLEGUIDE_PORT") or raw.get("port")
    if port is not None:
        try:
            kwargs["port"] = int(port)
        except (TypeError, ValueError):
            problems.append(f"styleguide.port: expected an integer, got {port!r}")
    return replace(defaults, **kwargs)


def _watch_rules(raw: Any, problems: List[str]) -> Tuple[WatchRule, ...]:
    if raw is None:
        raw = DEFAULT_WATCH
    if not isinstance(raw, list):
        problems.append("watch: expected a list of {pattern, task}")
        return ()
    rules: List[WatchRule] = []
    for i, entry in enumerate(raw):
        if (
            not isinstance(entry, dict)
            or not isinstance(entry.get("pattern"), str)
            or not isinstance(entry.get("task"), str)
        ):
            problems.append(f"watch[{i}]: expected {{pattern, task}} strings")
            continue
        rules.append(WatchRule(pattern=entry["pattern"], task=entry["task"]))
    return tuple(rules)


def parse_config(raw: Any, source: str | Path | None = None) -> BuildConfig:
    """Validate an already-parsed document and build a BuildConfig."""
    if not isinstance(raw, dict):
        raise ConfigValidationError(["<root>: expected a mapping"], source)
    problems: List[str] = []

    for keys in REQUIRED_STRINGS:
        value = _get(raw, *keys)
        if value is None:
            problems.append(f"{_dotted(keys)}: missing required key")
        elif not isinstance(value, str) or not value.strip():
            problems.append(f"{_dotted(keys)}: expected a non-empty string")

    statuses: Dict[Tuple[str, ...], Dict[str, Status]] = {}
    for keys in REQUIRED_STATUS_MAPS:
        value = _get(raw, *keys)
        if value is None:
            problems.append(f"{_dotted(keys)}: missing required key")
        elif not isinstance(value, dict) or not value:
            problems.append(f"{_dotted(keys)}: expected a non-empty mapping")
        else:
            statuses[keys] = _statuses(value, keys, problems)

    styleguide = _styleguide(raw.get("styleguide"), problems)
    watch = _watch_rules(raw.get("watch"), problems)

    debounce = raw.get("watchDebounce", 0.2)
    if isinstance(debounce, bool) or not isinstance(debounce, (int, float)) or debounce < 0:
        problems.append("watchDebounce: expected a non-negative number of seconds")
        debounce = 0.2

    if problems:
        raise ConfigValidationError(problems, source)

    return BuildConfig(
        name=raw["name"],
        doc_statuses=statuses[("status", "docs")],
        component_statuses=statuses[("status", "component")],
        sass=SassPaths(
            source=_get(raw, "paths", "sass", "sourcePath"),
            styleguide_source=_get(raw, "paths", "sass", "sourceStyleguidePath"),
            dist=_get(raw, "paths", "sass", "dist"),
        ),
        fonts=FontPaths(
            source=_get(raw, "paths", "fonts", "source"),
            dist=_get(raw, "paths", "fonts", "dist"),
        ),
        styleguide=styleguide,
        watch=watch,
        watch_debounce=float(debounce),
    )


def load_config(path: str | Path) -> BuildConfig:
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigValidationError([f"config file not found: {p}"], p) from None
    except yaml.YAMLError as e:
        raise ConfigValidationError([f"could not parse config: {e}"], p) from e
    return parse_config(raw, source=p)
