"""Discovery of components and documentation pages on disk."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import markdown
import yaml

from taskrunner.errors import StyleguideBuildError
from taskrunner.utils import slugify

CONFIG_SUFFIXES = (".config.yml", ".config.yaml", ".config.json")
MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]

_FRONT_MATTER = re.compile(r"\A---[ \t]*\n(.*?)\n---[ \t]*\n", re.S)


@dataclass
class Component:
    handle: str
    title: str
    collection: str
    template: str  # loader name, posix path relative to the components root
    source: str
    status: str
    context: Dict[str, Any] = field(default_factory=dict)
    notes: str = ""


@dataclass
class Doc:
    slug: str
    title: str
    status: str | None
    body: str
    path: Path


def render_markdown(text: str) -> str:
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)


def default_status(statuses: Mapping[str, Any]) -> str:
    if "ready" in statuses or not statuses:
        return "ready"
    return next(iter(statuses))


def _hidden(rel: Path) -> bool:
    return any(part.startswith(("_", ".")) for part in rel.parts)


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise StyleguideBuildError(f"Could not parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise StyleguideBuildError(f"{path}: expected a mapping")
    return data


def _component_config(template: Path) -> Dict[str, Any]:
    for suffix in CONFIG_SUFFIXES:
        candidate = template.with_name(template.stem + suffix)
        if candidate.is_file():
            return _read_yaml(candidate)
    return {}


def _component_notes(template: Path) -> str:
    for candidate in (template.with_suffix(".md"), template.parent / "README.md"):
        if candidate.is_file():
            return render_markdown(candidate.read_text(encoding="utf-8"))
    return ""


def load_components(
    root: Path, statuses: Mapping[str, Any], logger: logging.Logger
) -> List[Component]:
    if not root.is_dir():
        logger.warning("Components directory %s does not exist", root)
        return []
    fallback = default_status(statuses)
    components: List[Component] = []
    seen: Dict[str, Path] = {}
    for path in sorted(root.rglob("*.html")):
        rel = path.relative_to(root)
        if _hidden(rel):
            continue
        handle = slugify(path.stem)
        if handle in seen:
            raise StyleguideBuildError(
                f"Duplicate component handle '{handle}': {seen[handle]} and {path}"
            )
        seen[handle] = path

        conf = _component_config(path)
        status = str(conf.get("status") or fallback)
        if status not in statuses:
            logger.warning("Component %s has unknown status '%s'", handle, status)
        context = conf.get("context") or {}
        if not isinstance(context, dict):
            raise StyleguideBuildError(f"{path}: 'context' must be a mapping")
        collection = rel.parent.as_posix()
        components.append(
            Component(
                handle=handle,
                title=str(conf.get("title") or path.stem.replace("-", " ").title()),
                collection="" if collection == "." else collection,
                template=rel.as_posix(),
                source=path.read_text(encoding="utf-8"),
                status=status,
                context=context,
                notes=_component_notes(path),
            )
        )
    return components


def _split_front_matter(text: str, path: Path) -> Tuple[Dict[str, Any], str]:
    m = _FRONT_MATTER.match(text)
    if not m:
        return {}, text
    try:
        meta = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as e:
        raise StyleguideBuildError(f"Bad front matter in {path}: {e}") from e
    if not isinstance(meta, dict):
        raise StyleguideBuildError(f"Bad front matter in {path}: expected a mapping")
    return meta, text[m.end():]


def _first_heading(text: str) -> str | None:
    for line in text.splitlines():
        if line.startswith("# "):
            return line[2:].strip()
    return None


def load_docs(root: Path, statuses: Mapping[str, Any], logger: logging.Logger) -> List[Doc]:
    if not root.is_dir():
        logger.warning("Docs directory %s does not exist", root)
        return []
    docs: List[Doc] = []
    for path in sorted(root.rglob("*.md")):
        rel = path.relative_to(root)
        if _hidden(rel):
            continue
        meta, body = _split_front_matter(path.read_text(encoding="utf-8"), path)
        status = meta.get("status")
        if status is not None and status not in statuses:
            logger.warning("Doc %s has unknown status '%s'", rel, status)
        docs.append(
            Doc(
                slug=slugify(rel.with_suffix("").as_posix()),
                title=str(meta.get("title") or _first_heading(body) or path.stem.replace("-", " ").title()),
                status=str(status) if status is not None else None,
                body=render_markdown(body),
                path=path,
            )
        )
    return docs
