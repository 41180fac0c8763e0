"""Page rendering shared by the static builder and the live server."""

from __future__ import annotations

import functools
import itertools
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

import yaml
from jinja2 import DictLoader, Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .source import Component, Doc, load_components, load_docs

if TYPE_CHECKING:
    from . import Styleguide

THEME_CSS_PATH = "_theme/default.css"

THEME_CSS = """\
body{margin:0;font-family:system-ui,-apple-system,"Segoe UI",sans-serif;color:#222;display:flex;min-height:100vh}
.sg-nav{width:16rem;flex-shrink:0;background:#f4f4f6;padding:1rem;border-right:1px solid #ddd;overflow-y:auto}
.sg-nav h2{font-size:.8rem;text-transform:uppercase;color:#666;margin:1.5rem 0 .5rem}
.sg-nav h3{font-size:.85rem;margin:.75rem 0 .25rem}
.sg-nav ul{list-style:none;margin:0;padding:0}
.sg-nav a{color:#0b5394;text-decoration:none}
.sg-brand{font-weight:700;font-size:1.1rem}
main{flex:1;padding:1.5rem 2rem;min-width:0}
.sg-status{display:inline-block;padding:.1rem .5rem;border-radius:.75rem;font-size:.75rem;color:#fff;background:#888;vertical-align:middle}
.sg-preview{width:100%;min-height:12rem;border:1px solid #ddd;background:#fff}
pre{background:#f7f7f7;padding:1rem;overflow-x:auto}
"""

TEMPLATES: Dict[str, str] = {
    "macros.html": """\
{% macro badge(statuses, sid) -%}
{%- set st = statuses.get(sid) -%}
<span class="sg-status"{% if st and st.color %} style="background: {{ st.color }}"{% endif %}>{{ st.label if st else sid }}</span>
{%- endmacro %}
""",
    "layout.html": """\
<!DOCTYPE html>
<html lang="{{ lang }}">
<head>
<meta charset="utf-8">
<title>{% block title %}{{ project }}{% endblock %}</title>
{% for href in styles %}<link rel="stylesheet" href="{{ href }}">
{% endfor %}</head>
<body>
<nav class="sg-nav">
<a class="sg-brand" href="{{ root }}index.html">{{ project }}</a>
<h2>Components</h2>
{% for collection, items in collections %}{% if collection %}<h3>{{ collection }}</h3>{% endif %}
<ul>{% for c in items %}<li><a href="{{ root }}components/detail/{{ c.handle }}.html">{{ c.title }}</a></li>{% endfor %}</ul>
{% endfor %}
<h2>Documentation</h2>
<ul>{% for d in docs %}<li><a href="{{ root }}docs/{{ d.slug }}.html">{{ d.title }}</a></li>{% endfor %}</ul>
</nav>
<main>{% block content %}{% endblock %}</main>
</body>
</html>
""",
    "index.html": """\
{% extends "layout.html" %}
{% from "macros.html" import badge %}
{% block content %}
<h1>{{ project }}</h1>
<p>{{ components|length }} component(s), {{ docs|length }} documentation page(s).</p>
<table>
<thead><tr><th>Component</th><th>Collection</th><th>Status</th></tr></thead>
<tbody>{% for c in components %}
<tr><td><a href="{{ root }}components/detail/{{ c.handle }}.html">{{ c.title }}</a></td><td>{{ c.collection }}</td><td>{{ badge(component_statuses, c.status) }}</td></tr>{% endfor %}
</tbody>
</table>
{% endblock %}
""",
    "component.html": """\
{% extends "layout.html" %}
{% from "macros.html" import badge %}
{% block title %}{{ component.title }} | {{ project }}{% endblock %}
{% block content %}
<h1>{{ component.title }} {{ badge(component_statuses, component.status) }}</h1>
<iframe class="sg-preview" src="{{ root }}components/preview/{{ component.handle }}.html" title="{{ component.title }} preview"></iframe>
{% if component.notes %}<section class="sg-notes">{{ component.notes|safe }}</section>{% endif %}
<h2>Template</h2>
<pre><code>{{ component.source }}</code></pre>
{% if context_yaml %}<h2>Context</h2>
<pre><code>{{ context_yaml }}</code></pre>{% endif %}
{% endblock %}
""",
    "doc.html": """\
{% extends "layout.html" %}
{% from "macros.html" import badge %}
{% block title %}{{ doc.title }} | {{ project }}{% endblock %}
{% block content %}
{% if doc.status %}<p>{{ badge(doc_statuses, doc.status) }}</p>{% endif %}
<article>{{ doc.body|safe }}</article>
{% endblock %}
""",
    "preview.html": """\
<!DOCTYPE html>
<html lang="{{ lang }}">
<head>
<meta charset="utf-8">
<title>{{ component.title }}</title>
{% for href in styles %}<link rel="stylesheet" href="{{ href }}">
{% endfor %}</head>
<body>
{{ content }}
</body>
</html>
""",
}

Page = Tuple[str, Callable[[], str]]


def _href(style: str, root: str) -> str:
    if style.startswith(("http://", "https://", "//")):
        return style
    return root + style.lstrip("/")


class Renderer:
    """Snapshot of the component library, able to render every page of the site."""

    def __init__(self, guide: "Styleguide"):
        self.guide = guide
        settings = guide.settings
        self.components: List[Component] = load_components(
            Path(settings.components), guide.component_statuses, guide.logger
        )
        self.docs: List[Doc] = load_docs(Path(settings.docs), guide.doc_statuses, guide.logger)
        self._by_handle = {c.handle: c for c in self.components}
        self._by_slug = {d.slug: d for d in self.docs}
        self._site = Environment(loader=DictLoader(TEMPLATES), autoescape=True)
        self._library = Environment(
            loader=FileSystemLoader(settings.components),
            autoescape=select_autoescape(["html"]),
        )

    @property
    def preview_template(self) -> Optional[str]:
        name = "_" + self.guide.settings.preview.lstrip("@") + ".html"
        if (Path(self.guide.settings.components) / name).is_file():
            return name
        return None

    def _styles(self, root: str, include_default: bool = True) -> List[str]:
        hrefs = []
        for style in self.guide.settings.styles:
            if style == "default":
                if include_default:
                    hrefs.append(root + THEME_CSS_PATH)
            else:
                hrefs.append(_href(style, root))
        return hrefs

    def _page(self, template: str, root: str, **ctx) -> str:
        ordered = sorted(self.components, key=lambda c: (c.collection, c.title))
        collections = [
            (name, list(items))
            for name, items in itertools.groupby(ordered, key=lambda c: c.collection)
        ]
        return self._site.get_template(template).render(
            project=self.guide.title,
            lang=self.guide.settings.lang,
            styles=self._styles(root),
            root=root,
            components=self.components,
            collections=collections,
            docs=self.docs,
            component_statuses=self.guide.component_statuses,
            doc_statuses=self.guide.doc_statuses,
            **ctx,
        )

    def render_index(self) -> str:
        return self._page("index.html", root="")

    def render_component(self, handle: str) -> str:
        component = self._by_handle[handle]
        context_yaml = (
            yaml.safe_dump(component.context, sort_keys=False, allow_unicode=True)
            if component.context
            else ""
        )
        return self._page(
            "component.html", root="../../", component=component, context_yaml=context_yaml
        )

    def render_preview(self, handle: str) -> str:
        component = self._by_handle[handle]
        body = Markup(self._library.get_template(component.template).render(**component.context))
        root = "../../"
        params = dict(
            content=body,
            component=component,
            lang=self.guide.settings.lang,
            root=root,
            styles=self._styles(root, include_default=False),
        )
        wrapper = self.preview_template
        if wrapper is not None:
            return self._library.get_template(wrapper).render(**params)
        return self._site.get_template("preview.html").render(**params)

    def render_doc(self, slug: str) -> str:
        return self._page("doc.html", root="../", doc=self._by_slug[slug])

    def pages(self) -> List[Page]:
        """Every output file of a static export, as (relative path, render callable)."""
        pages: List[Page] = [
            ("index.html", self.render_index),
            (THEME_CSS_PATH, lambda: THEME_CSS),
        ]
        for c in self.components:
            pages.append((f"components/detail/{c.handle}.html", functools.partial(self.render_component, c.handle)))
            pages.append((f"components/preview/{c.handle}.html", functools.partial(self.render_preview, c.handle)))
        for d in self.docs:
            pages.append((f"docs/{d.slug}.html", functools.partial(self.render_doc, d.slug)))
        return pages
