"""Glob and config-lookup helpers shared by the runner, the file pipeline and the watcher."""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List

_WILDCARDS = "*?["


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def slugify(s: str) -> str:
    s = (s or "").strip().lower().replace("_", "-")
    s = re.sub(r"[\s/\\]+", "-", s)
    return re.sub(r"[^a-z0-9.-]", "", s).strip("-")


def has_magic(pattern: str) -> bool:
    return any(ch in pattern for ch in _WILDCARDS)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern:
    """Translate a glob to a regex. Wildcards never match a segment's leading dot."""
    i, n = 0, len(pattern)
    out: List[str] = []
    while i < n:
        c = pattern[i]
        nodot = r"(?!\.)" if i == 0 or pattern[i - 1] == "/" else ""
        if pattern.startswith("**/", i):
            out.append(r"(?:(?!\.)[^/]+/)*")
            i += 3
        elif pattern.startswith("**", i):
            out.append(r"(?:(?!\.)[^/]*/)*(?!\.)[^/]*")
            i += 2
        elif c == "*":
            out.append(nodot + "[^/]*")
            i += 1
        elif c == "?":
            out.append(nodot + "[^/]")
            i += 1
        elif c == "[":
            j = pattern.find("]", i + 1)
            if j == -1:
                out.append(re.escape(c))
                i += 1
            else:
                body = pattern[i + 1 : j]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"{nodot}[{body}]")
                i = j + 1
        else:
            out.append(re.escape(c))
            i += 1
    return re.compile("".join(out) + r"\Z")


def _posix(path: Any) -> str:
    return str(path).replace(os.sep, "/")


def glob_match(path: str | Path, pattern: str) -> bool:
    """Match a path against a glob where `*` stays inside one segment and `**/` spans any depth."""
    return _compile(_posix(pattern)).match(_posix(path)) is not None


def glob_base(pattern: str) -> Path:
    """Leading directory of a glob with no wildcards; a plain file's parent."""
    parts = PurePosixPath(_posix(pattern)).parts
    if not has_magic(pattern):
        return Path(*parts).parent if parts else Path(".")
    lead: List[str] = []
    for part in parts:
        if has_magic(part):
            break
        lead.append(part)
    return Path(*lead) if lead else Path(".")


def expand_glob(pattern: str) -> List[Path]:
    """Files matching `pattern`, sorted. A non-glob path yields itself if it exists."""
    if not has_magic(pattern):
        p = Path(pattern)
        return [p] if p.is_file() else []
    base = glob_base(pattern)
    # `./src/*.scss` should match files reported as `src/a.scss`
    norm = os.path.normpath(pattern)
    paths: List[Path] = []
    for root, _, files in os.walk(base):
        for file in files:
            p = Path(root) / file
            if glob_match(os.path.normpath(p), norm):
                paths.append(p)
    return sorted(paths)
