"""
Field resolver + value coercers over RawNode trees.

Lookup is centralized in `resolve()`: callers pass an ordered list of
candidate keys and the resolver expands each candidate into a fixed set of
case variants (exact, all-lowercase, capitalized-first-letter). Candidate
order always beats variant order. Nothing else in the normalizer reads
RawNode keys directly.

Coercers never raise on dirty input; unusable values come back as None
("absent"), which callers keep distinct from present-but-empty.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from typing import Any
from urllib.parse import urljoin, urlparse

from .feed_tree import TEXT_KEY

# Preferred language order for multi-language text nodes
PREFERRED_LANGUAGES: tuple[str, ...] = ("en", "ru", "el", "de")

TRUE_WORDS = frozenset({"true", "1", "yes"})

# URL collection: nested image objects expose one main field and one gallery array
MAIN_IMAGE_KEYS: tuple[str, ...] = ("MainImage", "Main", "Cover", "Preview")
GALLERY_KEYS: tuple[str, ...] = ("AdditionalImages", "Gallery", "Photos")
IMAGE_ITEM_KEYS: tuple[str, ...] = ("AdditionalImage", "Image", "Photo", "Url", "Src")

_NUMERIC_JUNK_RE = re.compile(r"[^\d.\-]")
_LIST_SPLIT_RE = re.compile(r"[,;|]")

# ---------- Resolver ----------


def case_variants(key: str) -> list[str]:
    """exact → lowercase → Capitalized-first-letter, without repeats."""
    out: list[str] = []
    for v in (key, key.lower(), key[:1].upper() + key[1:]):
        if v not in out:
            out.append(v)
    return out


def resolve(node: Any, candidates: Sequence[str]) -> list[Any] | None:
    """
    Return the raw value list of the first candidate key present in `node`.

    None means absent (no candidate/variant matched); a present key always
    yields its list, even when the list only holds "".
    """
    if not isinstance(node, dict):
        return None
    for cand in candidates:
        for key in case_variants(cand):
            val = node.get(key)
            if val is not None:
                return val
    return None


def first(value: Any) -> Any:
    """First element of a RawNode value list (or the value itself)."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def resolve_first(node: Any, candidates: Sequence[str]) -> Any:
    return first(resolve(node, candidates))


def scalar_text(value: Any) -> str | None:
    """Plain text of a scalar, a one-item list, or a node's "_" text."""
    v = first(value)
    if v is None:
        return None
    if isinstance(v, dict):
        inner = v.get(TEXT_KEY)
        return scalar_text(inner) if inner else None
    return str(v).strip()


# ---------- Scalars ----------


def to_number(value: Any) -> float | None:
    """
    Dirty-string → float. Keeps digits, '.', '-'; anything malformed or
    non-finite is absent (None).
    """
    v = first(value)
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        f = float(v)
        return f if math.isfinite(f) else None
    s = scalar_text(v)
    if not s:
        return None
    cleaned = _NUMERIC_JUNK_RE.sub("", s)
    if not cleaned:
        return None
    try:
        f = float(cleaned)
    except ValueError:
        return None
    return f if math.isfinite(f) else None


def to_int(value: Any) -> int | None:
    f = to_number(value)
    return int(round(f)) if f is not None else None


def to_bool(value: Any) -> bool:
    s = scalar_text(value)
    return bool(s) and s.lower() in TRUE_WORDS


def to_flag(value: Any) -> bool | None:
    """Tri-state boolean: None when the value is absent or empty."""
    s = scalar_text(value)
    if not s:
        return None
    return s.lower() in TRUE_WORDS


# ---------- Text ----------


def to_text(value: Any, languages: Sequence[str] = PREFERRED_LANGUAGES) -> str | None:
    """
    Multi-language text. A node keyed by language code yields the first
    preferred language present, then the element's own text (attributes such as
    lang="en" never win over it), then the first non-empty value under any key.
    Plain strings pass through trimmed; empty results are None.
    """
    v = first(value)
    if v is None:
        return None
    if not isinstance(v, dict):
        s = str(v).strip()
        return s or None

    for lang in languages:
        s = to_text(resolve(v, [lang]), languages)
        if s:
            return s
    text = scalar_text(v.get(TEXT_KEY))
    if text:
        return text
    for key, entries in v.items():
        if key == TEXT_KEY:
            continue
        s = to_text(entries, languages)
        if s:
            return s
    return None


def split_list(value: Any) -> list[str]:
    """Delimited string (',' ';' '|') → trimmed, non-empty entries."""
    s = scalar_text(value)
    if not s:
        return []
    return [p.strip() for p in _LIST_SPLIT_RE.split(s) if p.strip()]


def to_text_list(value: Any, item_keys: Sequence[str] = ("Feature", "Item", "Value")) -> list[str]:
    """
    Array-ish text collection: a list of strings, a wrapper node holding
    repeated item elements (each possibly multi-language), or one delimited
    string. Order is kept; duplicates are left to the caller.
    """
    if value is None:
        return []
    entries = value if isinstance(value, list) else [value]
    out: list[str] = []
    for entry in entries:
        if isinstance(entry, dict):
            items = resolve(entry, item_keys)
            if items is not None:
                out.extend(t for t in (to_text(i) for i in items) if t)
                continue
            t = to_text(entry)
            if t:
                out.append(t)
        else:
            out.extend(split_list(entry))
    return out


# ---------- URLs ----------


def _absolutize(url: str, base_url: str | None) -> str | None:
    s = url.strip()
    if not s:
        return None
    if s.startswith("//"):
        s = "https:" + s
    if urlparse(s).scheme in ("http", "https"):
        return s
    if base_url:
        joined = urljoin(base_url, s)
        return joined if urlparse(joined).scheme in ("http", "https") else None
    return None


def _walk_urls(value: Any) -> Iterable[str]:
    if value is None:
        return
    if isinstance(value, list):
        for item in value:
            yield from _walk_urls(item)
        return
    if not isinstance(value, dict):
        yield str(value)
        return

    # Nested image object: main first, then the gallery array, then bare items
    yield from _walk_urls(resolve(value, MAIN_IMAGE_KEYS))
    gallery = resolve(value, GALLERY_KEYS)
    for wrapper in gallery or []:
        if isinstance(wrapper, dict):
            yield from _walk_urls(resolve(wrapper, IMAGE_ITEM_KEYS))
        else:
            yield from _walk_urls(wrapper)
    yield from _walk_urls(resolve(value, IMAGE_ITEM_KEYS))
    text = value.get(TEXT_KEY)
    if text:
        yield from _walk_urls(text)


def collect_urls(value: Any, *, base_url: str | None = None) -> list[str]:
    """
    Collect image URLs from a bare string, a list of strings, or a nested
    {main, gallery[]} object. Result is de-duplicated in first-seen order,
    empty entries dropped, relative URLs resolved against `base_url`
    (dropped when no base is known).
    """
    seen: set[str] = set()
    out: list[str] = []
    for raw in _walk_urls(value):
        url = _absolutize(raw, base_url)
        if url and url not in seen:
            seen.add(url)
            out.append(url)
    return out


__all__ = [
    "PREFERRED_LANGUAGES",
    "case_variants",
    "resolve",
    "resolve_first",
    "first",
    "scalar_text",
    "to_number",
    "to_int",
    "to_bool",
    "to_flag",
    "to_text",
    "split_list",
    "to_text_list",
    "collect_urls",
]
