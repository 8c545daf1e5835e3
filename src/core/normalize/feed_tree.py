"""
Structural parser (XML feed → RawNode tree).

Every element becomes a list entry under its tag name, even when it occurs
once, so downstream lookups are uniformly positional:

    <Export date="2024-01-01">
      <RealtyObject Id="7"><Price currency="EUR">120000</Price></RealtyObject>
    </Export>

    {"Export": [{"date": ["2024-01-01"],
                 "RealtyObject": [{"Id": ["7"],
                                   "Price": [{"currency": ["EUR"], "_": ["120000"]}]}]}]}

Rules:
  - tag casing is preserved verbatim (namespaces reduced to local names)
  - attributes share the key space; a same-named child element wins
  - a leaf with no attributes is its whitespace-normalized text ("" if empty)
  - text of an element that also has attributes/children lives under "_"
"""

from __future__ import annotations

import re
from typing import Union

from lxml import etree

from src.core.errors import ParseError

RawValue = Union["RawNode", str]
RawNode = dict[str, list[RawValue]]

TEXT_KEY = "_"

_WS_RE = re.compile(r"\s+")
_XML_DECL_RE = re.compile(r"^\s*<\?xml[^>]*\?>")


def _norm_text(text: str | None) -> str:
    return _WS_RE.sub(" ", text).strip() if text else ""


def _local_name(tag: str) -> str:
    return etree.QName(tag).localname


def _element_text(el: etree._Element) -> str:
    # Direct text plus tails of child elements (mixed content), children excluded
    parts = [el.text or ""]
    parts.extend(child.tail or "" for child in el)
    return _norm_text("".join(parts))


def _convert(el: etree._Element) -> RawValue:
    children = [c for c in el if isinstance(c.tag, str)]
    text = _element_text(el)

    if not el.attrib and not children:
        return text

    node: RawNode = {}
    for name, value in el.attrib.items():
        node[_local_name(name)] = [_norm_text(value)]

    claimed: set[str] = set()
    for child in children:
        key = _local_name(child.tag)
        if key not in claimed:
            # Child elements take precedence over a same-named attribute
            node[key] = []
            claimed.add(key)
        node[key].append(_convert(child))

    if text:
        node.setdefault(TEXT_KEY, []).append(text)
    return node


def _make_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
        huge_tree=False,
        recover=False,
    )


def parse_feed(raw: bytes | str) -> RawNode:
    """
    Parse raw feed markup into a RawNode tree rooted at {root_tag: [root_node]}.

    Raises ParseError (no partial tree) when the markup is empty or not well-formed.
    """
    if isinstance(raw, str):
        # lxml refuses str input that still carries an encoding declaration
        raw = _XML_DECL_RE.sub("", raw, count=1).lstrip()
    if not raw or not raw.strip():
        raise ParseError("feed is empty")

    try:
        root = etree.fromstring(raw, parser=_make_parser())
    except etree.XMLSyntaxError as e:
        raise ParseError(f"malformed feed markup: {e}") from e
    except ValueError as e:
        raise ParseError(f"unreadable feed payload: {e}") from e

    return {_local_name(root.tag): [_convert(root)]}


__all__ = ["RawNode", "RawValue", "TEXT_KEY", "parse_feed"]
