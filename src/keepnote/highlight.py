# FILE: src/keepnote/highlight.py
"""
Search-match highlighting for note titles and rendered note bodies.

Matching ignores case and accents but the highlighted output always keeps the
original characters. Markup input is handled through `keepnote.markup_tree`,
so only text leaves are rewritten and earlier highlight wrappers are removed
before new ones are added.
"""

import re
import unicodedata
from typing import List, Tuple

import structlog

from keepnote.markup_tree import (
    ElementNode,
    Node,
    TextNode,
    escape_html,
    map_text,
    merge_text,
    parse_markup,
    serialize,
    unwrap,
)

logger = structlog.get_logger(__name__)

HIGHLIGHT_TAG = "mark"
HIGHLIGHT_CLASS = "search-highlight"

_COMBINING_MARKS_RE = re.compile("[\u0300-\u036f]")

__all__ = [
    "HIGHLIGHT_CLASS",
    "HIGHLIGHT_TAG",
    "escape_html",
    "find_matches",
    "highlight_markup",
    "highlight_plain_text",
    "normalize_for_match",
]


def _fold(ch: str) -> str:
    try:
        return _COMBINING_MARKS_RE.sub("", unicodedata.normalize("NFD", ch)).lower()
    except (ValueError, TypeError) as e:
        logger.debug(f"Falling back to lowercase-only matching for {ch!r}: {e}")
        return ch.lower()


def normalize_for_match(text: str) -> Tuple[str, List[int]]:
    """
    Lowercases text and strips diacritics, one character at a time.
    Returns (normalized_text, position_map) where position_map[i] is the index
    in text of the character that produced normalized_text[i].
    """
    result = []
    position_map = []

    for index, ch in enumerate(text):
        for folded in _fold(ch):
            result.append(folded)
            position_map.append(index)

    return "".join(result), position_map


def find_matches(text: str, query: str) -> List[Tuple[int, int]]:
    """
    Finds non-overlapping occurrences of query in text, scanning left to right.
    Returns (start, end) spans into the original text. A span that ends right
    before stripped combining marks takes those marks with it.
    """
    query_norm, _ = normalize_for_match(query)
    if not query_norm:
        return []

    text_norm, position_map = normalize_for_match(text)
    spans: List[Tuple[int, int]] = []
    i = 0
    last_end = 0

    while True:
        idx = text_norm.find(query_norm, i)
        if idx == -1:
            break

        end_norm = idx + len(query_norm)
        start = max(position_map[idx], last_end)
        end = position_map[end_norm] if end_norm < len(position_map) else len(text)

        if start < end:
            spans.append((start, end))
            last_end = end
        i = end_norm

    return spans


def _highlight_node() -> ElementNode:
    return ElementNode(tag=HIGHLIGHT_TAG, attributes={"class": HIGHLIGHT_CLASS})


def _split_text(text: str, query: str) -> List[Node]:
    nodes: List[Node] = []
    cursor = 0

    for start, end in find_matches(text, query):
        if start > cursor:
            nodes.append(TextNode(text[cursor:start]))
        mark = _highlight_node()
        mark.children.append(TextNode(text[start:end]))
        nodes.append(mark)
        cursor = end

    if cursor < len(text):
        nodes.append(TextNode(text[cursor:]))
    return nodes


def _is_highlight(node: ElementNode) -> bool:
    return node.tag == HIGHLIGHT_TAG and node.has_class(HIGHLIGHT_CLASS)


def highlight_plain_text(text: str, query: str) -> str:
    """
    Escapes plain text and wraps each match of query in a highlight marker.
    With a blank query the escaped text comes back unchanged.
    """
    text = text or ""
    q = (query or "").strip()
    if not q:
        return escape_html(text)

    return serialize(merge_text(_split_text(text, q)))


def highlight_markup(markup: str, query: str) -> str:
    """
    Highlights query matches inside already-rendered markup.

    Previous highlight markers are unwrapped first, so calling this again with
    the same or a different query never nests or accumulates markers. A blank
    query just clears them. Matches are looked for inside each text leaf on its
    own; a match straddling a styling boundary is not highlighted.
    """
    nodes = parse_markup(markup or "")
    if not nodes:
        return ""

    nodes = unwrap(nodes, _is_highlight)

    q = (query or "").strip()
    if q:
        nodes = map_text(nodes, lambda text: _split_text(text, q))

    return serialize(nodes)
