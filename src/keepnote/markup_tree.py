"""
Small node tree for rendered note markup.

Rendered content is parsed once into `TextNode` / `ElementNode` values so that
passes such as search highlighting can rewrite text leaves without ever
touching tags or attributes, then serialized back to HTML.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union

import structlog
from selectolax.lexbor import LexborHTMLParser

logger = structlog.get_logger(__name__)

_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#039;",
}

# Content of these never reaches the rendering surface
_DROPPED_TAGS = {"script", "style", "noscript", "template"}

_VOID_TAGS = {
    "area",
    "base",
    "br",
    "col",
    "embed",
    "hr",
    "img",
    "input",
    "link",
    "meta",
    "source",
    "track",
    "wbr",
}


def escape_html(text: str) -> str:
    """Escapes & < > " ' so the text can be injected as markup."""
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


@dataclass
class TextNode:
    text: str


@dataclass
class ElementNode:
    tag: str
    attributes: Dict[str, Optional[str]] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)

    def has_class(self, name: str) -> bool:
        classes = self.attributes.get("class") or ""
        return name in classes.split()

    def text_content(self) -> str:
        return text_content(self.children)


Node = Union[TextNode, ElementNode]


def text_content(nodes: List[Node]) -> str:
    parts = []
    for node in nodes:
        if isinstance(node, TextNode):
            parts.append(node.text)
        else:
            parts.append(node.text_content())
    return "".join(parts)


def parse_markup(html: str) -> List[Node]:
    """
    Parses an HTML fragment into a list of top-level nodes.

    The fragment is fed after an explicit <body> tag so leading whitespace is
    kept as text instead of being dropped by the document prologue rules.
    Returns an empty list for empty input or when the parser gives up.
    """
    if not html:
        return []

    try:
        tree = LexborHTMLParser("<body>" + html)
    except (RuntimeError, ValueError, TypeError) as e:
        logger.warning(f"Could not parse markup, rendering nothing: {e}")
        return []

    body = tree.body
    if body is None:
        return []
    return _convert_children(body)


def _convert_children(parent) -> List[Node]:
    nodes: List[Node] = []
    child = parent.child
    while child is not None:
        converted = _convert(child)
        if converted is not None:
            nodes.append(converted)
        child = child.next
    return nodes


def _convert(node) -> Optional[Node]:
    tag = node.tag or ""

    # Text node - selectolax uses "-text" as the tag
    if tag == "-text":
        text = node.text_content
        return TextNode(text) if text else None

    # Comments, doctype and friends
    if tag.startswith("-") or tag.startswith("_") or tag in _DROPPED_TAGS:
        return None

    attributes = {
        name: value for name, value in node.attributes.items() if not name.lower().startswith("on")
    }
    return ElementNode(tag=tag, attributes=attributes, children=_convert_children(node))


def serialize(nodes: List[Node]) -> str:
    return "".join(_serialize_node(node) for node in nodes)


def _serialize_node(node: Node) -> str:
    if isinstance(node, TextNode):
        return escape_html(node.text)

    attrs = ""
    for name, value in node.attributes.items():
        if value is None:
            attrs += f" {name}"
        else:
            attrs += f' {name}="{escape_html(value)}"'

    if node.tag in _VOID_TAGS:
        return f"<{node.tag}{attrs}>"
    return f"<{node.tag}{attrs}>{serialize(node.children)}</{node.tag}>"


def unwrap(nodes: List[Node], predicate: Callable[[ElementNode], bool]) -> List[Node]:
    """
    Replaces every element matching predicate with a text node holding its
    text content. Adjacent text is merged afterwards.
    """
    result: List[Node] = []
    for node in nodes:
        if isinstance(node, TextNode):
            result.append(node)
        elif predicate(node):
            result.append(TextNode(node.text_content()))
        else:
            result.append(ElementNode(node.tag, dict(node.attributes), unwrap(node.children, predicate)))
    return merge_text(result)


def merge_text(nodes: List[Node]) -> List[Node]:
    """Joins runs of adjacent text nodes and drops empty ones, one level deep."""
    merged: List[Node] = []
    for node in nodes:
        if isinstance(node, TextNode):
            if not node.text:
                continue
            if merged and isinstance(merged[-1], TextNode):
                merged[-1] = TextNode(merged[-1].text + node.text)
                continue
        merged.append(node)
    return merged


def map_text(nodes: List[Node], fn: Callable[[str], List[Node]]) -> List[Node]:
    """
    Rebuilds the tree with every text leaf replaced by the nodes fn returns
    for it. Element structure is carried over unchanged.
    """
    result: List[Node] = []
    for node in nodes:
        if isinstance(node, TextNode):
            result.extend(fn(node.text))
        else:
            result.append(ElementNode(node.tag, dict(node.attributes), map_text(node.children, fn)))
    return result
