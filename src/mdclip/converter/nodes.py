"""Helpers for inspecting BeautifulSoup nodes."""

from bs4 import NavigableString, Tag
from bs4.element import PageElement

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

BLOCK_TAGS = frozenset({
    "address", "article", "aside", "audio", "blockquote", "body", "canvas",
    "center", "dd", "details", "dir", "div", "dl", "dt", "fieldset",
    "figcaption", "figure", "footer", "form", "frameset", "h1", "h2", "h3",
    "h4", "h5", "h6", "header", "hgroup", "hr", "html", "isindex", "li",
    "main", "menu", "nav", "noframes", "noscript", "ol", "output", "p", "pre",
    "section", "summary", "table", "tbody", "td", "tfoot", "th", "thead",
    "tr", "ul",
})


def is_block(node: PageElement | None) -> bool:
    """Return True for block-level elements and the document root."""
    if not isinstance(node, Tag):
        return False
    return node.name in BLOCK_TAGS or node.name == "[document]"


def has_class(node: PageElement | None, class_name: str) -> bool:
    return isinstance(node, Tag) and class_name in (node.get("class") or [])


def heading_only_child(anchor: Tag) -> Tag | None:
    """Return the heading if it is the anchor's only child, else None.

    Whitespace-only text around the heading does not count as a child.
    """
    heading = None
    for child in anchor.children:
        if isinstance(child, Tag):
            if heading is not None or child.name not in HEADING_TAGS:
                return None
            heading = child
        elif isinstance(child, NavigableString) and child.strip():
            return None
    return heading
