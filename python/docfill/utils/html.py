"""
Minimal text-node visitor over an lxml.html tree.

lxml stores text on elements (`.text` before the first child, `.tail` after the
element itself) instead of as separate nodes. TextNode hides that split so the
highlighter only sees "a piece of text, where it lives, and how to wrap part
of it".
"""

from html import escape
from typing import Dict, Iterator, Optional

import lxml.html
from lxml import etree

SKIP_TAGS = {"script", "style"}


class TextNode:
    __slots__ = ("element", "is_tail")

    def __init__(self, element, is_tail: bool = False):
        self.element = element
        self.is_tail = is_tail

    @property
    def text(self) -> str:
        return (self.element.tail if self.is_tail else self.element.text) or ""

    @property
    def owner(self):
        """The element the text is rendered inside."""
        return self.element.getparent() if self.is_tail else self.element

    def has_ancestor_class(self, *classes: str) -> bool:
        owner = self.owner
        while owner is not None:
            tokens = (owner.get("class") or "").split()
            if any(cls in tokens for cls in classes):
                return True
            owner = owner.getparent()
        return False

    def wrap(self, start: int, end: int, tag: str, attrib: Optional[Dict[str, str]] = None):
        """Moves text[start:end] into a new child element and returns it."""
        text = self.text
        wrapper = self.owner.makeelement(tag, attrib or {})
        wrapper.text = text[start:end]
        wrapper.tail = text[end:] or None

        if self.is_tail:
            self.element.tail = text[:start] or None
            parent = self.element.getparent()
            parent.insert(parent.index(self.element) + 1, wrapper)
        else:
            self.element.text = text[:start] or None
            self.element.insert(0, wrapper)

        return wrapper


def iter_text_nodes(element) -> Iterator[TextNode]:
    """Yields the text nodes below `element` in document order."""
    if isinstance(element.tag, str) and element.tag not in SKIP_TAGS and element.text:
        yield TextNode(element)

    if isinstance(element.tag, str) and element.tag in SKIP_TAGS:
        return

    for child in element:
        yield from iter_text_nodes(child)
        if child.tail:
            yield TextNode(child, is_tail=True)


def parse_fragment(html: str):
    """Parses an HTML fragment under a synthetic <div> container."""
    return lxml.html.fragment_fromstring(html, create_parent="div")


def inner_html(container) -> str:
    parts = [escape(container.text or "", quote=False)]
    for child in container:
        parts.append(etree.tostring(child, encoding="unicode", method="html", with_tail=True))
    return "".join(parts)
