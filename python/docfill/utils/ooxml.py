"""
Low-level utilities for working on WordprocessingML parts as plain strings.

Parts are never parsed into a tree here: the scanner slices a part into runs
and the gaps between them, so untouched markup is carried through byte-for-byte.
"""

import re
from typing import List
from xml.sax.saxutils import escape

import structlog

from docfill.models import Segment, SegmentType

logger = structlog.get_logger(__name__)

# <w:r ...>...</w:r>. Self-closing <w:r/> has no text and is left to the gaps.
RUN_PATTERN = re.compile(r"<w:r(?:\s[^>]*)?(?<!/)>.*?</w:r>", re.DOTALL)

# <w:t>, <w:t xml:space="preserve"> or <w:t/>. Must not match <w:tab/>, <w:tbl>, ...
TEXT_NODE_PATTERN = re.compile(r"<w:t(?P<attrs>(?:\s[^>]*?)?)(?:/>|>(?P<text>.*?)</w:t>)", re.DOTALL)

PRESERVE_ATTR = ' xml:space="preserve"'
PRESERVE_ATTR_PATTERN = re.compile(r"""\s+xml:space=(["'])preserve\1""")

RUN_CLOSE = "</w:r>"

TAG_PATTERN = re.compile(r"<[^>]*>")

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(value: str) -> str:
    """Escapes & < > " ' for use inside a <w:t> node."""
    return escape(value, _XML_ENTITIES)


def brace_balance(text: str) -> int:
    return text.count("{") - text.count("}")


def is_empty_element_markup(markup: str) -> bool:
    """
    True when `markup` holds only self-closing tags (proofErr, bookmarkStart,
    lastRenderedPageBreak...) and whitespace, so removing it cannot unbalance
    the surrounding XML.
    """
    if TAG_PATTERN.sub("", markup).strip():
        return False
    return all(tag.endswith("/>") for tag in TAG_PATTERN.findall(markup))


def scan_segments(part: str) -> List[Segment]:
    """
    Splits an XML part into Run and Other segments.
    Joining the contents of the returned segments gives back `part` unchanged.
    """
    segments: List[Segment] = []
    last_index = 0

    for match in RUN_PATTERN.finditer(part):
        if match.start() > last_index:
            segments.append(Segment(SegmentType.OTHER, part[last_index : match.start()]))
        segments.append(Segment(SegmentType.RUN, match.group(0)))
        last_index = match.end()

    if last_index < len(part):
        segments.append(Segment(SegmentType.OTHER, part[last_index:]))

    return segments


def extract_run_text(run: str) -> str:
    """
    Concatenates the content of every <w:t> inside a run.
    Entities are kept as written (the result is XML text, not decoded text).
    """
    return "".join(match.group("text") or "" for match in TEXT_NODE_PATTERN.finditer(run))


def _open_text_tag(attrs: str, preserve: bool) -> str:
    if preserve:
        if not PRESERVE_ATTR_PATTERN.search(attrs):
            attrs = PRESERVE_ATTR + attrs
    else:
        attrs = PRESERVE_ATTR_PATTERN.sub("", attrs)
    return f"<w:t{attrs}>"


def clone_run_with_text(template_run: str, text: str) -> str:
    """
    Builds a new run with the formatting shell of `template_run` and a single
    text node holding `text`.

    The first text node of the template is rewritten, any further ones are
    dropped. Without a text node, one is inserted before </w:r>.
    """
    if not text:
        return ""

    preserve = text[0].isspace() or text[-1].isspace()
    replaced = False

    def _swap(match: re.Match) -> str:
        nonlocal replaced
        if replaced:
            return ""
        replaced = True
        return f"{_open_text_tag(match.group('attrs'), preserve)}{text}</w:t>"

    clone = TEXT_NODE_PATTERN.sub(_swap, template_run)
    if replaced:
        return clone

    insertion = f"{_open_text_tag('', preserve)}{text}</w:t>"
    injection_point = clone.rfind(RUN_CLOSE)
    if injection_point == -1:
        return clone + insertion
    return clone[:injection_point] + insertion + clone[injection_point:]


def collapse_run_text_nodes(part: str) -> str:
    """
    Merges the text nodes of a single run into one when a placeholder is split
    between them, e.g. <w:t>{</w:t><w:t>{name}}</w:t>.
    Runs whose text nodes each balance their own braces are returned untouched.
    """

    def _collapse(match: re.Match) -> str:
        run = match.group(0)
        texts = [node.group("text") or "" for node in TEXT_NODE_PATTERN.finditer(run)]
        if len(texts) < 2 or all(brace_balance(text) == 0 for text in texts):
            return run

        combined = "".join(texts)
        if "{{" not in combined and "}}" not in combined:
            return run

        logger.debug(f"Collapsing {len(texts)} text nodes into one: '{combined[:50]}'")
        return clone_run_with_text(run, combined)

    return RUN_PATTERN.sub(_collapse, part)
