"""
Highlights substituted template values inside externally rendered HTML.

Values are found through the markers left by substitution. When the markers did
not survive rendering, the highlighter falls back to a leftover literal
{{key}} and then to a plain search for the value in the HTML text nodes.
"""

import re
from html import escape
from typing import Dict, List, Mapping, Set, Tuple, Union

import structlog
from lxml import etree
from pydantic import ValidationError

from docfill.markers import MARKER_PATTERN, decode_marker_key
from docfill.models import HighlightEntry
from docfill.utils.html import inner_html, iter_text_nodes, parse_fragment

logger = structlog.get_logger(__name__)

HIGHLIGHT_CLASS = "highlighted"
HIGHLIGHT_MISSING_CLASS = "highlighted-missing"

EntryLike = Union[HighlightEntry, Mapping[str, object]]


def _coerce_entries(entries: Mapping[str, EntryLike]) -> Dict[str, HighlightEntry]:
    coerced: Dict[str, HighlightEntry] = {}
    for key, entry in entries.items():
        if isinstance(entry, HighlightEntry):
            coerced[key] = entry
            continue
        try:
            coerced[key] = HighlightEntry.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Skipping invalid highlight entry '{key}': {e.error_count()} errors")
    return coerced


def _span_open(key: str, entry: HighlightEntry, highlight_class: str, missing_class: str) -> str:
    class_name = missing_class if entry.is_missing else highlight_class
    return f'<span class="{escape(class_name)}" data-variable="{escape(key)}">'


def _literal_placeholder_pattern(key: str) -> "re.Pattern[str]":
    return re.compile(r"\{\{\s*" + re.escape(key) + r"\s*\}\}")


def _highlight_text_nodes(
    html: str,
    pending: List[Tuple[str, HighlightEntry]],
    highlight_class: str,
    missing_class: str,
) -> str:
    """Wraps the first plain-text occurrence of each pending value."""
    try:
        container = parse_fragment(html)
    except (etree.LxmlError, ValueError) as e:
        logger.warning(f"Could not parse rendered HTML for highlighting: {e}")
        return html

    wrapped = 0
    for key, entry in pending:
        for node in iter_text_nodes(container):
            if node.has_ancestor_class(highlight_class, missing_class):
                continue

            index = node.text.find(entry.value)
            if index == -1:
                continue

            node.wrap(
                index,
                index + len(entry.value),
                "span",
                {"class": missing_class if entry.is_missing else highlight_class, "data-variable": key},
            )
            wrapped += 1
            break
        else:
            logger.debug(f"Value for '{key}' not found in rendered HTML")

    if not wrapped:
        return html
    return inner_html(container)


def highlight(
    html: str,
    entries: Mapping[str, EntryLike],
    *,
    highlight_class: str = HIGHLIGHT_CLASS,
    missing_class: str = HIGHLIGHT_MISSING_CLASS,
) -> str:
    """
    Wraps every substituted value in `html` in a highlight span.

    Args:
        html: HTML rendered from a document filled by `substitute`.
        entries: Normalized key -> HighlightEntry (or a mapping with `value`
                 and `isMissing`/`is_missing`).
        highlight_class: Class for values backed by real data.
        missing_class: Class for values flagged `is_missing`.

    Returns:
        The annotated HTML. Values that cannot be located are left as they are.
    """
    if not html:
        return html

    highlights = _coerce_entries(entries or {})
    satisfied: Set[str] = set()

    # 1. Markers that survived rendering
    def _from_markers(match: re.Match) -> str:
        key = decode_marker_key(match.group("key"))
        content = match.group("content")
        entry = highlights.get(key)
        if entry is None:
            return content
        satisfied.add(key)
        return f"{_span_open(key, entry, highlight_class, missing_class)}{content}</span>"

    result = MARKER_PATTERN.sub(_from_markers, html)

    # 2. Fallback for everything the markers did not cover
    pending: List[Tuple[str, HighlightEntry]] = []
    for key, entry in highlights.items():
        if key in satisfied or not entry.value.strip():
            continue

        span = f"{_span_open(key, entry, highlight_class, missing_class)}{escape(entry.value)}</span>"
        result, count = _literal_placeholder_pattern(key).subn(lambda _: span, result)
        if count:
            satisfied.add(key)
            continue

        pending.append((key, entry))

    if pending:
        result = _highlight_text_nodes(result, pending, highlight_class, missing_class)

    logger.debug(f"Highlighted {len(satisfied)} values, searched text for {len(pending)}")
    return result


def plain_text_to_html(content: str) -> str:
    """
    Renders a plain-text template body as HTML paragraphs.
    Blank lines separate paragraphs; single newlines become <br />.
    Content that already carries HTML tags is returned as-is (trimmed).
    """
    if not content:
        return ""

    trimmed = content.strip()
    if not trimmed:
        return ""

    if re.search(r"</?[a-z][\s\S]*>", trimmed, re.IGNORECASE):
        return trimmed

    paragraphs = []
    for paragraph in re.split(r"\n{2,}", trimmed):
        safe = escape(paragraph).replace("\n", "<br />")
        paragraphs.append(f"<p>{safe}</p>")
    return "".join(paragraphs)
