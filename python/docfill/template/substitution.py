import re
from typing import Dict, List, Mapping, Optional

import structlog

from docfill.markers import wrap_with_markers
from docfill.utils.ooxml import escape_xml

logger = structlog.get_logger(__name__)

# {{ key }}: flat keys only, dots allowed, no nested braces.
PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


def _prepare_replacements(replacements: Mapping[str, object]) -> Dict[str, str]:
    prepared: Dict[str, str] = {}
    for raw_key, raw_value in replacements.items():
        key = str(raw_key).strip()
        if not key:
            continue
        prepared[key] = "" if raw_value is None else str(raw_value)
    return prepared


def substitute(xml_part: str, replacements: Optional[Mapping[str, object]]) -> str:
    """
    Replaces every {{ key }} found in `replacements` with the XML-escaped value
    wrapped in OPEN/CLOSE markers.

    Matching is exact and case-sensitive on the trimmed key. Unknown keys are
    left as literal text so unresolved variables stay visible in the output.
    Substituted values are never scanned again.
    """
    if not xml_part or not replacements:
        return xml_part

    values = _prepare_replacements(replacements)
    replaced = 0
    unknown: List[str] = []

    def _replace(match: re.Match) -> str:
        nonlocal replaced
        key = match.group(1)
        if key not in values:
            unknown.append(key)
            return match.group(0)
        replaced += 1
        return wrap_with_markers(key, escape_xml(values[key]))

    result = PLACEHOLDER_PATTERN.sub(_replace, xml_part)

    if unknown:
        logger.debug(f"Left {len(unknown)} placeholders without a value: {sorted(set(unknown))}")
    logger.debug(f"Substituted {replaced} placeholders")
    return result


def split_placeholders(text: str) -> List[str]:
    """
    Splits text into alternating literal and placeholder pieces.
    Empty pieces are dropped; joining the result gives back `text`.
    """
    pieces: List[str] = []
    cursor = 0

    for match in PLACEHOLDER_PATTERN.finditer(text):
        if match.start() > cursor:
            pieces.append(text[cursor : match.start()])
        pieces.append(match.group(0))
        cursor = match.end()

    if cursor < len(text):
        pieces.append(text[cursor:])

    return pieces


def find_placeholders(xml_part: str) -> List[str]:
    """Normalized keys of every placeholder in the part, in order of first appearance."""
    keys: List[str] = []
    for match in PLACEHOLDER_PATTERN.finditer(xml_part or ""):
        key = match.group(1).strip()
        # A match that spans markup is an unrepaired fragment, not a key
        if not key or "<" in key or ">" in key:
            continue
        if key not in keys:
            keys.append(key)
    return keys
