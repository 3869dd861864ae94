"""
Repairs placeholders that the authoring tool split across several runs.

Word breaks text like {{deal_full_name}} into runs whenever spell-checking,
language detection or an edit session touches part of it:

    <w:r><w:t>{{</w:t></w:r>
    <w:proofErr w:type="spellStart"/>
    <w:r><w:t>deal_full_name</w:t></w:r>
    <w:proofErr w:type="spellEnd"/>
    <w:r><w:t>}}</w:t></w:r>

After reassembly every placeholder sits inside exactly one run, formatted like
the run that opened it, so substitution can work on plain text.
"""

from typing import List, Sequence, Tuple

import structlog

from docfill.models import Segment, SegmentType
from docfill.template.substitution import split_placeholders
from docfill.utils.ooxml import (
    brace_balance,
    clone_run_with_text,
    collapse_run_text_nodes,
    extract_run_text,
    is_empty_element_markup,
    scan_segments,
)

logger = structlog.get_logger(__name__)


def _collect_window(segments: Sequence[Segment], start: int, text: str) -> Tuple[int, str, int]:
    """
    Extends a window from the run at `start` until its braces balance.

    Returns (end, combined_text, balance) where `end` is the exclusive index of
    the window. The window stops before any markup that opens or closes an
    element (paragraph ends, tracked changes, hyperlinks, fields). Only
    self-closing markers are ever dropped from a merged run.
    """
    combined = text
    balance = brace_balance(text)
    cursor = start + 1

    while balance > 0 and cursor < len(segments):
        segment = segments[cursor]
        if segment.kind == SegmentType.RUN:
            run_text = extract_run_text(segment.content)
            combined += run_text
            balance += brace_balance(run_text)
        elif not is_empty_element_markup(segment.content):
            break
        cursor += 1

    return cursor, combined, balance


def reassemble(xml_part: str) -> str:
    """
    Guarantees every {{...}} placeholder in an XML part is held by a single run.

    Parts that are already clean come back byte-for-byte identical. A placeholder
    that never closes is left exactly as it was written.
    """
    if not xml_part:
        return xml_part

    segments = scan_segments(collapse_run_text_nodes(xml_part))
    result: List[str] = []
    index = 0
    merged = 0

    while index < len(segments):
        segment = segments[index]

        if segment.kind != SegmentType.RUN:
            result.append(segment.content)
            index += 1
            continue

        base_text = extract_run_text(segment.content)
        if "{{" not in base_text or brace_balance(base_text) <= 0:
            result.append(segment.content)
            index += 1
            continue

        end, combined, balance = _collect_window(segments, index, base_text)
        window = segments[index:end]

        if balance > 0 or "}}" not in combined:
            logger.warning(f"Unterminated placeholder left untouched: '{combined[:50]}'")
            result.extend(s.content for s in window)
            index = end
            continue

        # Other segments in the window are self-closing split markers (proofErr, bookmarks)
        for piece in split_placeholders(combined):
            result.append(clone_run_with_text(segment.content, piece))

        merged += 1
        logger.debug(f"Merged {len(window)} segments into placeholder runs: '{combined[:50]}'")
        index = end

    if merged:
        logger.info(f"Reassembled {merged} fragmented placeholders")

    return "".join(result)
