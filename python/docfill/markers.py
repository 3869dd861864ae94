"""
Sentinel markers wrapped around every substituted value.

The markers travel as plain text through the DOCX and the external renderer,
so the highlighter can find each value again in the resulting HTML.
The key is percent-encoded (encodeURIComponent rules) so it can never contain
the closing bracket of the marker.

Format: [[__OPEN__{key}__]]value[[__CLOSE__{key}__]]
"""

import re
from urllib.parse import quote, unquote

MARKER_OPEN_PREFIX = "[[__OPEN__"
MARKER_CLOSE_PREFIX = "[[__CLOSE__"
MARKER_SUFFIX = "__]]"

# Same encoded key on both sides; content is matched lazily.
MARKER_PATTERN = re.compile(
    r"\[\[__OPEN__(?P<key>[^\]]+?)__\]\](?P<content>.*?)\[\[__CLOSE__(?P=key)__\]\]",
    re.DOTALL,
)

_UNRESERVED = "-_.!~*'()"


def encode_marker_key(key: str) -> str:
    return quote(key, safe=_UNRESERVED)


def decode_marker_key(encoded: str) -> str:
    return unquote(encoded)


def open_marker(key: str) -> str:
    return f"{MARKER_OPEN_PREFIX}{encode_marker_key(key)}{MARKER_SUFFIX}"


def close_marker(key: str) -> str:
    return f"{MARKER_CLOSE_PREFIX}{encode_marker_key(key)}{MARKER_SUFFIX}"


def wrap_with_markers(key: str, content: str) -> str:
    return f"{open_marker(key)}{content}{close_marker(key)}"
