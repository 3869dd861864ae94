"""
Helpers for the dictionaries handed to the engine.

Formatting values (currency, dates, "not provided" text) is the caller's job;
these only normalize keys and reshape already formatted data.
"""

import re
from typing import Dict, Mapping, Optional

from docfill.models import HighlightEntry

_WRAPPED_KEY = re.compile(r"^\{\{\s*(.*?)\s*\}\}$", re.DOTALL)
_PLAIN_PLACEHOLDER = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")


def normalize_variable_key(value: Optional[str]) -> str:
    """'{{ deal.deal_cpf }}' -> 'deal.deal_cpf'; bare keys are only trimmed."""
    if not value:
        return ""
    value = value.strip()
    match = _WRAPPED_KEY.match(value)
    if match:
        value = match.group(1)
    return value.strip()


def flatten_replacements(data: Mapping[str, object]) -> Dict[str, str]:
    """
    Flattens nested mappings into dotted keys:
    {"deal": {"deal_cpf": 123}} -> {"deal.deal_cpf": "123"}.
    None becomes an empty string; every other leaf goes through str().
    """
    result: Dict[str, str] = {}

    def visit(value: object, path: str):
        if isinstance(value, Mapping):
            for key, nested in value.items():
                visit(nested, f"{path}.{key}" if path else str(key))
            return
        result[path] = "" if value is None else str(value)

    for key, value in data.items():
        visit(value, str(key))

    return result


def render_plain_template(body: Optional[str], entries: Mapping[str, HighlightEntry]) -> str:
    """
    Renders a plain-text template body with the display values of `entries`.
    Placeholders without an entry render as an empty string.
    """
    if not body:
        return ""

    def _replace(match: re.Match) -> str:
        entry = entries.get(normalize_variable_key(match.group(1)))
        return entry.value if entry is not None else ""

    return _PLAIN_PLACEHOLDER.sub(_replace, body)
