from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SegmentType:
    """Internal enum for scanner output"""

    RUN = "run"
    OTHER = "other"


class Segment(NamedTuple):
    kind: str  # SegmentType.RUN or SegmentType.OTHER
    content: str


class HighlightEntry(BaseModel):
    """
    A resolved template variable as it should appear in the rendered preview.
    The highlighter looks for `value` in the HTML and wraps it in a span.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    value: str = Field(
        "",
        description="Display string substituted into the document (already formatted).",
    )

    is_missing: bool = Field(
        False,
        alias="isMissing",
        description="True when `value` is a 'not provided' placeholder rather than real data.",
    )

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, value):
        # Same coercion as substitution: None renders as nothing
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)
