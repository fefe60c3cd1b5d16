"""Analysis result contract shared by every provider."""

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .exceptions import ParseError

DEFAULT_CAPACITY = 50
DEFAULT_CONFIDENCE = 70
DEFAULT_REASONING = "Analysis completed"

MAX_CAPACITY = 150
MAX_CONFIDENCE = 100


class CongestionStatus(str, Enum):
    """Four-way crowding label for a carriage."""

    EMPTY = "empty"
    FEW_PEOPLE = "few_people"
    MODERATE = "moderate"
    FULL = "full"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AnalysisResult:
    """Normalized congestion reading for one frame."""

    status: CongestionStatus
    capacity: int
    confidence: int
    reasoning: str

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "capacity": self.capacity,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }


def _coerce_status(value: Any) -> CongestionStatus:
    if isinstance(value, CongestionStatus):
        return value
    if isinstance(value, str):
        try:
            return CongestionStatus(value)
        except ValueError:
            pass
    return CongestionStatus.MODERATE


def _coerce_number(value: Any) -> Optional[float]:
    """Best-effort numeric conversion. Returns None for unusable input.

    Infinities are kept so the caller can clamp them; NaN counts as missing.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return value

    return None


def _clamp(value: Any, default: int, upper: int) -> int:
    number = _coerce_number(value)
    if number is None:
        number = default
    return int(round(max(0, min(upper, number))))


def validate_result(raw: Union[Mapping[str, Any], AnalysisResult]) -> AnalysisResult:
    """Apply the default and clamp rules to a raw analysis payload.

    Malformed or out-of-range fields are corrected, never rejected.

    Args:
        raw: Parsed JSON object from a backend, or an existing result

    Returns:
        A fully normalized AnalysisResult
    """
    if isinstance(raw, AnalysisResult):
        raw = raw.to_dict()

    reasoning = raw.get("reasoning")
    if reasoning is None or reasoning == "":
        reasoning = DEFAULT_REASONING
    elif not isinstance(reasoning, str):
        reasoning = str(reasoning)

    return AnalysisResult(
        status=_coerce_status(raw.get("status")),
        capacity=_clamp(raw.get("capacity"), DEFAULT_CAPACITY, MAX_CAPACITY),
        confidence=_clamp(raw.get("confidence"), DEFAULT_CONFIDENCE, MAX_CONFIDENCE),
        reasoning=reasoning,
    )


def extract_json(text: Optional[str]) -> dict:
    """Pull the embedded JSON object out of a model reply.

    Takes everything from the first ``{`` to the last ``}``. Stray braces in
    the surrounding prose will break this.

    Raises:
        ParseError: If no brace-delimited span exists or it is not valid JSON
    """
    text = text or ""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ParseError("Failed to extract JSON from response")

    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to extract JSON from response: {e}") from e


def parse_analysis_response(text: Optional[str]) -> AnalysisResult:
    """Extract and normalize the analysis JSON from a backend reply."""
    return validate_result(extract_json(text))


def degraded_result(reasoning: str) -> AnalysisResult:
    """Neutral result returned when every provider failed."""
    return AnalysisResult(
        status=CongestionStatus.MODERATE,
        capacity=DEFAULT_CAPACITY,
        confidence=0,
        reasoning=reasoning,
    )
