import math
from typing import Any, Mapping, Optional


def as_float(x: Any) -> Optional[float]:
    """Safely coerce a value to float; returns None for non-parsable values."""
    if x is None:
        return None
    if isinstance(x, bool):
        return 1.0 if x else 0.0
    if isinstance(x, (int, float)):
        return float(x)
    try:
        s = str(x).strip().replace(",", "")
        if not s:
            return None
        return float(s)
    except (TypeError, ValueError):
        return None


def clean_value(x: Any) -> Optional[float]:
    """
    Normalise a measured value.

    NaN, infinities, negatives and anything that does not parse as a number
    are reported as absent (None). Zero is a real value.
    """
    v = as_float(x)
    if v is None or not math.isfinite(v) or v < 0:
        return None
    return v


def get_value(biomarkers: Optional[Mapping[str, Any]], name: str) -> Optional[float]:
    """Look up a biomarker and clean it; missing keys are absent."""
    if not biomarkers:
        return None
    return clean_value(biomarkers.get(name))


def is_flag_set(biomarkers: Optional[Mapping[str, Any]], name: str) -> bool:
    """Yes/no markers (smoking, diabetes, bp_medication, ...) are set when equal to 1."""
    return get_value(biomarkers, name) == 1.0


def count_present(biomarkers: Optional[Mapping[str, Any]]) -> int:
    if not biomarkers:
        return 0
    return sum(1 for v in biomarkers.values() if clean_value(v) is not None)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
