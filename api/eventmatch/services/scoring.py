from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any

AGE_RANGES: tuple[str, ...] = (
    "Below 25",
    "26-30",
    "31-35",
    "36-40",
    "41-45",
    "46-50",
    "51-55",
    "56-60",
    "61-65",
    "66-70",
    "71-75",
    "76+",
)

MAX_SCORE = 100
DAYS_PER_YEAR = 365.25

AGE_GAP_POINTS: tuple[tuple[int, int], ...] = ((2, 30), (5, 20), (10, 10))
AGE_RANGE_SAME_POINTS = 25
AGE_RANGE_ADJACENT_POINTS = 10
GENDER_POINTS = 50
CITY_POINTS = 25
STATE_POINTS = 15
MARITAL_STATUS_POINTS = 15
HAS_KIDS_POINTS = 10


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def normalize_gender(value: Any) -> str | None:
    if not _present(value):
        return None
    return str(value).strip().lower()


def _parse_date(value: Any) -> date | None:
    if not _present(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def age_in_years(date_of_birth: Any, today: date | None = None) -> int | None:
    dob = _parse_date(date_of_birth)
    if dob is None:
        return None
    today = today or datetime.now(timezone.utc).date()
    return math.floor((today - dob).days / DAYS_PER_YEAR)


def age_range_index(value: Any) -> int | None:
    if not _present(value):
        return None
    try:
        return AGE_RANGES.index(str(value).strip())
    except ValueError:
        return None


def _age_points(viewer: dict[str, Any], candidate: dict[str, Any], today: date | None) -> int:
    viewer_age = age_in_years(viewer.get("date_of_birth"), today)
    candidate_age = age_in_years(candidate.get("date_of_birth"), today)
    if viewer_age is None or candidate_age is None:
        return 0
    diff = abs(viewer_age - candidate_age)
    for max_gap, points in AGE_GAP_POINTS:
        if diff <= max_gap:
            return points
    return 0


def _age_range_points(viewer: dict[str, Any], candidate: dict[str, Any]) -> int:
    a = age_range_index(viewer.get("age_range"))
    b = age_range_index(candidate.get("age_range"))
    if a is None or b is None:
        return 0
    d = abs(a - b)
    if d == 0:
        return AGE_RANGE_SAME_POINTS
    if d == 1:
        return AGE_RANGE_ADJACENT_POINTS
    return 0


def _equal_points(viewer: dict[str, Any], candidate: dict[str, Any], key: str, points: int) -> int:
    a = viewer.get(key)
    b = candidate.get(key)
    if _present(a) and _present(b) and a == b:
        return points
    return 0


def score_breakdown(viewer: dict[str, Any], candidate: dict[str, Any], today: date | None = None) -> dict[str, int]:
    viewer = viewer or {}
    candidate = candidate or {}
    viewer_gender = normalize_gender(viewer.get("gender"))
    candidate_gender = normalize_gender(candidate.get("gender"))
    return {
        "age": _age_points(viewer, candidate, today),
        "age_range": _age_range_points(viewer, candidate),
        "gender": GENDER_POINTS if viewer_gender and candidate_gender and viewer_gender != candidate_gender else 0,
        "city": _equal_points(viewer, candidate, "city", CITY_POINTS),
        "state": _equal_points(viewer, candidate, "state", STATE_POINTS),
        "marital_status": _equal_points(viewer, candidate, "marital_status", MARITAL_STATUS_POINTS),
        "has_kids": _equal_points(viewer, candidate, "has_kids", HAS_KIDS_POINTS),
    }


def compute_compatibility_score(viewer: dict[str, Any], candidate: dict[str, Any], today: date | None = None) -> int:
    """Viewer's directional compatibility with a candidate, 0..100.

    Missing attributes on either side skip their term. The raw sum can exceed
    100, so the clamp is applied after every term has been added.
    """
    raw = sum(score_breakdown(viewer, candidate, today).values())
    return max(0, min(raw, MAX_SCORE))
