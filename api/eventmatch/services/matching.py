from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable

from sqlalchemy.exc import SQLAlchemyError

from .. import repo
from ..config import MATCH_FILTER_DEFAULT_LIMIT, MATCH_FILTER_MAX_LIMIT, MATCH_GENERATE_TOP_K, PRUNE_STALE_MATCHES
from ..errors import GenderUnknown, ProfileNotFound, StoreWriteFailure
from .events import log_match_event
from .scoring import compute_compatibility_score, normalize_gender
from .store import store_read

logger = logging.getLogger(__name__)

DISPLAY_FIELDS = (
    "first_name",
    "last_name",
    "display_name",
    "city",
    "state",
    "date_of_birth",
    "age_range",
    "gender",
    "profile_picture_urls",
)


@dataclass
class ScoredCandidate:
    user_id: str
    compatibility_score: int
    rank: int = 0
    profile: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "profile": self.profile,
            "compatibility_score": self.compatibility_score,
        }


def display_profile(row: dict[str, Any] | None) -> dict[str, Any]:
    row = row or {}
    out = {k: row.get(k) for k in DISPLAY_FIELDS}
    if out["date_of_birth"] is not None:
        out["date_of_birth"] = str(out["date_of_birth"])
    urls = out.get("profile_picture_urls")
    out["profile_picture_urls"] = [str(u) for u in urls] if isinstance(urls, list) else []
    return out


def rank_candidates(
    viewer: dict[str, Any],
    attendees: Iterable[dict[str, Any]],
    *,
    viewer_id: str | None = None,
    today: date | None = None,
) -> list[ScoredCandidate]:
    """Score attendees from the viewer's side and order them best first.

    ``attendees`` are ``{"user_id", "profile"}`` rows in join order. Rows
    without a profile and the viewer's own row are skipped. ``sorted`` is
    stable, so equal scores keep join order.
    """
    scored: list[ScoredCandidate] = []
    for a in attendees:
        user_id = str(a.get("user_id") or "")
        profile = a.get("profile")
        if not user_id or not profile or user_id == viewer_id:
            continue
        scored.append(
            ScoredCandidate(
                user_id=user_id,
                compatibility_score=compute_compatibility_score(viewer, profile, today),
                profile=display_profile(profile),
            )
        )
    ranked = sorted(scored, key=lambda c: c.compatibility_score, reverse=True)
    for i, c in enumerate(ranked):
        c.rank = i
    return ranked


def generate_matches(db, event_id: str, user_id: str, *, today: date | None = None) -> list[dict[str, Any]]:
    with store_read(db, f"generate event={event_id} viewer={user_id}"):
        viewer = repo.get_profile(db, user_id)
        if not viewer:
            raise ProfileNotFound()
        attendees = repo.list_attendee_profiles(db, event_id, exclude_user_id=user_id)
    dropped = sum(1 for a in attendees if not a.get("profile"))
    if dropped:
        logger.info(f"[matching] event={event_id} viewer={user_id} skipped {dropped} attendee(s) without a profile")

    ranked = rank_candidates(viewer, attendees, viewer_id=user_id, today=today)
    if MATCH_GENERATE_TOP_K > 0:
        ranked = ranked[:MATCH_GENERATE_TOP_K]

    rows = [{"user_id": c.user_id, "compatibility_score": c.compatibility_score, "rank": c.rank} for c in ranked]
    try:
        repo.upsert_match_records(db, event_id, user_id, rows)
        pruned = 0
        if PRUNE_STALE_MATCHES:
            pruned = repo.delete_stale_match_records(db, event_id, user_id, [c.user_id for c in ranked])
        log_match_event(
            db,
            "matches_generated",
            event_id=event_id,
            user_id=user_id,
            payload={"candidates": len(rows), "dropped": dropped, "pruned": pruned},
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"[matching] event={event_id} viewer={user_id} match list write failed: {exc}")
        raise StoreWriteFailure() from exc

    logger.info(f"[matching] event={event_id} viewer={user_id} stored {len(rows)} candidate(s)")
    return [c.as_dict() for c in ranked]


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return MATCH_FILTER_DEFAULT_LIMIT
    return max(1, min(MATCH_FILTER_MAX_LIMIT, int(limit)))


def build_exclusion_set(viewer_id: str, responded_ids: Iterable[str], exclude_ids: Iterable[str] | None) -> set[str]:
    excluded = {str(x) for x in responded_ids if x}
    excluded.update(str(x) for x in (exclude_ids or []) if x)
    excluded.add(str(viewer_id))
    return excluded


def apply_gender_policy(viewer_gender: str, rows: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep only candidates whose gender is set and differs from the viewer's."""
    mine = normalize_gender(viewer_gender)
    out: list[dict[str, Any]] = []
    for r in rows:
        theirs = normalize_gender(r.get("gender"))
        if not theirs or theirs == mine:
            continue
        out.append(r)
    return out


def filter_matches(
    db,
    event_id: str,
    viewer_id: str,
    exclude_ids: Iterable[str] | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    with store_read(db, f"filter event={event_id} viewer={viewer_id}"):
        viewer = repo.get_profile(db, viewer_id)
        if not viewer:
            raise ProfileNotFound()
        viewer_gender = normalize_gender(viewer.get("gender"))
        if not viewer_gender:
            raise GenderUnknown()

        responded = repo.list_responded_target_ids(db, event_id, viewer_id)
        excluded = build_exclusion_set(viewer_id, responded, exclude_ids)
        rows = repo.list_match_records(db, event_id, viewer_id, sorted(excluded), clamp_limit(limit))
    kept = apply_gender_policy(viewer_gender, rows)

    logger.debug(
        f"[matching] filter event={event_id} viewer={viewer_id} excluded={len(excluded)} "
        f"fetched={len(rows)} returned={len(kept)}"
    )
    return [
        {
            "user_id": str(r["user_id"]),
            "profile": display_profile(r),
            "compatibility_score": int(r.get("compatibility_score") or 0),
        }
        for r in kept
    ]
