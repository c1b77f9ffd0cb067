from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from .. import repo
from ..errors import InvalidResponse, StoreWriteFailure
from .events import log_match_event
from .state_machine import normalize_response, transition_response
from .store import store_read

logger = logging.getLogger(__name__)


@dataclass
class ResponseOutcome:
    accepted: bool
    mutual_match: bool
    connection_pending: bool = False
    connection_id: str | None = None


def ensure_accepted_connection(db, requester_id: str, addressee_id: str) -> dict[str, Any] | None:
    """Mark the pair connected, reusing an existing row in either ordering."""
    existing = repo.accept_existing_connection(db, requester_id, addressee_id)
    if existing:
        return existing
    return repo.upsert_connection(db, requester_id, addressee_id, "accepted")


def _flag_missing_connection(db, event_id: str, viewer_id: str, target_id: str, exc: Exception) -> None:
    logger.warning(
        f"[responses] mutual match event={event_id} viewer={viewer_id} target={target_id} "
        f"recorded without a connection: {exc}"
    )
    try:
        log_match_event(
            db,
            "connection_upsert_failed",
            event_id=event_id,
            user_id=viewer_id,
            payload={"target_user_id": target_id, "error": str(exc)[:500]},
        )
        db.commit()
    except SQLAlchemyError as log_exc:
        db.rollback()
        logger.error(f"[responses] could not persist reconciliation flag for event={event_id}: {log_exc}")


def respond_to_match(db, event_id: str, viewer_id: str, target_id: str, response: Any) -> ResponseOutcome:
    decision = normalize_response(response)
    if decision is None:
        raise InvalidResponse()
    if str(viewer_id) == str(target_id):
        raise InvalidResponse("You cannot respond to yourself", reason="self_response")

    try:
        previous = repo.get_match_response(db, event_id, viewer_id, target_id)
        repo.upsert_match_response(db, event_id, viewer_id, target_id, decision)
        log_match_event(
            db,
            "response_recorded",
            event_id=event_id,
            user_id=viewer_id,
            payload={
                "target_user_id": target_id,
                "from": (previous or {}).get("response") or "unset",
                "to": transition_response((previous or {}).get("response"), decision),
            },
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"[responses] event={event_id} viewer={viewer_id} target={target_id} write failed: {exc}")
        raise StoreWriteFailure() from exc

    if decision != "like":
        return ResponseOutcome(accepted=True, mutual_match=False)

    with store_read(
        db,
        f"reciprocal event={event_id} viewer={viewer_id} target={target_id}",
        "Your response was saved but the mutual match check failed, please retry",
    ):
        reciprocal = repo.get_match_response(db, event_id, target_id, viewer_id)
    if not reciprocal or reciprocal.get("response") != "like":
        return ResponseOutcome(accepted=True, mutual_match=False)

    try:
        connection = ensure_accepted_connection(db, viewer_id, target_id)
        log_match_event(
            db,
            "mutual_match",
            event_id=event_id,
            user_id=viewer_id,
            payload={"target_user_id": target_id, "connection_id": str((connection or {}).get("id") or "")},
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        _flag_missing_connection(db, event_id, viewer_id, target_id, exc)
        return ResponseOutcome(accepted=True, mutual_match=True, connection_pending=True)

    logger.info(f"[responses] mutual match event={event_id} users={viewer_id},{target_id}")
    return ResponseOutcome(
        accepted=True,
        mutual_match=True,
        connection_id=str(connection["id"]) if connection and connection.get("id") else None,
    )


def reconcile_mutual_matches(db, event_id: str | None = None, limit: int = 500) -> dict[str, Any]:
    """Create the missing connection for every mutual like that lacks one.

    Repairs both a failed connection write and the case where two likes were
    submitted concurrently and neither request saw the other.
    """
    with store_read(db, f"reconcile event={event_id or '*'}"):
        pairs = repo.list_unconnected_mutual_likes(db, event_id=event_id, limit=limit)
    created = 0
    failed = 0
    for p in pairs:
        try:
            connection = ensure_accepted_connection(db, p["user_id"], p["target_user_id"])
            log_match_event(
                db,
                "connection_reconciled",
                event_id=p["event_id"],
                user_id=p["user_id"],
                payload={"target_user_id": p["target_user_id"], "connection_id": str((connection or {}).get("id") or "")},
            )
            db.commit()
            created += 1
        except SQLAlchemyError as exc:
            db.rollback()
            failed += 1
            logger.warning(f"[RECONCILE] event={p['event_id']} pair={p['user_id']},{p['target_user_id']} failed: {exc}")
    logger.info(f"[RECONCILE] scanned={len(pairs)} created={created} failed={failed}")
    return {"scanned": len(pairs), "created": created, "failed": failed}


def list_previous_likes(db, event_id: str, user_id: str) -> list[dict[str, Any]]:
    with store_read(db, f"previous likes event={event_id} viewer={user_id}"):
        rows = repo.list_liked_targets(db, event_id, user_id)
    out: list[dict[str, Any]] = []
    for r in rows:
        out.append(
            {
                "user_id": str(r["user_id"]),
                "mutual_match": bool(r.get("mutual_match")),
                "responded_at": r.get("created_at"),
                "profile": {
                    "first_name": r.get("first_name"),
                    "last_name": r.get("last_name"),
                    "display_name": r.get("display_name"),
                    "age_range": r.get("age_range"),
                    "city": r.get("city"),
                    "state": r.get("state"),
                    "gender": r.get("gender"),
                    "marital_status": r.get("marital_status"),
                    "has_kids": r.get("has_kids"),
                    "profile_picture_urls": r.get("profile_picture_urls") if isinstance(r.get("profile_picture_urls"), list) else [],
                },
            }
        )
    return out
