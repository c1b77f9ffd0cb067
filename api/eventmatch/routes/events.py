import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError

from .. import repo
from ..auth.deps import get_current_user
from ..database import SessionLocal
from ..deps import parse_uuid
from ..errors import StoreWriteFailure
from ..services.events import log_match_event
from ..services.store import store_read

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/events/{event_id}/join")
def join_event(event_id: str, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    event_id = parse_uuid(event_id, "eventId")
    user_id = str(current_user["id"])
    with SessionLocal() as db:
        try:
            row = repo.add_attendee(db, event_id, user_id)
            log_match_event(db, "attendee_joined", event_id=event_id, user_id=user_id)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"[events] join event={event_id} user={user_id} failed: {exc}")
            raise StoreWriteFailure() from exc
    return {"event_id": event_id, "user_id": user_id, "joined_at": row.get("joined_at")}


@router.post("/events/{event_id}/leave")
def leave_event(event_id: str, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    event_id = parse_uuid(event_id, "eventId")
    user_id = str(current_user["id"])
    with SessionLocal() as db:
        try:
            removed = repo.remove_attendee(db, event_id, user_id)
            if removed:
                log_match_event(db, "attendee_left", event_id=event_id, user_id=user_id)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"[events] leave event={event_id} user={user_id} failed: {exc}")
            raise StoreWriteFailure() from exc
    return {"event_id": event_id, "user_id": user_id, "left": bool(removed)}


@router.get("/events/{event_id}/attendees")
def list_event_attendees(event_id: str, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    event_id = parse_uuid(event_id, "eventId")
    with SessionLocal() as db, store_read(db, f"attendees event={event_id}"):
        rows = repo.list_attendee_profiles(db, event_id)
    return {
        "attendees": [
            {
                "user_id": r["user_id"],
                "joined_at": r.get("joined_at"),
                "display_name": (r.get("profile") or {}).get("display_name"),
                "first_name": (r.get("profile") or {}).get("first_name"),
                "has_profile": r.get("profile") is not None,
            }
            for r in rows
        ]
    }
