import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from .. import repo
from ..errors import ConnectionNotFound, InvalidTransition, StoreWriteFailure
from .state_machine import transition_connection
from .store import store_read

logger = logging.getLogger(__name__)


def _public(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(row["id"]),
        "requester_id": str(row["requester_id"]),
        "addressee_id": str(row["addressee_id"]),
        "status": row["status"],
    }


def list_connections(db, user_id: str) -> list[dict[str, Any]]:
    with store_read(db, f"connections user={user_id}"):
        rows = repo.list_connections_for_user(db, user_id)
    out = []
    for r in rows:
        is_requester = str(r["requester_id"]) == str(user_id)
        out.append(
            {
                **_public(r),
                "created_at": r.get("created_at"),
                "is_requester": is_requester,
                "can_respond": not is_requester and r["status"] == "pending",
                "other_profile": {
                    "id": str(r["other_user_id"]),
                    "first_name": r.get("other_first_name"),
                    "last_name": r.get("other_last_name"),
                    "display_name": r.get("other_display_name"),
                    "profile_picture_urls": r.get("other_profile_picture_urls") if isinstance(r.get("other_profile_picture_urls"), list) else [],
                },
            }
        )
    return out


def connection_between(db, user_a: str, user_b: str) -> dict[str, Any]:
    with store_read(db, f"connection between {user_a},{user_b}"):
        row = repo.get_connection_between(db, user_a, user_b)
    return {
        "connected": bool(row and row.get("status") == "accepted"),
        "connection": _public(row) if row else None,
    }


def change_connection_status(db, connection_id: str, actor_id: str, status: str) -> dict[str, Any]:
    with store_read(db, f"connection id={connection_id}"):
        row = repo.get_connection(db, connection_id)
    if not row or str(actor_id) not in {str(row["requester_id"]), str(row["addressee_id"])}:
        raise ConnectionNotFound()
    if str(row["addressee_id"]) != str(actor_id):
        raise InvalidTransition("Only the addressee can respond to a connection", reason="not_addressee")

    next_status = transition_connection(str(row["status"]), status)
    if next_status is None:
        raise InvalidTransition(f"Cannot move connection from {row['status']} to {status}")
    if next_status == row["status"]:
        return _public(row)

    try:
        updated = repo.update_connection_status(db, connection_id, next_status)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"[connections] id={connection_id} status update failed: {exc}")
        raise StoreWriteFailure() from exc
    if not updated:
        raise ConnectionNotFound()
    logger.info(f"[connections] id={connection_id} {row['status']} -> {next_status}")
    return _public(updated)
