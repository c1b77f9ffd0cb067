from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import get_current_user
from ..database import SessionLocal
from ..deps import parse_uuid
from ..schemas import ConnectionStatusRequest
from ..services.connections import change_connection_status, connection_between, list_connections

router = APIRouter()


@router.get("/connections")
def list_my_connections(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    with SessionLocal() as db:
        return {"connections": list_connections(db, str(current_user["id"]))}


@router.get("/connections/with/{user_id}")
def get_connection_with(user_id: str, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    other_id = parse_uuid(user_id, "userId")
    with SessionLocal() as db:
        return connection_between(db, str(current_user["id"]), other_id)


@router.post("/connections/{connection_id}/status")
def update_connection(
    connection_id: str,
    payload: ConnectionStatusRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    connection_id = parse_uuid(connection_id, "connectionId")
    status = str(payload.status or "").strip().lower()
    with SessionLocal() as db:
        return {"connection": change_connection_status(db, connection_id, str(current_user["id"]), status)}
