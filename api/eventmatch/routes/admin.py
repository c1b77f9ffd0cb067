from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import require_admin_token
from ..database import SessionLocal
from ..deps import parse_uuid
from ..services.responses import reconcile_mutual_matches

router = APIRouter()


@router.post("/admin/reconcile-connections", dependencies=[Depends(require_admin_token)])
def reconcile_connections(eventId: str | None = None, limit: int = 500) -> dict[str, Any]:
    event_id = parse_uuid(eventId, "eventId") if eventId else None
    with SessionLocal() as db:
        return reconcile_mutual_matches(db, event_id=event_id, limit=max(1, min(5000, int(limit))))
