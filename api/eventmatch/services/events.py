import json
import uuid
from typing import Any

from sqlalchemy import text


def log_match_event(
    db,
    event_type: str,
    *,
    event_id: str | None = None,
    user_id: str | None = None,
    payload: dict[str, Any] | None = None,
) -> None:
    payload = payload or {}
    db.execute(
        text(
            """
            INSERT INTO match_event (id, event_id, user_id, event_type, payload)
            VALUES (
              :id,
              CAST(NULLIF(:event_id, '') AS uuid),
              CAST(NULLIF(:user_id, '') AS uuid),
              :event_type,
              CAST(:payload AS jsonb)
            )
            """
        ),
        {
            "id": str(uuid.uuid4()),
            "event_id": event_id or "",
            "user_id": user_id or "",
            "event_type": event_type,
            "payload": json.dumps(payload, default=str),
        },
    )
