import uuid

from fastapi import HTTPException


def parse_uuid(raw: str | None, field: str) -> str:
    value = str(raw or "").strip()
    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{field} must be a valid UUID")


def parse_uuid_list(raw: list[str] | None, field: str) -> list[str]:
    return [parse_uuid(v, field) for v in (raw or []) if str(v or "").strip()]
