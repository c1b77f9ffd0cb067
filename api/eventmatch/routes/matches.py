from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from ..auth.deps import get_current_user
from ..config import RL_MATCH_GENERATE_LIMIT, RL_MATCH_RESPONSE_LIMIT, RL_WINDOW_SECONDS
from ..database import SessionLocal
from ..deps import parse_uuid, parse_uuid_list
from ..schemas import FilteredMatchesRequest, GenerateMatchesRequest, MatchResponseRequest, MatchResponseResult
from ..services.matching import filter_matches, generate_matches
from ..services.rate_limit import rate_limit_dependency
from ..services.responses import list_previous_likes, respond_to_match

router = APIRouter()

RL_MATCH_GENERATE = rate_limit_dependency("generate_matches", RL_MATCH_GENERATE_LIMIT, RL_WINDOW_SECONDS)
RL_MATCH_RESPONSE = rate_limit_dependency("match_response", RL_MATCH_RESPONSE_LIMIT, RL_WINDOW_SECONDS)


@router.post("/generate-matches")
def generate_matches_route(
    payload: GenerateMatchesRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    _: None = RL_MATCH_GENERATE,
) -> list[dict[str, Any]]:
    event_id = parse_uuid(payload.event_id, "eventId")
    user_id = parse_uuid(payload.user_id, "userId") if payload.user_id else str(current_user["id"])
    if user_id != str(current_user["id"]):
        raise HTTPException(status_code=403, detail="Matches can only be generated for yourself")
    with SessionLocal() as db:
        return generate_matches(db, event_id, user_id)


@router.post("/get-filtered-matches")
def get_filtered_matches_route(
    payload: FilteredMatchesRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    event_id = parse_uuid(payload.event_id, "eventId")
    exclude_ids = parse_uuid_list(payload.exclude_user_ids, "excludeUserIds")
    with SessionLocal() as db:
        return filter_matches(db, event_id, str(current_user["id"]), exclude_ids=exclude_ids, limit=payload.limit)


@router.post("/handle-match-response")
def handle_match_response_route(
    payload: MatchResponseRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    _: None = RL_MATCH_RESPONSE,
) -> dict[str, Any]:
    event_id = parse_uuid(payload.event_id, "eventId")
    target_id = parse_uuid(payload.target_user_id, "targetUserId")
    with SessionLocal() as db:
        outcome = respond_to_match(db, event_id, str(current_user["id"]), target_id, payload.response)
    result = MatchResponseResult(
        success=outcome.accepted,
        is_mutual_match=outcome.mutual_match,
        target_user_id=target_id,
        connection_pending=outcome.connection_pending,
    )
    return result.model_dump(by_alias=True)


@router.get("/events/{event_id}/matches/previous")
def previous_matches_route(event_id: str, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    event_id = parse_uuid(event_id, "eventId")
    with SessionLocal() as db:
        return {"matches": list_previous_likes(db, event_id, str(current_user["id"]))}
