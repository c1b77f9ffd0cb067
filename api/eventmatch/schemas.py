from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GenerateMatchesRequest(_WireModel):
    event_id: str = Field(alias="eventId", min_length=1)
    user_id: str | None = Field(default=None, alias="userId")


class FilteredMatchesRequest(_WireModel):
    event_id: str = Field(alias="eventId", min_length=1)
    exclude_user_ids: list[str] = Field(default_factory=list, alias="excludeUserIds")
    limit: int | None = Field(default=None, ge=1)


class MatchResponseRequest(_WireModel):
    event_id: str = Field(alias="eventId", min_length=1)
    target_user_id: str = Field(alias="targetUserId", min_length=1)
    response: str


class MatchResponseResult(_WireModel):
    success: bool
    is_mutual_match: bool = Field(serialization_alias="isMutualMatch")
    target_user_id: str = Field(serialization_alias="targetUserId")
    connection_pending: bool = Field(default=False, serialization_alias="connectionPending")


class ConnectionStatusRequest(BaseModel):
    status: str
