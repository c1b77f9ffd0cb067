import uuid

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB, UUID

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=False), primary_key=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    display_name = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    age_range = Column(String, nullable=True)
    gender = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    marital_status = Column(String, nullable=True)
    has_kids = Column(String, nullable=True)
    profile_picture_urls = Column(JSONB, nullable=False, server_default="[]")
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class EventAttendee(Base):
    __tablename__ = "event_attendees"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    event_id = Column(UUID(as_uuid=False), nullable=False)
    user_id = Column(UUID(as_uuid=False), nullable=False)
    joined_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_attendee"),
        Index("idx_event_attendees_event_joined", "event_id", "joined_at"),
    )


class Match(Base):
    __tablename__ = "matches"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    event_id = Column(UUID(as_uuid=False), nullable=False)
    user1_id = Column(UUID(as_uuid=False), nullable=False)
    user2_id = Column(UUID(as_uuid=False), nullable=False)
    compatibility_score = Column(Integer, nullable=False)
    rank = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("event_id", "user1_id", "user2_id", name="uq_match_event_pair"),
        CheckConstraint("compatibility_score BETWEEN 0 AND 100", name="ck_match_score_range"),
        Index("idx_matches_viewer", "event_id", "user1_id"),
    )


class MatchResponse(Base):
    __tablename__ = "match_responses"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    event_id = Column(UUID(as_uuid=False), nullable=False)
    user_id = Column(UUID(as_uuid=False), nullable=False)
    target_user_id = Column(UUID(as_uuid=False), nullable=False)
    response = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", "target_user_id", name="uq_match_response"),
        CheckConstraint("response IN ('like', 'pass')", name="ck_match_response_value"),
        Index("idx_match_responses_target", "event_id", "target_user_id"),
    )


class Connection(Base):
    __tablename__ = "connections"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    requester_id = Column(UUID(as_uuid=False), nullable=False)
    addressee_id = Column(UUID(as_uuid=False), nullable=False)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name="ck_connection_status"),
        Index("idx_connections_addressee", "addressee_id"),
    )


# One row per unordered pair, whichever side requested.
Index(
    "uq_connection_unordered_pair",
    func.least(Connection.requester_id, Connection.addressee_id),
    func.greatest(Connection.requester_id, Connection.addressee_id),
    unique=True,
)


class MatchEvent(Base):
    __tablename__ = "match_event"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    event_id = Column(UUID(as_uuid=False), nullable=True)
    user_id = Column(UUID(as_uuid=False), nullable=True)
    event_type = Column(String, nullable=False)
    payload = Column(JSONB, nullable=False, server_default="{}")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
