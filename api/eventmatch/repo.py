from typing import Any

from sqlalchemy import func, text
from sqlalchemy.dialects.postgresql import insert as pg_insert

from .models import Connection, Match, MatchResponse

PROFILE_COLUMNS = """
  p.first_name,
  p.last_name,
  p.display_name,
  p.date_of_birth,
  p.age_range,
  p.gender,
  p.city,
  p.state,
  p.marital_status,
  p.has_kids,
  COALESCE(p.profile_picture_urls, '[]'::jsonb) AS profile_picture_urls
"""


def get_profile(db, user_id: str) -> dict[str, Any] | None:
    row = db.execute(
        text(
            f"""
            SELECT p.id, {PROFILE_COLUMNS}
            FROM profiles p
            WHERE p.id = CAST(:id AS uuid)
            """
        ),
        {"id": user_id},
    ).mappings().first()
    return dict(row) if row else None


def list_attendee_profiles(db, event_id: str, exclude_user_id: str | None = None) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            f"""
            SELECT
              ea.user_id,
              ea.joined_at,
              p.id AS profile_id,
              {PROFILE_COLUMNS}
            FROM event_attendees ea
            LEFT JOIN profiles p ON p.id = ea.user_id
            WHERE ea.event_id = CAST(:event_id AS uuid)
              AND (:exclude_user_id IS NULL OR ea.user_id <> CAST(:exclude_user_id AS uuid))
            ORDER BY ea.joined_at ASC, ea.id ASC
            """
        ),
        {"event_id": event_id, "exclude_user_id": exclude_user_id},
    ).mappings().all()
    out: list[dict[str, Any]] = []
    for r in rows:
        r = dict(r)
        has_profile = r.pop("profile_id") is not None
        user_id = str(r.pop("user_id"))
        joined_at = r.pop("joined_at")
        out.append({"user_id": user_id, "joined_at": joined_at, "profile": r if has_profile else None})
    return out


def add_attendee(db, event_id: str, user_id: str) -> dict[str, Any]:
    db.execute(
        text(
            """
            INSERT INTO event_attendees (event_id, user_id)
            VALUES (CAST(:event_id AS uuid), CAST(:user_id AS uuid))
            ON CONFLICT (event_id, user_id) DO NOTHING
            """
        ),
        {"event_id": event_id, "user_id": user_id},
    )
    row = db.execute(
        text(
            """
            SELECT event_id, user_id, joined_at
            FROM event_attendees
            WHERE event_id = CAST(:event_id AS uuid)
              AND user_id = CAST(:user_id AS uuid)
            """
        ),
        {"event_id": event_id, "user_id": user_id},
    ).mappings().first()
    return dict(row) if row else {"event_id": event_id, "user_id": user_id, "joined_at": None}


def remove_attendee(db, event_id: str, user_id: str) -> int:
    result = db.execute(
        text(
            """
            DELETE FROM event_attendees
            WHERE event_id = CAST(:event_id AS uuid)
              AND user_id = CAST(:user_id AS uuid)
            """
        ),
        {"event_id": event_id, "user_id": user_id},
    )
    return int(result.rowcount or 0)


def upsert_match_records(db, event_id: str, user_id: str, rows: list[dict[str, Any]]) -> int:
    if not rows:
        return 0
    stmt = pg_insert(Match).values(
        [
            {
                "event_id": event_id,
                "user1_id": user_id,
                "user2_id": r["user_id"],
                "compatibility_score": int(r["compatibility_score"]),
                "rank": int(r["rank"]),
            }
            for r in rows
        ]
    )
    stmt = stmt.on_conflict_do_update(
        constraint="uq_match_event_pair",
        set_={
            "compatibility_score": stmt.excluded.compatibility_score,
            "rank": stmt.excluded.rank,
            "updated_at": func.now(),
        },
    )
    db.execute(stmt)
    return len(rows)


def delete_stale_match_records(db, event_id: str, user_id: str, keep_user_ids: list[str]) -> int:
    result = db.execute(
        text(
            """
            DELETE FROM matches
            WHERE event_id = CAST(:event_id AS uuid)
              AND user1_id = CAST(:user_id AS uuid)
              AND NOT (user2_id = ANY(CAST(:keep AS uuid[])))
            """
        ),
        {"event_id": event_id, "user_id": user_id, "keep": list(keep_user_ids)},
    )
    return int(result.rowcount or 0)


def list_match_records(db, event_id: str, user_id: str, exclude_user_ids: list[str], limit: int) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            f"""
            SELECT
              m.user2_id AS user_id,
              m.compatibility_score,
              m.rank,
              {PROFILE_COLUMNS}
            FROM matches m
            JOIN event_attendees ea
              ON ea.event_id = m.event_id
             AND ea.user_id = m.user2_id
            LEFT JOIN profiles p ON p.id = m.user2_id
            WHERE m.event_id = CAST(:event_id AS uuid)
              AND m.user1_id = CAST(:user_id AS uuid)
              AND NOT (m.user2_id = ANY(CAST(:excluded AS uuid[])))
            ORDER BY m.compatibility_score DESC, m.rank ASC
            LIMIT :limit
            """
        ),
        {"event_id": event_id, "user_id": user_id, "excluded": list(exclude_user_ids), "limit": int(limit)},
    ).mappings().all()
    return [dict(r) for r in rows]


def list_responded_target_ids(db, event_id: str, user_id: str) -> set[str]:
    rows = db.execute(
        text(
            """
            SELECT target_user_id
            FROM match_responses
            WHERE event_id = CAST(:event_id AS uuid)
              AND user_id = CAST(:user_id AS uuid)
            """
        ),
        {"event_id": event_id, "user_id": user_id},
    ).mappings().all()
    return {str(r["target_user_id"]) for r in rows}


def upsert_match_response(db, event_id: str, user_id: str, target_user_id: str, response: str) -> None:
    stmt = pg_insert(MatchResponse).values(
        event_id=event_id,
        user_id=user_id,
        target_user_id=target_user_id,
        response=response,
    )
    stmt = stmt.on_conflict_do_update(
        constraint="uq_match_response",
        set_={"response": stmt.excluded.response, "updated_at": func.now()},
    )
    db.execute(stmt)


def get_match_response(db, event_id: str, user_id: str, target_user_id: str) -> dict[str, Any] | None:
    row = db.execute(
        text(
            """
            SELECT event_id, user_id, target_user_id, response, created_at, updated_at
            FROM match_responses
            WHERE event_id = CAST(:event_id AS uuid)
              AND user_id = CAST(:user_id AS uuid)
              AND target_user_id = CAST(:target_user_id AS uuid)
            """
        ),
        {"event_id": event_id, "user_id": user_id, "target_user_id": target_user_id},
    ).mappings().first()
    return dict(row) if row else None


def list_liked_targets(db, event_id: str, user_id: str) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            f"""
            SELECT
              mr.target_user_id AS user_id,
              mr.created_at,
              EXISTS (
                SELECT 1
                FROM match_responses back
                WHERE back.event_id = mr.event_id
                  AND back.user_id = mr.target_user_id
                  AND back.target_user_id = mr.user_id
                  AND back.response = 'like'
              ) AS mutual_match,
              {PROFILE_COLUMNS}
            FROM match_responses mr
            LEFT JOIN profiles p ON p.id = mr.target_user_id
            WHERE mr.event_id = CAST(:event_id AS uuid)
              AND mr.user_id = CAST(:user_id AS uuid)
              AND mr.response = 'like'
            ORDER BY mr.created_at DESC
            """
        ),
        {"event_id": event_id, "user_id": user_id},
    ).mappings().all()
    return [dict(r) for r in rows]


def list_unconnected_mutual_likes(db, event_id: str | None = None, limit: int = 500) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            """
            SELECT a.event_id, a.user_id, a.target_user_id
            FROM match_responses a
            JOIN match_responses b
              ON b.event_id = a.event_id
             AND b.user_id = a.target_user_id
             AND b.target_user_id = a.user_id
             AND b.response = 'like'
            WHERE a.response = 'like'
              AND a.user_id < a.target_user_id
              AND (:event_id IS NULL OR a.event_id = CAST(:event_id AS uuid))
              AND NOT EXISTS (
                SELECT 1
                FROM connections c
                WHERE (c.requester_id = a.user_id AND c.addressee_id = a.target_user_id)
                   OR (c.requester_id = a.target_user_id AND c.addressee_id = a.user_id)
              )
            ORDER BY GREATEST(a.updated_at, b.updated_at) ASC
            LIMIT :limit
            """
        ),
        {"event_id": event_id, "limit": int(limit)},
    ).mappings().all()
    return [{k: str(v) for k, v in dict(r).items()} for r in rows]


def get_connection(db, connection_id: str) -> dict[str, Any] | None:
    row = db.execute(
        text(
            """
            SELECT id, requester_id, addressee_id, status, created_at, updated_at
            FROM connections
            WHERE id = CAST(:id AS uuid)
            """
        ),
        {"id": connection_id},
    ).mappings().first()
    return dict(row) if row else None


def get_connection_between(db, user_a: str, user_b: str) -> dict[str, Any] | None:
    row = db.execute(
        text(
            """
            SELECT id, requester_id, addressee_id, status, created_at, updated_at
            FROM connections
            WHERE (requester_id = CAST(:a AS uuid) AND addressee_id = CAST(:b AS uuid))
               OR (requester_id = CAST(:b AS uuid) AND addressee_id = CAST(:a AS uuid))
            ORDER BY created_at ASC
            LIMIT 1
            """
        ),
        {"a": user_a, "b": user_b},
    ).mappings().first()
    return dict(row) if row else None


def accept_existing_connection(db, user_a: str, user_b: str) -> dict[str, Any] | None:
    row = db.execute(
        text(
            """
            UPDATE connections
            SET status = 'accepted', updated_at = NOW()
            WHERE (requester_id = CAST(:a AS uuid) AND addressee_id = CAST(:b AS uuid))
               OR (requester_id = CAST(:b AS uuid) AND addressee_id = CAST(:a AS uuid))
            RETURNING id, requester_id, addressee_id, status
            """
        ),
        {"a": user_a, "b": user_b},
    ).mappings().first()
    return dict(row) if row else None


CONNECTION_PAIR = (
    func.least(Connection.requester_id, Connection.addressee_id),
    func.greatest(Connection.requester_id, Connection.addressee_id),
)


def upsert_connection(db, requester_id: str, addressee_id: str, status: str) -> dict[str, Any] | None:
    """Insert the pair or update the existing row in either ordering.

    The conflict target is the unordered-pair unique index, so two concurrent
    mutual likes land on one row and the first requester is kept.
    """
    stmt = pg_insert(Connection).values(requester_id=requester_id, addressee_id=addressee_id, status=status)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(CONNECTION_PAIR),
        set_={"status": stmt.excluded.status, "updated_at": func.now()},
    ).returning(Connection.id, Connection.requester_id, Connection.addressee_id, Connection.status)
    row = db.execute(stmt).mappings().first()
    return dict(row) if row else None


def update_connection_status(db, connection_id: str, status: str) -> dict[str, Any] | None:
    row = db.execute(
        text(
            """
            UPDATE connections
            SET status = :status, updated_at = NOW()
            WHERE id = CAST(:id AS uuid)
            RETURNING id, requester_id, addressee_id, status, created_at, updated_at
            """
        ),
        {"id": connection_id, "status": status},
    ).mappings().first()
    return dict(row) if row else None


def list_connections_for_user(db, user_id: str) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            """
            SELECT
              c.id,
              c.requester_id,
              c.addressee_id,
              c.status,
              c.created_at,
              CASE WHEN c.requester_id = CAST(:user_id AS uuid) THEN c.addressee_id ELSE c.requester_id END AS other_user_id,
              p.first_name AS other_first_name,
              p.last_name AS other_last_name,
              p.display_name AS other_display_name,
              COALESCE(p.profile_picture_urls, '[]'::jsonb) AS other_profile_picture_urls
            FROM connections c
            LEFT JOIN profiles p
              ON p.id = (CASE WHEN c.requester_id = CAST(:user_id AS uuid) THEN c.addressee_id ELSE c.requester_id END)
            WHERE c.requester_id = CAST(:user_id AS uuid)
               OR c.addressee_id = CAST(:user_id AS uuid)
            ORDER BY c.created_at DESC
            """
        ),
        {"user_id": user_id},
    ).mappings().all()
    return [dict(r) for r in rows]
