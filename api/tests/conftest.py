import itertools
import uuid
from typing import Any

import pytest
from sqlalchemy.exc import OperationalError

from eventmatch import repo


def _boom(what: str) -> OperationalError:
    return OperationalError(what, {}, Exception(f"{what} unavailable"))


class FakeDB:
    def __init__(self):
        self.calls = []
        self.commits = 0
        self.rollbacks = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, stmt, params=None):
        self.calls.append((str(stmt), params))

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def match_events(self, event_type: str | None = None) -> list[dict[str, Any]]:
        out = [p for sql, p in self.calls if "INSERT INTO match_event" in sql]
        if event_type:
            out = [p for p in out if p["event_type"] == event_type]
        return out


class InMemoryStore:
    """Stand-in for the Postgres tables behind ``eventmatch.repo``."""

    def __init__(self):
        self._clock = itertools.count(1)
        self.profiles: dict[str, dict[str, Any]] = {}
        self.attendees: list[dict[str, Any]] = []
        self.matches: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.responses: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.connections: dict[str, dict[str, Any]] = {}
        self.fail_match_write = False
        self.fail_response_write = False
        self.fail_connection_write = False

    # fixtures helpers

    def add_profile(self, user_id: str, **fields) -> str:
        self.profiles[user_id] = {"id": user_id, "profile_picture_urls": [], **fields}
        return user_id

    def join(self, event_id: str, user_id: str) -> None:
        self.add_attendee(None, event_id, user_id)

    # repo surface

    def get_profile(self, db, user_id):
        p = self.profiles.get(user_id)
        return dict(p) if p else None

    def list_attendee_profiles(self, db, event_id, exclude_user_id=None):
        rows = [a for a in self.attendees if a["event_id"] == event_id and a["user_id"] != exclude_user_id]
        rows.sort(key=lambda a: a["joined_at"])
        return [{"user_id": a["user_id"], "joined_at": a["joined_at"], "profile": self.get_profile(db, a["user_id"])} for a in rows]

    def add_attendee(self, db, event_id, user_id):
        for a in self.attendees:
            if a["event_id"] == event_id and a["user_id"] == user_id:
                return dict(a)
        row = {"event_id": event_id, "user_id": user_id, "joined_at": next(self._clock)}
        self.attendees.append(row)
        return dict(row)

    def remove_attendee(self, db, event_id, user_id):
        before = len(self.attendees)
        self.attendees = [a for a in self.attendees if not (a["event_id"] == event_id and a["user_id"] == user_id)]
        return before - len(self.attendees)

    def upsert_match_records(self, db, event_id, user_id, rows):
        if self.fail_match_write:
            raise _boom("matches")
        for r in rows:
            self.matches[(event_id, user_id, r["user_id"])] = {
                "compatibility_score": int(r["compatibility_score"]),
                "rank": int(r["rank"]),
            }
        return len(rows)

    def delete_stale_match_records(self, db, event_id, user_id, keep_user_ids):
        stale = [k for k in self.matches if k[0] == event_id and k[1] == user_id and k[2] not in set(keep_user_ids)]
        for k in stale:
            del self.matches[k]
        return len(stale)

    def list_match_records(self, db, event_id, user_id, exclude_user_ids, limit):
        attending = {a["user_id"] for a in self.attendees if a["event_id"] == event_id}
        rows = []
        for (e, u1, u2), m in self.matches.items():
            if e != event_id or u1 != user_id or u2 in set(exclude_user_ids) or u2 not in attending:
                continue
            profile = self.profiles.get(u2) or {}
            rows.append({**{k: v for k, v in profile.items() if k != "id"}, "user_id": u2, **m})
        rows.sort(key=lambda r: (-r["compatibility_score"], r["rank"]))
        return rows[:limit]

    def list_responded_target_ids(self, db, event_id, user_id):
        return {t for (e, u, t) in self.responses if e == event_id and u == user_id}

    def upsert_match_response(self, db, event_id, user_id, target_user_id, response):
        if self.fail_response_write:
            raise _boom("match_responses")
        key = (event_id, user_id, target_user_id)
        now = next(self._clock)
        existing = self.responses.get(key)
        self.responses[key] = {
            "event_id": event_id,
            "user_id": user_id,
            "target_user_id": target_user_id,
            "response": response,
            "created_at": existing["created_at"] if existing else now,
            "updated_at": now,
        }

    def get_match_response(self, db, event_id, user_id, target_user_id):
        r = self.responses.get((event_id, user_id, target_user_id))
        return dict(r) if r else None

    def list_liked_targets(self, db, event_id, user_id):
        out = []
        for (e, u, t), r in self.responses.items():
            if e != event_id or u != user_id or r["response"] != "like":
                continue
            back = self.responses.get((e, t, u))
            profile = self.profiles.get(t) or {}
            out.append(
                {
                    **{k: v for k, v in profile.items() if k != "id"},
                    "user_id": t,
                    "created_at": r["created_at"],
                    "mutual_match": bool(back and back["response"] == "like"),
                }
            )
        out.sort(key=lambda r: r["created_at"], reverse=True)
        return out

    def list_unconnected_mutual_likes(self, db, event_id=None, limit=500):
        out = []
        for (e, u, t), r in self.responses.items():
            if event_id and e != event_id:
                continue
            back = self.responses.get((e, t, u))
            if r["response"] != "like" or not back or back["response"] != "like" or not u < t:
                continue
            if self.get_connection_between(db, u, t):
                continue
            out.append({"event_id": e, "user_id": u, "target_user_id": t})
        return out[:limit]

    def get_connection(self, db, connection_id):
        c = self.connections.get(connection_id)
        return dict(c) if c else None

    def get_connection_between(self, db, user_a, user_b):
        for c in self.connections.values():
            if {c["requester_id"], c["addressee_id"]} == {user_a, user_b}:
                return dict(c)
        return None

    def accept_existing_connection(self, db, user_a, user_b):
        if self.fail_connection_write:
            raise _boom("connections")
        for c in self.connections.values():
            if {c["requester_id"], c["addressee_id"]} == {user_a, user_b}:
                c["status"] = "accepted"
                return dict(c)
        return None

    def upsert_connection(self, db, requester_id, addressee_id, status):
        if self.fail_connection_write:
            raise _boom("connections")
        for c in self.connections.values():
            if {c["requester_id"], c["addressee_id"]} == {requester_id, addressee_id}:
                c["status"] = status
                return dict(c)
        cid = str(uuid.uuid4())
        self.connections[cid] = {
            "id": cid,
            "requester_id": requester_id,
            "addressee_id": addressee_id,
            "status": status,
            "created_at": next(self._clock),
        }
        return dict(self.connections[cid])

    def update_connection_status(self, db, connection_id, status):
        c = self.connections.get(connection_id)
        if not c:
            return None
        c["status"] = status
        return dict(c)

    def list_connections_for_user(self, db, user_id):
        out = []
        for c in self.connections.values():
            if user_id not in {c["requester_id"], c["addressee_id"]}:
                continue
            other = c["addressee_id"] if c["requester_id"] == user_id else c["requester_id"]
            profile = self.profiles.get(other) or {}
            out.append(
                {
                    **c,
                    "other_user_id": other,
                    "other_first_name": profile.get("first_name"),
                    "other_last_name": profile.get("last_name"),
                    "other_display_name": profile.get("display_name"),
                    "other_profile_picture_urls": profile.get("profile_picture_urls") or [],
                }
            )
        out.sort(key=lambda c: c["created_at"], reverse=True)
        return out


REPO_FUNCTIONS = (
    "get_profile",
    "list_attendee_profiles",
    "add_attendee",
    "remove_attendee",
    "upsert_match_records",
    "delete_stale_match_records",
    "list_match_records",
    "list_responded_target_ids",
    "upsert_match_response",
    "get_match_response",
    "list_liked_targets",
    "list_unconnected_mutual_likes",
    "get_connection",
    "get_connection_between",
    "accept_existing_connection",
    "upsert_connection",
    "update_connection_status",
    "list_connections_for_user",
)


@pytest.fixture
def store(monkeypatch):
    s = InMemoryStore()
    for name in REPO_FUNCTIONS:
        monkeypatch.setattr(repo, name, getattr(s, name))
    return s


@pytest.fixture
def db():
    return FakeDB()


@pytest.fixture
def ids():
    return {k: str(uuid.uuid4()) for k in ("event", "v", "t", "a", "b", "c", "x")}
