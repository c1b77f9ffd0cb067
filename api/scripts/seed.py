import argparse
import json
import sys
import uuid
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from sqlalchemy import text

from eventmatch.auth.security import create_access_token
from eventmatch.database import SessionLocal

DEMO_PROFILES = [
    {"key": "viewer", "first_name": "Grace", "gender": "female", "age_range": "26-30", "city": "Dallas", "state": "TX"},
    {"key": "target", "first_name": "Caleb", "gender": "male", "age_range": "26-30", "city": "Dallas", "state": "TX"},
    {"key": "other", "first_name": "Naomi", "gender": "female", "age_range": "31-35", "city": "Austin", "state": "TX"},
    {"key": "far", "first_name": "Silas", "gender": "male", "age_range": "46-50", "city": "Tulsa", "state": "OK"},
]


def _namespaced_id(seed: str, key: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"eventmatch:{seed}:{key}"))


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a demo event with attendees")
    parser.add_argument("--seed", type=str, default="demo")
    parser.add_argument("--reset", action="store_true")
    parser.add_argument("--print-tokens", action="store_true")
    args = parser.parse_args()

    event_id = _namespaced_id(args.seed, "event")
    ids = {p["key"]: _namespaced_id(args.seed, p["key"]) for p in DEMO_PROFILES}

    with SessionLocal() as db:
        if args.reset:
            for table in ("matches", "match_responses"):
                db.execute(text(f"DELETE FROM {table} WHERE event_id = CAST(:e AS uuid)"), {"e": event_id})
            db.execute(
                text("DELETE FROM connections WHERE requester_id = ANY(CAST(:ids AS uuid[])) OR addressee_id = ANY(CAST(:ids AS uuid[]))"),
                {"ids": list(ids.values())},
            )
        for p in DEMO_PROFILES:
            db.execute(
                text(
                    """
                    INSERT INTO profiles (id, first_name, display_name, gender, age_range, city, state, profile_picture_urls)
                    VALUES (CAST(:id AS uuid), :first_name, :first_name, :gender, :age_range, :city, :state, CAST(:pics AS jsonb))
                    ON CONFLICT (id) DO UPDATE SET
                      gender = EXCLUDED.gender,
                      age_range = EXCLUDED.age_range,
                      city = EXCLUDED.city,
                      state = EXCLUDED.state,
                      updated_at = NOW()
                    """
                ),
                {**p, "id": ids[p["key"]], "pics": json.dumps([f"{ids[p['key']]}/profile.jpg"])},
            )
            db.execute(
                text(
                    """
                    INSERT INTO event_attendees (event_id, user_id)
                    VALUES (CAST(:e AS uuid), CAST(:u AS uuid))
                    ON CONFLICT (event_id, user_id) DO NOTHING
                    """
                ),
                {"e": event_id, "u": ids[p["key"]]},
            )
        db.commit()

    print("Seed completed")
    print(f"- event_id: {event_id}")
    for key, user_id in ids.items():
        line = f"- {key}: {user_id}"
        if args.print_tokens:
            line += f" token={create_access_token(user_id)}"
        print(line)


if __name__ == "__main__":
    main()
