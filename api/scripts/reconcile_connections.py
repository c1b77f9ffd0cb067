import argparse
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from eventmatch.database import SessionLocal
from eventmatch.services.responses import reconcile_mutual_matches


def main() -> None:
    parser = argparse.ArgumentParser(description="Create missing connections for mutual likes")
    parser.add_argument("--event-id", type=str, default="")
    parser.add_argument("--limit", type=int, default=500)
    args = parser.parse_args()

    with SessionLocal() as db:
        summary = reconcile_mutual_matches(db, event_id=args.event_id.strip() or None, limit=args.limit)

    print("Reconciliation completed")
    for k, v in summary.items():
        print(f"- {k}: {v}")


if __name__ == "__main__":
    main()
