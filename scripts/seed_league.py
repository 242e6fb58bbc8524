#!/usr/bin/env python3
"""
Demo league: seed teams and fixtures → settle → print standings.
Run from project root: python3 scripts/seed_league.py --days-ago 14
"""
from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from league_backend.config import setup_logging
from league_backend.persistence import MatchRepository, TeamRepository, get_connection, init_db
from league_backend.persistence.db import set_db_path
from league_backend.ranking import compute_standings, utc_now
from league_backend.seed import seed_demo_league


def run(db_path: Path, days_ago: int) -> None:
    set_db_path(db_path)
    init_db(db_path=db_path)

    conn = get_connection()
    try:
        team_repo = TeamRepository()
        match_repo = MatchRepository(team_repo)

        start = utc_now() - timedelta(days=days_ago)
        if seed_demo_league(conn, start=start, match_repo=match_repo):
            print(f"Seeded demo league into {db_path} (first kick-off {start:%Y-%m-%d %H:%M} UTC)")
        else:
            print(f"{db_path} already has data; not seeding")

        settled = match_repo.settle(conn)
        if settled:
            print(f"Settled {len(settled)} finished match(es)")

        rows = compute_standings(team_repo.list_all(conn), match_repo.list_all(conn))
        print(f"\n{'Team':<12} {'P':>2} {'W':>2} {'D':>2} {'L':>2} {'GF':>3} {'GA':>3} {'Pts':>4}")
        for r in rows:
            print(
                f"{r.name:<12} {r.played:>2} {r.wins:>2} {r.draws:>2} {r.losses:>2} "
                f"{r.goals_for:>3} {r.goals_against:>3} {r.points:>4}"
            )
    finally:
        conn.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the demo league and print the table.")
    parser.add_argument("--db", type=Path, default=PROJECT_ROOT / "data" / "demo_league.db", help="SQLite file")
    parser.add_argument(
        "--days-ago", type=int, default=0,
        help="Start the fixtures this many days in the past so finished ones count",
    )
    args = parser.parse_args()
    setup_logging()
    run(args.db, args.days_ago)


if __name__ == "__main__":
    main()
