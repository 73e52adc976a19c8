"""
snapshot_report.py — print the counters stored in a stats snapshot file.

Exits 2 if the file does not exist, 1 if it exists but cannot be parsed
(the server would silently start from an empty store in that case).

Usage:
    python scripts/snapshot_report.py backend/stats-data.json
    python scripts/snapshot_report.py backend/stats-data.json --top 5
"""

import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

DEFAULT_TOP = 10


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("Usage: python snapshot_report.py <stats-data.json> [--top N]")
        sys.exit(2)

    from engagement.snapshot import StatsState

    path = argv[0]
    top = DEFAULT_TOP
    if "--top" in argv:
        idx = argv.index("--top")
        top = int(argv[idx + 1])

    try:
        with open(path, "r", encoding="utf-8") as f:
            state = StatsState.model_validate(json.load(f))
    except FileNotFoundError:
        print(f"ERROR: {path} not found.")
        sys.exit(2)
    except ValueError as exc:
        print(f"ERROR: {path} is not a valid snapshot: {exc}")
        sys.exit(1)

    print("Snapshot:")
    print(f"  Total visits:    {state.total_visits}")
    print(f"  Today ({state.today_date or '-'}): {state.today_visits}")
    print(f"  Unique visitors: {len(state.unique_visitors_set)}")
    print(f"  Voting visitors: {len(state.votes_by_visitor)}")

    clicks = sorted(state.game_clicks.items(), key=lambda kv: kv[1], reverse=True)
    print(f"Top {top} games by clicks:")
    for game_id, count in clicks[:top]:
        tally = state.game_votes.get(game_id)
        votes = f"+{tally.likes}/-{tally.dislikes}" if tally else "no votes"
        print(f"  {game_id:<24} {count:>6}  {votes}")


if __name__ == "__main__":
    main()
