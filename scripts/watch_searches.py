"""Watch the local analysis database and print new searches as they land."""

from __future__ import annotations

import argparse
import sqlite3
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Tuple

from damwatch.clients.sqlite_store import SQLiteStore
from damwatch.core.config import get_settings


def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def _print_header(title: str) -> None:
    line = "=" * len(title)
    print(f"\n{title}\n{line}")


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _poll_searches(
    conn: sqlite3.Connection, last_id: int
) -> Tuple[int, List[sqlite3.Row]]:
    rows = conn.execute(
        "SELECT id, dam_name, lat, lon, created_at FROM searches WHERE id > ? ORDER BY id",
        (last_id,),
    ).fetchall()
    new_last_id = max([last_id, *(row["id"] for row in rows)])
    return new_last_id, rows


def _poll_reading_counts(
    conn: sqlite3.Connection,
    previous: Dict[int, int],
) -> Dict[int, int]:
    rows = conn.execute(
        """
        SELECT search_id, COUNT(*) AS total, MIN(timestamp) AS first_day,
               MAX(timestamp) AS last_day
        FROM water_level_readings
        GROUP BY search_id
        """
    ).fetchall()
    current: Dict[int, int] = {}
    for row in rows:
        search_id = row["search_id"]
        current[search_id] = row["total"]
        if previous.get(search_id) != row["total"]:
            print(
                f"[{_timestamp()}] READINGS search={search_id} count={row['total']}"
                f" | {row['first_day']} → {row['last_day']}"
            )
    return current


def watch(db_path: Path, poll_interval: float = 1.0) -> None:
    # Creates the tables when the service has not started yet.
    SQLiteStore(str(db_path))

    _print_header(f"Watching {db_path} (Ctrl+C to exit)")
    last_search_id = 0
    seen_counts: Dict[int, int] = {}

    while True:
        try:
            with _connect(db_path) as conn:
                last_search_id, searches = _poll_searches(conn, last_search_id)
                for row in searches:
                    print(
                        f"[{_timestamp()}] SEARCH #{row['id']} '{row['dam_name']}'"
                        f" at ({row['lat']:.4f}, {row['lon']:.4f})"
                        f" | created_at={row['created_at']}"
                    )
                seen_counts = _poll_reading_counts(conn, seen_counts)
        except sqlite3.Error as exc:
            print(f"[{_timestamp()}] SQLite error: {exc}")

        time.sleep(poll_interval)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--db-path",
        type=Path,
        default=None,
        help="SQLite database to watch (default: DAMWATCH_DB_PATH from settings).",
    )
    parser.add_argument("--interval", type=float, default=1.0)
    args = parser.parse_args(argv)

    db_path = args.db_path or Path(get_settings().database_path).expanduser()
    watch(db_path, poll_interval=args.interval)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    try:
        main()
    except KeyboardInterrupt:
        print("\nStopped watching.")
