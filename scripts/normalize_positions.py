"""
One-shot repair: renumber sibling groups and pinned lists, drop dangling
pinned entries and re-derive pinned flags in an existing database.

Useful after importing rows by hand or restoring a database written by an
older build. Todos with a missing parent, or caught in a parent cycle,
are moved to the root level.

Usage:
    python scripts/normalize_positions.py [path/to/nestlist.db]
"""

import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from nestlist.db.connection import Database
from nestlist.db.snapshots import SnapshotStore
from nestlist.tree.engine import TodoEngine


def get_db_path() -> Path:
    """Resolve the database path from argv, then NESTLIST_DB_PATH."""
    if len(sys.argv) > 1:
        return Path(sys.argv[1])
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")
    return Path(os.environ.get("NESTLIST_DB_PATH", "nestlist.db"))


async def normalize(db_path: Path) -> int:
    db = await Database.connect(str(db_path))
    try:
        store = SnapshotStore(db)
        async with store.lock:
            before = await store.load()
            after = TodoEngine().normalize_positions(before)
            changed = await store.commit(before, after)
    finally:
        await db.close()

    print(f"Todos: {len(after.todos)}, pinned lists: {len(after.pinned_lists)}")
    return changed


if __name__ == "__main__":
    db_path = get_db_path()
    if not db_path.exists():
        print(f"Database not found at {db_path}")
        sys.exit(1)
    print(f"Database: {db_path}")
    changed = asyncio.run(normalize(db_path))
    print(f"Done. Updated {changed} row(s).")
