"""Migration: Persist the round ledger for games that only have a legacy team-set.

Games created before the round ledger stored one flat team list in
``games.teams``. Reads already present those as a one-round ledger; this
script writes that ledger to ``games.rounds`` so every game has the new shape.
The legacy column is left as it is.

Idempotent: games that already have rounds are skipped. A game whose
team-set cannot be decoded is reported and skipped, never overwritten.

Usage:
    python scripts/migrate_legacy_ledgers.py [DATABASE_URL]

If DATABASE_URL is not provided, reads from the DATABASE_URL env var
or defaults to sqlite+aiosqlite:///huddle.db.
"""

from __future__ import annotations

import asyncio
import os
import sys

from huddle.config import Settings, configure_logging
from huddle.core.errors import CorruptStateError
from huddle.core.ledger import load_rounds, serialize_rounds
from huddle.db.engine import create_engine, get_session
from huddle.db.repository import Repository
from huddle.models.ledger import GameRecord


async def migrate(database_url: str) -> int:
    """Write migrated ledgers. Returns the number of games migrated."""
    print(f"Migrating database: {database_url}")
    engine = create_engine(database_url)
    migrated = 0

    async with get_session(engine) as session:
        repo = Repository(session)
        pending = await repo.get_games_pending_ledger_migration()
        if not pending:
            print("  no legacy games, nothing to do")

        for game in pending:
            record = GameRecord.model_validate(game)
            try:
                ledger = load_rounds(record)
            except CorruptStateError as exc:
                print(f"  {game.id}: {exc}, skipping")
                continue

            saved = await repo.save_rounds(game.id, serialize_rounds(ledger), record.revision)
            if not saved:
                print(f"  {game.id}: changed during migration, skipping")
                continue
            teams = ledger[0].team_count if ledger else 0
            print(f"  {game.id}: wrote 1 round ({teams} teams)")
            migrated += 1

    await engine.dispose()
    print(f"Migration complete. {migrated} game(s) migrated.")
    return migrated


if __name__ == "__main__":
    configure_logging(Settings())
    url = (
        sys.argv[1]
        if len(sys.argv) > 1
        else os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///huddle.db")
    )
    asyncio.run(migrate(url))
