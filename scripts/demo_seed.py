"""Seed a Huddle team and generate matches for demo purposes.

Usage:
    python scripts/demo_seed.py seed          # Create team + members + one game
    python scripts/demo_seed.py match [N]     # Generate a round with N teams (default: the game's)
    python scripts/demo_seed.py play          # Random quarter scores, then finish the game
    python scripts/demo_seed.py status        # Print rounds, standings and team statistics

Uses a local SQLite database (demo_huddle.db).
"""

from __future__ import annotations

import asyncio
import os
import random
import sys

from huddle.config import Settings, configure_logging
from huddle.core.aggregate import match_total
from huddle.core.matchmaking import (
    compute_team_statistics,
    enter_score,
    generate_match,
    get_round_standings,
    get_rounds,
)
from huddle.core.pairing import generate_pairings
from huddle.core.seeding import generate_roster, seed_roster
from huddle.db.engine import create_engine, create_tables, get_session
from huddle.db.repository import Repository

DEMO_DB = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///demo_huddle.db")

SETTINGS = Settings()

QUARTERS = 4


async def _latest_game(repo: Repository):
    games = await repo.get_all_games()
    if not games:
        print("No game found. Run 'seed' first.")
        return None
    return games[-1]


async def seed():
    """Create the demo team, its members and one game everyone attends."""
    engine = create_engine(DEMO_DB)
    await create_tables(engine)

    roster = generate_roster(num_players=12, num_guests=2, seed=7)
    async with get_session(engine) as session:
        repo = Repository(session)
        team, game = await seed_roster(repo, roster, SETTINGS, location="Rec Center Court 2")

        print(f"Team seeded: {team.name} ({len(roster.members)} members)")
        print(f"Team ID: {team.id}  Invite code: {team.code}")
        print(f"Game ID: {game.id}  ({len(roster.guests)} guests)")

    await engine.dispose()


async def match(team_count: int | None = None):
    """Generate a new round for the demo game."""
    engine = create_engine(DEMO_DB)
    async with get_session(engine) as session:
        repo = Repository(session)
        game = await _latest_game(repo)
        if game is None:
            return

        rnd = await generate_match(
            repo, game.id, team_count=team_count, mode=SETTINGS.huddle_partition_mode
        )
        print(f"Round {rnd.round_number} ({rnd.id})")
        for team in rnd.teams:
            names = ", ".join(f"{p.name} [{p.tier}]" for p in team.players)
            print(f"  Team {team.team_number}: {names}")

    await engine.dispose()


async def play():
    """Fill the latest round with random quarter scores and finish the game."""
    engine = create_engine(DEMO_DB)
    rng = random.Random()
    async with get_session(engine) as session:
        repo = Repository(session)
        game = await _latest_game(repo)
        if game is None:
            return
        rounds = await get_rounds(repo, game.id)
        if not rounds:
            print("No round yet. Run 'match' first.")
            return

        rnd = rounds[-1]
        for quarter in range(1, QUARTERS + 1):
            for pairing in generate_pairings(rnd.team_count):
                for team, other in (
                    (pairing.team1, pairing.team2),
                    (pairing.team2, pairing.team1),
                ):
                    await enter_score(
                        repo, game.id, rnd.id, quarter, team, rng.randint(8, 24), opponent=other
                    )
        await repo.update_game_status(game.id, "finished")

        rnd = (await get_rounds(repo, game.id))[-1]
        totals = ", ".join(
            f"Team {t.team_number}: {match_total(rnd, t.team_number)}" for t in rnd.teams
        )
        print(f"Round {rnd.round_number} final after {QUARTERS} quarters. {totals}")

    await engine.dispose()


async def status():
    """Print the demo game's ledger and the team's statistics."""
    engine = create_engine(DEMO_DB)
    async with get_session(engine) as session:
        repo = Repository(session)
        game = await _latest_game(repo)
        if game is None:
            return

        rounds = await get_rounds(repo, game.id)
        print(f"Game {game.id} | status: {game.status} | rounds: {len(rounds)}")
        for rnd in rounds:
            print(f"Round {rnd.round_number} (quarters: {rnd.max_quarter})")
            print(f"  {'Team':<8} {'W':>3} {'L':>3} {'T':>3} {'PF':>5} {'PA':>5} {'DIFF':>5}")
            for s in await get_round_standings(repo, game.id, rnd.id):
                sign = "+" if s.point_diff > 0 else ""
                print(
                    f"  {s.team_number:<8} {s.wins:>3} {s.losses:>3} {s.ties:>3} "
                    f"{s.points_for:>5} {s.points_against:>5} {sign}{s.point_diff:>4}"
                )

        stats = await compute_team_statistics(repo, game.team_id, SETTINGS.huddle_mvp_limit)
        print(f"Finished games: {stats.total_finished_games}")
        for wr in stats.team_win_rates:
            print(f"  Team {wr.team_number}: {wr.wins}/{wr.total_games} ({wr.win_rate}%)")
        for a in stats.attendance[:5]:
            rate = "-" if a.attendance_rate is None else f"{a.attendance_rate}%"
            print(f"  {a.name:<20} {rate:>6}")

    await engine.dispose()


def main():
    configure_logging(SETTINGS)
    if len(sys.argv) < 2:
        print(__doc__)
        return

    cmd = sys.argv[1]
    if cmd == "seed":
        asyncio.run(seed())
    elif cmd == "match":
        n = int(sys.argv[2]) if len(sys.argv) > 2 else None
        asyncio.run(match(n))
    elif cmd == "play":
        asyncio.run(play())
    elif cmd == "status":
        asyncio.run(status())
    else:
        print(f"Unknown command: {cmd}")
        print(__doc__)


if __name__ == "__main__":
    main()
