"""Match orchestration: what a manager's "generate teams" and "enter score"
actions do against storage.

Each mutation follows the same shape: take the game's ledger lock, load the
game, decode its ledger (migrating a legacy team-set in memory), apply one
pure ledger operation, and write the whole ledger back with a
compare-and-swap on the game's revision.

The lock serializes writers inside one process. The revision check catches
writers in other processes: a save based on a stale revision raises
StaleLedgerError instead of silently overwriting the other edit.

Authorization (manager-only actions) is the embedding web layer's job.
"""

from __future__ import annotations

import asyncio
import logging
import random
import weakref

from huddle.core.aggregate import (
    DEFAULT_MVP_LIMIT,
    attendance_stats,
    mvp_ranking,
    round_standings,
    team_win_rates,
)
from huddle.core.errors import NotFoundError, StaleLedgerError, ValidationError
from huddle.core.ledger import (
    append_quarter,
    append_round,
    find_round,
    flatten_scores,
    load_rounds,
    serialize_rounds,
    set_score,
)
from huddle.core.partition import PartitionMode, partition
from huddle.db.models import GameRow
from huddle.db.repository import Repository
from huddle.models.ledger import GameRecord, Round, ScoreEntry
from huddle.models.player import Member
from huddle.models.stats import (
    AttendanceRecord,
    FinishedGame,
    MvpRanking,
    TeamStanding,
    TeamStatistics,
    VoteRecord,
)

logger = logging.getLogger(__name__)

# A game's lock lives only while some coroutine holds or awaits it.
_ledger_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


def _ledger_lock(game_id: str) -> asyncio.Lock:
    lock = _ledger_locks.get(game_id)
    if lock is None:
        lock = asyncio.Lock()
        _ledger_locks[game_id] = lock
    return lock


async def _require_game(repo: Repository, game_id: str) -> GameRow:
    game = await repo.get_game(game_id)
    if game is None:
        raise NotFoundError(f"Game {game_id} not found")
    return game


async def _load_ledger(repo: Repository, game_id: str) -> tuple[GameRecord, list[Round]]:
    record = GameRecord.model_validate(await _require_game(repo, game_id))
    return record, load_rounds(record)


async def _save_ledger(repo: Repository, record: GameRecord, ledger: list[Round]) -> None:
    saved = await repo.save_rounds(record.id, serialize_rounds(ledger), record.revision)
    if not saved:
        logger.warning("stale_ledger_write game=%s revision=%d", record.id, record.revision)
        raise StaleLedgerError(
            f"Game {record.id} changed since revision {record.revision}; reload and retry"
        )


# ---------------------------------------------------------------------------
# Ledger actions
# ---------------------------------------------------------------------------


async def generate_match(
    repo: Repository,
    game_id: str,
    team_count: int | None = None,
    mode: PartitionMode = "tier",
    rng: random.Random | None = None,
) -> Round:
    """Split the game's attending players into teams and append a new round.

    Args:
        repo: Repository bound to the caller's session.
        game_id: Game to generate for.
        team_count: Overrides (and updates) the game's team count when given.
        mode: ``"tier"`` or ``"random"``.
        rng: Random source for the shuffles.

    Raises:
        NotFoundError: Unknown game.
        ValidationError: Team count below 2, nobody attending, or fewer
            players than ``team_count * players_per_team``.
        StaleLedgerError: The ledger was written concurrently.
    """
    async with _ledger_lock(game_id):
        game = await _require_game(repo, game_id)
        count = team_count or game.team_count
        if count < 2:
            raise ValidationError(f"team_count must be at least 2, got {count}")

        players = await repo.get_player_pool(game_id)
        if not players:
            raise ValidationError(f"No attending players for game {game_id}")
        required = count * game.players_per_team
        if len(players) < required:
            raise ValidationError(
                f"Not enough players: {required} needed for {count} teams of "
                f"{game.players_per_team}, {len(players)} attending"
            )

        if count != game.team_count:
            await repo.update_game_team_count(game_id, count)

        teams = partition(players, count, mode, rng)
        record, ledger = await _load_ledger(repo, game_id)
        rnd = append_round(ledger, teams, count)
        await _save_ledger(repo, record, ledger)
        logger.info(
            "match_generated game=%s round=%d players=%d mode=%s",
            game_id,
            rnd.round_number,
            len(players),
            mode,
        )
        return rnd


async def add_quarter(
    repo: Repository,
    game_id: str,
    round_id: str,
    quarter: int | None = None,
) -> Round:
    """Append a zeroed quarter to a round; defaults to the next quarter number."""
    async with _ledger_lock(game_id):
        record, ledger = await _load_ledger(repo, game_id)
        if quarter is None:
            rnd = find_round(ledger, round_id)
            quarter = rnd.max_quarter + 1 if rnd.quarter_scores else 1
        rnd = append_quarter(ledger, round_id, quarter)
        await _save_ledger(repo, record, ledger)
        return rnd


async def enter_score(
    repo: Repository,
    game_id: str,
    round_id: str,
    quarter: int,
    team_number: int,
    score: int,
    opponent: int | None = None,
) -> Round:
    """Write one team's score for one quarter of a round."""
    async with _ledger_lock(game_id):
        record, ledger = await _load_ledger(repo, game_id)
        rnd = set_score(ledger, round_id, quarter, team_number, score, opponent)
        await _save_ledger(repo, record, ledger)
        logger.info(
            "score_entered game=%s round=%d quarter=%d team=%d score=%d",
            game_id,
            rnd.round_number,
            quarter,
            team_number,
            score,
        )
        return rnd


async def get_rounds(repo: Repository, game_id: str) -> list[Round]:
    """Read-only ledger view. A legacy game shows its migrated round."""
    _record, ledger = await _load_ledger(repo, game_id)
    return ledger


async def get_round_standings(
    repo: Repository,
    game_id: str,
    round_id: str,
) -> list[TeamStanding]:
    _record, ledger = await _load_ledger(repo, game_id)
    return round_standings(find_round(ledger, round_id))


# ---------------------------------------------------------------------------
# MVP voting
# ---------------------------------------------------------------------------


async def cast_vote(repo: Repository, game_id: str, voter_id: str, player_id: str) -> bool:
    """Record a vote and close voting once every attending member has voted.

    Returns True when this vote closed voting.

    Raises:
        NotFoundError: Unknown game.
        ValidationError: Voting for the game is already closed.
    """
    game = await _require_game(repo, game_id)
    if game.voting_status == "closed":
        raise ValidationError(f"Voting for game {game_id} is closed")

    await repo.cast_vote(game_id, voter_id, player_id)

    attending = await repo.get_attending_member_ids(game_id)
    voters = await repo.count_voters(game_id)
    if attending and voters >= len(attending):
        await repo.close_voting(game_id)
        logger.info("voting_closed game=%s voters=%d", game_id, voters)
        return True
    return False


async def get_game_votes(repo: Repository, game_id: str) -> list[MvpRanking]:
    """Full vote tally for one game."""
    votes = [
        VoteRecord(game_id=v.game_id, voter_id=v.voter_id, player_id=v.player_id)
        for v in await repo.get_votes_for_game(game_id)
    ]
    return mvp_ranking(votes, limit=None)


# ---------------------------------------------------------------------------
# Team statistics
# ---------------------------------------------------------------------------


async def _finished_game(repo: Repository, game: GameRow) -> FinishedGame:
    """Win-rate input for one game.

    Legacy score rows take precedence; otherwise the latest round's scores
    are flattened into the same per-team, per-quarter shape.
    """
    ledger = load_rounds(GameRecord.model_validate(game))
    legacy = await repo.get_legacy_scores(game.id)
    if legacy:
        scores = [
            ScoreEntry(team_number=s.team_number, quarter=s.quarter, score=s.score)
            for s in legacy
        ]
    elif ledger:
        scores = flatten_scores(ledger[-1])
    else:
        scores = []
    return FinishedGame(game_id=game.id, has_teams=bool(ledger), scores=scores)


async def compute_team_statistics(
    repo: Repository,
    team_id: str,
    mvp_limit: int = DEFAULT_MVP_LIMIT,
) -> TeamStatistics:
    """Attendance, MVP ranking and team win rates over the team's finished games."""
    if await repo.get_team(team_id) is None:
        raise NotFoundError(f"Team {team_id} not found")

    finished = await repo.get_finished_games(team_id)
    finished_ids = [g.id for g in finished]

    members = [
        Member(user_id=m.user_id, name=m.name, role=m.role, tier=m.tier)
        for m in await repo.get_members_for_team(team_id)
    ]
    records = [
        AttendanceRecord(game_id=a.game_id, user_id=a.user_id, status=a.status)
        for a in await repo.get_attendances_for_games(finished_ids)
    ]
    votes = [
        VoteRecord(game_id=v.game_id, voter_id=v.voter_id, player_id=v.player_id)
        for v in await repo.get_votes_for_team(team_id)
    ]

    names = {m.user_id: m.name for m in members}
    rankings = [
        r.model_copy(update={"player_name": names.get(r.player_id, "")})
        for r in mvp_ranking(votes, mvp_limit)
    ]
    games = [await _finished_game(repo, g) for g in finished]

    return TeamStatistics(
        team_id=team_id,
        attendance=attendance_stats(members, finished_ids, records),
        mvp_rankings=rankings,
        team_win_rates=team_win_rates(games),
        total_finished_games=len(finished),
    )
