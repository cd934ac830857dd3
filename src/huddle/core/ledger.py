"""Round ledger: the per-game history of generated teams and quarter scores.

A game's ledger is a list of Rounds stored as one JSON value on the game
record. Rounds are only ever appended; a Round itself is edited in place
when a quarter is added or a score cell changes.

Older games carry a single flat team list (the "legacy team-set") instead of
a ledger. ``load_rounds`` presents those as a one-round ledger without
writing anything; the next write through the matchmaking service persists
the migrated shape. The legacy field is never written again.

Every function here is pure apart from mutating the ledger passed in.
Persisting the result is the caller's job.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from huddle.core.errors import CorruptStateError, NotFoundError, ValidationError
from huddle.core.pairing import MatchPairing, generate_pairings
from huddle.models.ledger import (
    GameRecord,
    MatchScore,
    QuarterScore,
    Round,
    ScoreEntry,
    TeamAssignment,
)

logger = logging.getLogger(__name__)

_ROUNDS = TypeAdapter(list[Round])
_TEAM_SET = TypeAdapter(list[TeamAssignment])

# Namespace for ids of rounds synthesized from a legacy team-set, so the same
# game always yields the same migrated round id.
LEGACY_ROUND_NAMESPACE = uuid.UUID("6f1c2a43-9d0e-4b7a-8f55-1e2d3c4b5a69")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _decode(raw: Any, what: str, game_id: str) -> Any:
    if isinstance(raw, (str, bytes)):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("corrupt_%s game=%s: %s", what, game_id, exc)
            msg = f"Stored {what} for game {game_id} is not valid JSON"
            raise CorruptStateError(msg) from exc
    return raw


def new_quarter(quarter: int, team_count: int) -> QuarterScore:
    """A quarter with one zeroed MatchScore per pairing, in canonical order."""
    return QuarterScore(
        quarter=quarter,
        matches=[MatchScore(team1=p.team1, team2=p.team2) for p in generate_pairings(team_count)],
    )


def _unify_quarter(quarter: QuarterScore, team_count: int) -> QuarterScore:
    """Fold a legacy ``{teamNumber: score}`` quarter into pairing-keyed matches.

    The score map held one number per team per quarter. Each number lands in
    exactly one cell so team totals match the map: team 1 in pairing (1, 2),
    every other team ``t`` in pairing (1, t). With two teams that is the
    single pairing.
    """
    if quarter.matches or not quarter.legacy_scores or team_count < 2:
        return quarter
    unified = new_quarter(quarter.quarter, team_count)
    for match in unified.matches:
        if match.team1 != 1:
            continue
        if match.team2 == 2:
            match.score1 = quarter.legacy_scores.get(1, 0)
        match.score2 = quarter.legacy_scores.get(match.team2, 0)
    return unified


def deserialize_rounds(raw: Any, game_id: str = "") -> list[Round]:
    """Decode a stored round list. Raises CorruptStateError on any failure."""
    data = _decode(raw, "rounds", game_id)
    try:
        rounds = _ROUNDS.validate_python(data)
    except PydanticValidationError as exc:
        logger.error("corrupt_rounds game=%s: %s", game_id, exc)
        msg = f"Stored rounds for game {game_id} do not match the ledger shape"
        raise CorruptStateError(msg) from exc
    for rnd in rounds:
        rnd.quarter_scores = [_unify_quarter(q, rnd.team_count) for q in rnd.quarter_scores]
    return rounds


def deserialize_team_set(raw: Any, game_id: str = "") -> list[TeamAssignment]:
    """Decode a legacy flat team list. Raises CorruptStateError on any failure."""
    data = _decode(raw, "teams", game_id)
    try:
        return _TEAM_SET.validate_python(data)
    except PydanticValidationError as exc:
        logger.error("corrupt_teams game=%s: %s", game_id, exc)
        msg = f"Stored teams for game {game_id} do not match the team-set shape"
        raise CorruptStateError(msg) from exc


def serialize_rounds(ledger: list[Round]) -> list[dict[str, Any]]:
    """JSON-ready ledger with the stored camelCase keys."""
    return _ROUNDS.dump_python(ledger, mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Loading and legacy migration
# ---------------------------------------------------------------------------


def migrate_legacy_team_set(
    teams: list[TeamAssignment],
    game_id: str,
    created_at: datetime,
) -> list[Round]:
    """Wrap a legacy team-set into a one-round ledger.

    The round has no quarters yet and ``max_quarter`` 1. Its id is derived
    from the game id, so migrating the same game twice gives equal ledgers.
    """
    return [
        Round(
            id=str(uuid.uuid5(LEGACY_ROUND_NAMESPACE, game_id)),
            round_number=1,
            teams=teams,
            quarter_scores=[],
            max_quarter=1,
            created_at=created_at,
        )
    ]


def load_rounds(game: GameRecord) -> list[Round]:
    """Return the game's ledger.

    Resolution order:
    1. A stored round list, returned as stored.
    2. A legacy team-set, migrated in memory (not persisted here).
    3. Nothing stored: an empty ledger.
    """
    if game.rounds is not None:
        return deserialize_rounds(game.rounds, game.id)
    if game.teams is not None:
        teams = deserialize_team_set(game.teams, game.id)
        logger.info("legacy_team_set_migrated game=%s teams=%d", game.id, len(teams))
        return migrate_legacy_team_set(teams, game.id, game.created_at)
    return []


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def find_round(ledger: list[Round], round_id: str) -> Round:
    for rnd in ledger:
        if rnd.id == round_id:
            return rnd
    raise NotFoundError(f"Round {round_id} not found")


def find_quarter(rnd: Round, quarter: int) -> QuarterScore:
    for qs in rnd.quarter_scores:
        if qs.quarter == quarter:
            return qs
    raise NotFoundError(f"Quarter {quarter} not found in round {rnd.round_number}")


def _has_quarter(rnd: Round, quarter: int) -> bool:
    return any(qs.quarter == quarter for qs in rnd.quarter_scores)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def append_round(
    ledger: list[Round],
    teams: list[TeamAssignment],
    team_count: int,
    now: datetime | None = None,
) -> Round:
    """Append a new round holding ``teams`` and a zeroed first quarter.

    Not idempotent: every call adds a round. Regenerating teams keeps the
    earlier rounds.
    """
    quarter = new_quarter(1, team_count)
    rnd = Round(
        id=str(uuid.uuid4()),
        round_number=len(ledger) + 1,
        teams=teams,
        quarter_scores=[quarter],
        max_quarter=1,
        created_at=now or datetime.now(UTC),
    )
    ledger.append(rnd)
    logger.info(
        "round_appended round=%d teams=%d pairings=%d",
        rnd.round_number,
        team_count,
        len(quarter.matches),
    )
    return rnd


def _insert_quarter(rnd: Round, quarter: QuarterScore) -> None:
    """Add ``quarter`` keeping the list ordered and ``max_quarter`` the highest number."""
    rnd.quarter_scores.append(quarter)
    rnd.quarter_scores.sort(key=lambda qs: qs.quarter)
    rnd.max_quarter = max(rnd.max_quarter, quarter.quarter)


def append_quarter(ledger: list[Round], round_id: str, new_quarter_number: int) -> Round:
    """Add a zeroed quarter to a round.

    The caller picks the number (normally ``max_quarter + 1``); gaps are
    allowed, duplicates are not. Quarters stay ordered and ``max_quarter``
    only ever grows.
    """
    rnd = find_round(ledger, round_id)
    if new_quarter_number < 1:
        raise ValidationError(f"quarter must be at least 1, got {new_quarter_number}")
    if _has_quarter(rnd, new_quarter_number):
        raise ValidationError(
            f"Quarter {new_quarter_number} already exists in round {rnd.round_number}"
        )
    _insert_quarter(rnd, new_quarter(new_quarter_number, rnd.team_count))
    logger.info("quarter_appended round=%d quarter=%d", rnd.round_number, new_quarter_number)
    return rnd


def _validate_score(score: Any) -> int:
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValidationError(f"score must be an integer, got {score!r}")
    if score < 0:
        raise ValidationError(f"score must not be negative, got {score}")
    return score


def _resolve_pairing(rnd: Round, team_number: int, opponent: int | None) -> MatchPairing:
    candidates = [p for p in generate_pairings(rnd.team_count) if team_number in (p.team1, p.team2)]
    if opponent is not None:
        candidates = [
            p for p in candidates if opponent in (p.team1, p.team2) and opponent != team_number
        ]
        if not candidates:
            raise NotFoundError(
                f"No pairing between teams {team_number} and {opponent} "
                f"in round {rnd.round_number}"
            )
    elif len(candidates) > 1:
        raise ValidationError(
            f"Round {rnd.round_number} has {rnd.team_count} teams; "
            "an opponent is required to pick the pairing"
        )
    return candidates[0]


def set_score(
    ledger: list[Round],
    round_id: str,
    quarter: int,
    team_number: int,
    score: int,
    opponent: int | None = None,
) -> Round:
    """Record ``team_number``'s score for one quarter of a round.

    A quarter that does not exist yet is created zeroed (existing quarters are
    kept, the list stays ordered by quarter, ``max_quarter`` grows to cover
    it). With a single pairing the opponent is implied; with a round-robin of
    three or more teams ``opponent`` picks the pairing. Every check runs
    before anything is written, so a rejected call leaves the round as it was.

    Raises:
        NotFoundError: Unknown round, or no pairing between the two teams.
        ValidationError: Bad quarter, team number or score, or a missing
            opponent where more than one pairing exists.
    """
    rnd = find_round(ledger, round_id)
    score = _validate_score(score)
    if quarter < 1:
        raise ValidationError(f"quarter must be at least 1, got {quarter}")
    if not 1 <= team_number <= rnd.team_count:
        raise ValidationError(
            f"team_number must be between 1 and {rnd.team_count}, got {team_number}"
        )
    pairing = _resolve_pairing(rnd, team_number, opponent)

    if not _has_quarter(rnd, quarter):
        _insert_quarter(rnd, new_quarter(quarter, rnd.team_count))
        logger.info("quarter_created_by_score round=%d quarter=%d", rnd.round_number, quarter)
    qs = find_quarter(rnd, quarter)

    match = next(
        (m for m in qs.matches if (m.team1, m.team2) == (pairing.team1, pairing.team2)),
        None,
    )
    if match is None:
        match = MatchScore(team1=pairing.team1, team2=pairing.team2)
        qs.matches.append(match)
    if match.team1 == team_number:
        match.score1 = score
    else:
        match.score2 = score
    return rnd


# ---------------------------------------------------------------------------
# Read-compatibility
# ---------------------------------------------------------------------------


def flatten_scores(rnd: Round) -> list[ScoreEntry]:
    """Project a round onto the flat legacy score shape.

    One entry per (team, quarter), the team's points summed over every
    pairing it played that quarter. Quarters come out in ledger order.
    """
    entries: list[ScoreEntry] = []
    for qs in rnd.quarter_scores:
        for team in rnd.teams:
            points = sum(m.score_for(team.team_number) for m in qs.matches)
            entries.append(
                ScoreEntry(team_number=team.team_number, quarter=qs.quarter, score=points)
            )
    return entries
