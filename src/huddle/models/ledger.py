"""Round ledger models: team assignments, per-quarter match scores, rounds.

Stored blobs use the camelCase keys the web client has always written
(``teamNumber``, ``quarterScores``, ``maxQuarter``...). Attributes are
snake_case; both spellings validate.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from huddle.models.player import Player


class LedgerModel(BaseModel):
    """Base for everything serialized into a game's ledger blob."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TeamAssignment(LedgerModel):
    """One team within a round. Player order is assignment order."""

    team_number: int = Field(ge=1)
    players: list[Player] = Field(default_factory=list)


class MatchScore(LedgerModel):
    """Score cell for one pairing within one quarter."""

    team1: int = Field(ge=1)
    team2: int = Field(ge=1)
    score1: int = Field(default=0, ge=0)
    score2: int = Field(default=0, ge=0)

    def involves(self, team_number: int) -> bool:
        return team_number in (self.team1, self.team2)

    def score_for(self, team_number: int) -> int:
        """Points ``team_number`` scored in this pairing (0 if not involved)."""
        if team_number == self.team1:
            return self.score1
        if team_number == self.team2:
            return self.score2
        return 0


class QuarterScore(LedgerModel):
    """One scoring period of a round.

    ``legacy_scores`` holds the older ``{teamNumber: score}`` shape some
    quarters were written in. It is read-only: the ledger loader folds it
    into ``matches`` and it is never serialized back.
    """

    quarter: int = Field(ge=1)
    matches: list[MatchScore] = Field(default_factory=list)
    legacy_scores: dict[int, int] = Field(default_factory=dict, alias="scores", exclude=True)


class Round(LedgerModel):
    """One generated team composition for a game, plus its quarter scores."""

    id: str
    round_number: int = Field(ge=1)
    teams: list[TeamAssignment] = Field(default_factory=list)
    quarter_scores: list[QuarterScore] = Field(default_factory=list)
    max_quarter: int = Field(default=1, ge=1)
    created_at: datetime

    @property
    def team_count(self) -> int:
        return len(self.teams)


class ScoreEntry(BaseModel):
    """Flat legacy score shape: one row per (team, quarter)."""

    team_number: int = Field(ge=1)
    quarter: int = Field(ge=1)
    score: int = 0


class GameRecord(BaseModel):
    """The core's read view of a persisted game.

    ``rounds`` and ``teams`` are the raw stored values (decoded JSON or a
    JSON string); the ledger module decodes them.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    team_id: str = ""
    status: str = "pending"
    team_count: int = 2
    players_per_team: int = 5
    rounds: Any = None
    teams: Any = None
    revision: int = 0
    created_at: datetime
