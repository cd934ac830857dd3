"""Statistics models: rollup inputs and outputs for finished games."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from huddle.models.ledger import ScoreEntry
from huddle.models.player import AttendanceStatus


class Outcome(StrEnum):
    """Result of one head-to-head pairing."""

    TEAM1 = "team1"
    TEAM2 = "team2"
    TIE = "tie"


class MatchResult(BaseModel):
    """Totals for one pairing across every quarter of a round."""

    team1: int
    team2: int
    score1: int = 0
    score2: int = 0
    outcome: Outcome = Outcome.TIE


class TeamStanding(BaseModel):
    """Per-team record within a single round."""

    team_number: int
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: int = 0
    points_against: int = 0

    @property
    def point_diff(self) -> int:
        return self.points_for - self.points_against


class FinishedGame(BaseModel):
    """Win-rate input: one finished game and its per-team quarter scores."""

    game_id: str
    has_teams: bool = True
    scores: list[ScoreEntry] = Field(default_factory=list)


class TeamWinRate(BaseModel):
    team_number: int
    wins: int
    total_games: int
    win_rate: float


class AttendanceRecord(BaseModel):
    game_id: str
    user_id: str
    status: AttendanceStatus


class AttendanceStat(BaseModel):
    """Attendance over finished games. ``attendance_rate`` is None with no games."""

    user_id: str
    name: str = ""
    total_games: int = 0
    attended_games: int = 0
    attendance_rate: float | None = None


class VoteRecord(BaseModel):
    game_id: str
    voter_id: str
    player_id: str


class MvpRanking(BaseModel):
    player_id: str
    player_name: str = ""
    total_votes: int
    games_voted_in: int


class TeamStatistics(BaseModel):
    """Everything the team statistics page shows."""

    team_id: str
    attendance: list[AttendanceStat] = Field(default_factory=list)
    mvp_rankings: list[MvpRanking] = Field(default_factory=list)
    team_win_rates: list[TeamWinRate] = Field(default_factory=list)
    total_finished_games: int = 0
