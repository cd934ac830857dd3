"""SQLAlchemy ORM models for the Huddle database.

Tables: teams, team_members, games, attendances, guests, scores (legacy,
read-only for the ledger), votes.

A game's round ledger lives in ``games.rounds`` as one JSON value, guarded
by ``games.revision``. ``games.teams`` is the pre-ledger single team-set; it
is read for migration and never written by the ledger path.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _invite_code() -> str:
    return uuid.uuid4().hex[:8].upper()


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class TeamRow(Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(
        String(16), nullable=False, unique=True, default=_invite_code
    )
    description: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    members: Mapped[list[MemberRow]] = relationship(back_populates="team")
    games: Mapped[list[GameRow]] = relationship(back_populates="team")


class MemberRow(Base):
    __tablename__ = "team_members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    name: Mapped[str] = mapped_column(String(100), default="")
    role: Mapped[str] = mapped_column(String(10), default="MEMBER")
    tier: Mapped[str] = mapped_column(String(1), default="C")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    team: Mapped[TeamRow] = relationship(back_populates="members")

    __table_args__ = (
        UniqueConstraint("user_id", "team_id", name="uq_member_user_team"),
        Index("ix_team_members_team_id", "team_id"),
    )


class GameRow(Base):
    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    team_id: Mapped[str] = mapped_column(ForeignKey("teams.id"), nullable=False)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    location: Mapped[str] = mapped_column(String(200), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(20), default="pending")
    voting_status: Mapped[str] = mapped_column(String(10), default="open")
    team_count: Mapped[int] = mapped_column(Integer, default=2)
    players_per_team: Mapped[int] = mapped_column(Integer, default=5)
    teams: Mapped[list | None] = mapped_column(JSON, nullable=True)
    rounds: Mapped[list | None] = mapped_column(JSON, nullable=True)
    revision: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    team: Mapped[TeamRow] = relationship(back_populates="games")

    __table_args__ = (Index("ix_games_team_status", "team_id", "status"),)


class AttendanceRow(Base):
    __tablename__ = "attendances"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(String(10), default="pending")
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    __table_args__ = (UniqueConstraint("game_id", "user_id", name="uq_attendance_game_user"),)


class GuestRow(Base):
    __tablename__ = "guests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    tier: Mapped[str] = mapped_column(String(1), default="C")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    __table_args__ = (Index("ix_guests_game_id", "game_id"),)


class ScoreRow(Base):
    """Pre-ledger flat score table. Read for statistics, never written by the ledger."""

    __tablename__ = "scores"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), nullable=False)
    team_number: Mapped[int] = mapped_column(Integer, nullable=False)
    quarter: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    __table_args__ = (
        UniqueConstraint("game_id", "team_number", "quarter", name="uq_score_game_team_quarter"),
    )


class VoteRow(Base):
    __tablename__ = "votes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), nullable=False)
    voter_id: Mapped[str] = mapped_column(String(36), nullable=False)
    player_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    __table_args__ = (
        UniqueConstraint("game_id", "voter_id", name="uq_vote_game_voter"),
        Index("ix_votes_game_id", "game_id"),
    )
