"""Repository pattern for database access.

Wraps SQLAlchemy async sessions. The round ledger is written only through
``save_rounds``, a compare-and-swap on ``games.revision``. The legacy score
table is imported into but never written by score entry.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from huddle.db.models import (
    AttendanceRow,
    GameRow,
    GuestRow,
    MemberRow,
    ScoreRow,
    TeamRow,
    VoteRow,
)
from huddle.models.player import Player


class Repository:
    """Async repository for all database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Teams / Members ---

    async def create_team(self, name: str, description: str = "") -> TeamRow:
        row = TeamRow(name=name, description=description)
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_team(self, team_id: str) -> TeamRow | None:
        return await self.session.get(TeamRow, team_id)

    async def add_member(
        self,
        team_id: str,
        user_id: str,
        name: str = "",
        role: str = "MEMBER",
        tier: str = "C",
    ) -> MemberRow:
        row = MemberRow(team_id=team_id, user_id=user_id, name=name, role=role, tier=tier)
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_member(self, team_id: str, user_id: str) -> MemberRow | None:
        stmt = select(MemberRow).where(
            MemberRow.team_id == team_id,
            MemberRow.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_members_for_team(self, team_id: str) -> list[MemberRow]:
        stmt = (
            select(MemberRow)
            .where(MemberRow.team_id == team_id)
            .order_by(MemberRow.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_member(
        self,
        team_id: str,
        user_id: str,
        role: str | None = None,
        tier: str | None = None,
    ) -> MemberRow | None:
        """Change a member's role and/or tier. Returns None for unknown members."""
        member = await self.get_member(team_id, user_id)
        if member is None:
            return None
        if role is not None:
            member.role = role
        if tier is not None:
            member.tier = tier
        await self.session.flush()
        return member

    # --- Games ---

    async def create_game(
        self,
        team_id: str,
        scheduled_at: datetime | None = None,
        location: str = "",
        description: str = "",
        team_count: int = 2,
        players_per_team: int = 5,
        legacy_teams: list | str | None = None,
    ) -> GameRow:
        """Create a pending game.

        ``legacy_teams`` seeds the pre-ledger team-set column; only imports of
        old data pass it.
        """
        row = GameRow(
            team_id=team_id,
            scheduled_at=scheduled_at,
            location=location,
            description=description,
            team_count=team_count,
            players_per_team=players_per_team,
        )
        if legacy_teams is not None:
            row.teams = legacy_teams
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_game(self, game_id: str) -> GameRow | None:
        return await self.session.get(GameRow, game_id)

    async def get_all_games(self) -> list[GameRow]:
        stmt = select(GameRow).order_by(GameRow.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_finished_games(self, team_id: str) -> list[GameRow]:
        stmt = (
            select(GameRow)
            .where(GameRow.team_id == team_id, GameRow.status == "finished")
            .order_by(GameRow.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_games_pending_ledger_migration(self) -> list[GameRow]:
        """Games that still only carry a legacy team-set.

        Filtered in Python: a JSON column may hold SQL NULL or JSON ``null``.
        """
        return [g for g in await self.get_all_games() if g.rounds is None and g.teams is not None]

    async def update_game_team_count(self, game_id: str, team_count: int) -> None:
        game = await self.get_game(game_id)
        if game:
            game.team_count = team_count
            game.updated_at = datetime.now(UTC)
            await self.session.flush()

    async def update_game_status(self, game_id: str, status: str) -> None:
        """Set ``pending`` / ``finished``."""
        game = await self.get_game(game_id)
        if game:
            game.status = status
            game.updated_at = datetime.now(UTC)
            await self.session.flush()

    async def save_rounds(self, game_id: str, rounds: list[dict], expected_revision: int) -> bool:
        """Replace the stored ledger if nobody else wrote it since ``expected_revision``.

        Returns False (and writes nothing) when the stored revision moved on.
        """
        stmt = (
            update(GameRow)
            .where(GameRow.id == game_id, GameRow.revision == expected_revision)
            .values(
                rounds=rounds,
                revision=expected_revision + 1,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    # --- Attendance / Guests ---

    async def set_attendance(self, game_id: str, user_id: str, status: str) -> AttendanceRow:
        """Upsert a member's attendance answer for a game."""
        stmt = select(AttendanceRow).where(
            AttendanceRow.game_id == game_id,
            AttendanceRow.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is not None:
            row.status = status
            row.updated_at = datetime.now(UTC)
        else:
            row = AttendanceRow(game_id=game_id, user_id=user_id, status=status)
            self.session.add(row)
        await self.session.flush()
        return row

    async def get_attendances_for_games(self, game_ids: Iterable[str]) -> list[AttendanceRow]:
        ids = list(game_ids)
        if not ids:
            return []
        stmt = select(AttendanceRow).where(AttendanceRow.game_id.in_(ids))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_attending_member_ids(self, game_id: str) -> list[str]:
        """User ids of team members who answered ``attend`` for the game."""
        stmt = (
            select(MemberRow.user_id)
            .join(AttendanceRow, AttendanceRow.user_id == MemberRow.user_id)
            .join(GameRow, GameRow.id == AttendanceRow.game_id)
            .where(
                AttendanceRow.game_id == game_id,
                AttendanceRow.status == "attend",
                MemberRow.team_id == GameRow.team_id,
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add_guest(self, game_id: str, name: str, tier: str = "C") -> GuestRow:
        row = GuestRow(game_id=game_id, name=name, tier=tier)
        self.session.add(row)
        await self.session.flush()
        return row

    async def remove_guest(self, game_id: str, guest_id: str) -> bool:
        guest = await self.session.get(GuestRow, guest_id)
        if guest is None or guest.game_id != game_id:
            return False
        await self.session.delete(guest)
        await self.session.flush()
        return True

    async def get_guests_for_game(self, game_id: str) -> list[GuestRow]:
        stmt = select(GuestRow).where(GuestRow.game_id == game_id).order_by(GuestRow.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_player_pool(self, game_id: str) -> list[Player]:
        """Attending members (with their team tier) followed by every guest."""
        stmt = (
            select(MemberRow)
            .join(AttendanceRow, AttendanceRow.user_id == MemberRow.user_id)
            .join(GameRow, GameRow.id == AttendanceRow.game_id)
            .where(
                AttendanceRow.game_id == game_id,
                AttendanceRow.status == "attend",
                MemberRow.team_id == GameRow.team_id,
            )
            .order_by(MemberRow.created_at)
        )
        result = await self.session.execute(stmt)
        members = [
            Player(id=m.user_id, name=m.name or "Unknown", tier=m.tier, is_guest=False)
            for m in result.scalars().all()
        ]
        guests = [
            Player(id=g.id, name=g.name, tier=g.tier, is_guest=True)
            for g in await self.get_guests_for_game(game_id)
        ]
        return members + guests

    # --- Legacy scores ---

    async def import_legacy_score(
        self,
        game_id: str,
        team_number: int,
        quarter: int,
        score: int,
    ) -> ScoreRow:
        """Upsert one row of the pre-ledger score table (data imports only)."""
        stmt = select(ScoreRow).where(
            ScoreRow.game_id == game_id,
            ScoreRow.team_number == team_number,
            ScoreRow.quarter == quarter,
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is not None:
            row.score = score
            row.updated_at = datetime.now(UTC)
        else:
            row = ScoreRow(game_id=game_id, team_number=team_number, quarter=quarter, score=score)
            self.session.add(row)
        await self.session.flush()
        return row

    async def get_legacy_scores(self, game_id: str) -> list[ScoreRow]:
        stmt = (
            select(ScoreRow)
            .where(ScoreRow.game_id == game_id)
            .order_by(ScoreRow.quarter, ScoreRow.team_number)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # --- Votes ---

    async def cast_vote(self, game_id: str, voter_id: str, player_id: str) -> VoteRow:
        """One vote per voter per game; voting again replaces the choice."""
        stmt = select(VoteRow).where(VoteRow.game_id == game_id, VoteRow.voter_id == voter_id)
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is not None:
            row.player_id = player_id
        else:
            row = VoteRow(game_id=game_id, voter_id=voter_id, player_id=player_id)
            self.session.add(row)
        await self.session.flush()
        return row

    async def count_voters(self, game_id: str) -> int:
        stmt = select(func.count(func.distinct(VoteRow.voter_id))).where(
            VoteRow.game_id == game_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def get_votes_for_game(self, game_id: str) -> list[VoteRow]:
        stmt = select(VoteRow).where(VoteRow.game_id == game_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_votes_for_team(self, team_id: str) -> list[VoteRow]:
        stmt = (
            select(VoteRow)
            .join(GameRow, GameRow.id == VoteRow.game_id)
            .where(GameRow.team_id == team_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def close_voting(self, game_id: str) -> None:
        game = await self.get_game(game_id)
        if game:
            game.voting_status = "closed"
            game.updated_at = datetime.now(UTC)
            await self.session.flush()
