"""Tests for database layer: engine, ORM models, repository round-trips."""

from sqlalchemy.ext.asyncio import AsyncEngine

from huddle.db.repository import Repository


async def _team_with_game(repo: Repository, **game_kwargs):
    team = await repo.create_team("Thursday Night Run")
    game = await repo.create_game(team.id, **game_kwargs)
    return team, game


class TestTableCreation:
    async def test_all_tables_created(self, engine: AsyncEngine):
        async with engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: sync_conn.dialect.get_table_names(sync_conn)
            )
        expected = {
            "teams",
            "team_members",
            "games",
            "attendances",
            "guests",
            "scores",
            "votes",
        }
        assert expected.issubset(set(tables))


class TestTeamsMembers:
    async def test_create_team_has_invite_code(self, repo: Repository):
        team = await repo.create_team("Pickup Crew")
        assert team.id is not None
        assert len(team.code) == 8

    async def test_member_defaults(self, repo: Repository):
        team = await repo.create_team("Pickup Crew")
        member = await repo.add_member(team.id, "u1", "Ana")
        assert member.role == "MEMBER"
        assert member.tier == "C"

    async def test_update_member_tier(self, repo: Repository):
        team = await repo.create_team("Pickup Crew")
        await repo.add_member(team.id, "u1", "Ana")
        updated = await repo.update_member(team.id, "u1", tier="A")
        assert updated is not None
        assert updated.tier == "A"
        assert updated.role == "MEMBER"

    async def test_update_unknown_member(self, repo: Repository):
        team = await repo.create_team("Pickup Crew")
        assert await repo.update_member(team.id, "ghost", tier="A") is None

    async def test_members_for_team(self, repo: Repository):
        team = await repo.create_team("Pickup Crew")
        other = await repo.create_team("Other Crew")
        await repo.add_member(team.id, "u1", "Ana")
        await repo.add_member(team.id, "u2", "Bo")
        await repo.add_member(other.id, "u3", "Cy")
        members = await repo.get_members_for_team(team.id)
        assert {m.user_id for m in members} == {"u1", "u2"}


class TestGames:
    async def test_game_defaults(self, repo: Repository):
        _team, game = await _team_with_game(repo)
        assert game.status == "pending"
        assert game.voting_status == "open"
        assert game.team_count == 2
        assert game.players_per_team == 5
        assert game.rounds is None
        assert game.teams is None
        assert game.revision == 0

    async def test_finished_games(self, repo: Repository):
        team, game = await _team_with_game(repo)
        await repo.create_game(team.id)
        await repo.update_game_status(game.id, "finished")
        finished = await repo.get_finished_games(team.id)
        assert [g.id for g in finished] == [game.id]

    async def test_pending_ledger_migration(self, repo: Repository):
        team = await repo.create_team("Pickup Crew")
        legacy = await repo.create_game(team.id, legacy_teams=[{"teamNumber": 1, "players": []}])
        migrated = await repo.create_game(team.id, legacy_teams=[])
        await repo.save_rounds(migrated.id, [], migrated.revision)
        await repo.create_game(team.id)
        pending = await repo.get_games_pending_ledger_migration()
        assert [g.id for g in pending] == [legacy.id]


class TestSaveRounds:
    async def test_save_bumps_revision(self, repo: Repository):
        _team, game = await _team_with_game(repo)
        stored = [{"id": "r1", "roundNumber": 1}]
        assert await repo.save_rounds(game.id, stored, 0) is True
        reloaded = await repo.get_game(game.id)
        assert reloaded.revision == 1
        assert reloaded.rounds == stored

    async def test_stale_revision_writes_nothing(self, repo: Repository):
        _team, game = await _team_with_game(repo)
        await repo.save_rounds(game.id, [{"id": "first"}], 0)
        assert await repo.save_rounds(game.id, [{"id": "second"}], 0) is False
        reloaded = await repo.get_game(game.id)
        assert reloaded.rounds == [{"id": "first"}]
        assert reloaded.revision == 1

    async def test_unknown_game(self, repo: Repository):
        assert await repo.save_rounds("missing", [], 0) is False


class TestAttendanceAndPool:
    async def test_attendance_upsert(self, repo: Repository):
        _team, game = await _team_with_game(repo)
        await repo.set_attendance(game.id, "u1", "absent")
        await repo.set_attendance(game.id, "u1", "attend")
        rows = await repo.get_attendances_for_games([game.id])
        assert [(r.user_id, r.status) for r in rows] == [("u1", "attend")]

    async def test_attendances_for_no_games(self, repo: Repository):
        assert await repo.get_attendances_for_games([]) == []

    async def test_player_pool(self, repo: Repository):
        team, game = await _team_with_game(repo)
        await repo.add_member(team.id, "u1", "Ana", tier="A")
        await repo.add_member(team.id, "u2", "Bo", tier="B")
        await repo.add_member(team.id, "u3", "", tier="B")
        await repo.set_attendance(game.id, "u1", "attend")
        await repo.set_attendance(game.id, "u2", "absent")
        await repo.set_attendance(game.id, "u3", "attend")
        guest = await repo.add_guest(game.id, "Drop-in Dee")

        pool = await repo.get_player_pool(game.id)
        assert [(p.id, p.name, p.tier, p.is_guest) for p in pool] == [
            ("u1", "Ana", "A", False),
            ("u3", "Unknown", "B", False),
            (guest.id, "Drop-in Dee", "C", True),
        ]

    async def test_pool_ignores_members_of_other_teams(self, repo: Repository):
        team, game = await _team_with_game(repo)
        other = await repo.create_team("Other Crew")
        await repo.add_member(other.id, "u9", "Stranger")
        await repo.set_attendance(game.id, "u9", "attend")
        assert await repo.get_player_pool(game.id) == []
        assert await repo.get_attending_member_ids(game.id) == []

    async def test_remove_guest(self, repo: Repository):
        _team, game = await _team_with_game(repo)
        guest = await repo.add_guest(game.id, "Drop-in Dee", tier="A")
        assert await repo.remove_guest("other-game", guest.id) is False
        assert await repo.remove_guest(game.id, guest.id) is True
        assert await repo.get_guests_for_game(game.id) == []


class TestLegacyScores:
    async def test_import_upserts(self, repo: Repository):
        _team, game = await _team_with_game(repo)
        await repo.import_legacy_score(game.id, 1, 1, 10)
        await repo.import_legacy_score(game.id, 2, 1, 8)
        await repo.import_legacy_score(game.id, 1, 1, 12)
        rows = await repo.get_legacy_scores(game.id)
        assert [(r.team_number, r.quarter, r.score) for r in rows] == [(1, 1, 12), (2, 1, 8)]


class TestVotes:
    async def test_one_vote_per_voter(self, repo: Repository):
        _team, game = await _team_with_game(repo)
        await repo.cast_vote(game.id, "u1", "p1")
        await repo.cast_vote(game.id, "u1", "p2")
        await repo.cast_vote(game.id, "u2", "p2")
        assert await repo.count_voters(game.id) == 2
        votes = await repo.get_votes_for_game(game.id)
        assert sorted((v.voter_id, v.player_id) for v in votes) == [("u1", "p2"), ("u2", "p2")]

    async def test_votes_for_team(self, repo: Repository):
        team, game = await _team_with_game(repo)
        other_game = await repo.create_game(team.id)
        await repo.cast_vote(game.id, "u1", "p1")
        await repo.cast_vote(other_game.id, "u1", "p1")
        assert len(await repo.get_votes_for_team(team.id)) == 2

    async def test_close_voting(self, repo: Repository):
        _team, game = await _team_with_game(repo)
        await repo.close_voting(game.id)
        assert (await repo.get_game(game.id)).voting_status == "closed"
