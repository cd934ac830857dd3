"""Roster seeding: YAML roster loading and demo roster generation.

Supports two flows:
1. Load a hand-written roster from YAML
2. Generate one programmatically (demos and tests)

Either roster can then be written to the database with ``seed_roster``.
"""

from __future__ import annotations

import random
import uuid
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from huddle.config import Settings
from huddle.db.models import GameRow, TeamRow
from huddle.db.repository import Repository
from huddle.models.player import TIERS, Player

# Neighborhood pickup crew names used for generated rosters.
_FIRST_NAMES = [
    "Avery", "Blake", "Casey", "Devon", "Emery", "Finley", "Gray", "Harper",
    "Indigo", "Jules", "Kai", "Logan", "Marlo", "Noel", "Oakley", "Parker",
    "Quinn", "Reese", "Sage", "Tatum", "Umber", "Vale", "Wren", "Yael",
]  # fmt: skip


class RosterConfig(BaseModel):
    """A team's roster: members plus any standing guests for the next game."""

    team_name: str = "Thursday Night Run"
    members: list[Player] = Field(default_factory=list)
    guests: list[Player] = Field(default_factory=list)

    @property
    def players(self) -> list[Player]:
        return self.members + self.guests


def generate_roster(
    num_players: int = 12,
    num_guests: int = 0,
    seed: int = 42,
) -> RosterConfig:
    """Generate a roster with tiers spread roughly evenly across A, B and C.

    Ids are uuid5-derived from the seed, so equal arguments give equal rosters.
    """
    rng = random.Random(seed)
    names = list(_FIRST_NAMES)
    rng.shuffle(names)

    def _player(idx: int, is_guest: bool) -> Player:
        kind = "guest" if is_guest else "member"
        return Player(
            id=str(uuid.uuid5(uuid.NAMESPACE_DNS, f"{kind}-{seed}-{idx}")),
            name=f"{names[idx % len(names)]} {idx + 1}",
            tier=TIERS[idx % len(TIERS)],
            is_guest=is_guest,
        )

    members = [_player(i, is_guest=False) for i in range(num_players)]
    guests = [_player(num_players + i, is_guest=True) for i in range(num_guests)]
    return RosterConfig(members=members, guests=guests)


def save_roster_yaml(config: RosterConfig, path: Path) -> None:
    """Save roster config to YAML."""
    data = config.model_dump()
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def load_roster_yaml(path: Path) -> RosterConfig:
    """Load roster config from YAML."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return RosterConfig.model_validate(data)


async def seed_roster(
    repo: Repository,
    config: RosterConfig,
    settings: Settings,
    location: str = "",
) -> tuple[TeamRow, GameRow]:
    """Create the team, its members and one game every member attends.

    The first member becomes the manager. The game takes its team count and
    players per team from the settings defaults; guests join that game only.
    """
    team = await repo.create_team(config.team_name)
    for i, player in enumerate(config.members):
        role = "MANAGER" if i == 0 else "MEMBER"
        await repo.add_member(team.id, player.id, player.name, role=role, tier=player.tier)

    game = await repo.create_game(
        team.id,
        location=location,
        team_count=settings.huddle_default_team_count,
        players_per_team=settings.huddle_default_players_per_team,
    )
    for player in config.members:
        await repo.set_attendance(game.id, player.id, "attend")
    for guest in config.guests:
        await repo.add_guest(game.id, guest.name, guest.tier)
    return team, game
