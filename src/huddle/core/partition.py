"""Split a player pool into N teams.

Two modes:

- ``random``: shuffle the whole pool, then deal players round-robin.
- ``tier``: shuffle each tier bucket (A, B, C) on its own, then deal A, B and
  C players in that order with one counter that keeps running across the
  buckets. Each team ends up within one player of every other team for every
  tier, and a bucket's leftover players start where the previous bucket
  stopped instead of always landing on team 1.

Players whose tier is not A, B or C are dealt with the C bucket.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import Literal

from huddle.core.errors import ValidationError
from huddle.models.ledger import TeamAssignment
from huddle.models.player import DEFAULT_TIER, TIERS, Player

logger = logging.getLogger(__name__)

PartitionMode = Literal["tier", "random"]


def _shuffled(players: Sequence[Player], rng: random.Random) -> list[Player]:
    """Return a shuffled copy. ``Random.shuffle`` is an unbiased Fisher-Yates."""
    pool = list(players)
    rng.shuffle(pool)
    return pool


def bucket_by_tier(players: Sequence[Player]) -> dict[str, list[Player]]:
    """Group players by tier, keeping input order inside each bucket."""
    buckets: dict[str, list[Player]] = {tier: [] for tier in TIERS}
    for player in players:
        tier = player.tier if player.tier in buckets else DEFAULT_TIER
        buckets[tier].append(player)
    return buckets


def _deal(ordered: Sequence[Player], team_count: int) -> list[TeamAssignment]:
    teams = [TeamAssignment(team_number=i + 1) for i in range(team_count)]
    for index, player in enumerate(ordered):
        teams[index % team_count].players.append(player)
    return teams


def partition(
    players: Sequence[Player],
    team_count: int,
    mode: PartitionMode = "tier",
    rng: random.Random | None = None,
) -> list[TeamAssignment]:
    """Distribute ``players`` over ``team_count`` teams numbered ``1..team_count``.

    Headcount checks (``team_count * players_per_team``) belong to the caller;
    any pool works here, including an empty one (all teams come back empty).

    Args:
        players: The pool: attending members plus guests.
        team_count: Number of teams, at least 2.
        mode: ``"tier"`` for tier-stratified dealing, ``"random"`` for a plain shuffle.
        rng: Random source. Pass a seeded ``random.Random`` for repeatable output.

    Raises:
        ValidationError: On a team count below 2 or an unknown mode.
    """
    if team_count < 2:
        raise ValidationError(f"team_count must be at least 2, got {team_count}")
    rng = rng or random.Random()

    if mode == "random":
        ordered = _shuffled(players, rng)
    elif mode == "tier":
        buckets = bucket_by_tier(players)
        ordered = [p for tier in TIERS for p in _shuffled(buckets[tier], rng)]
    else:
        raise ValidationError(f"Unknown partition mode: {mode!r}")

    teams = _deal(ordered, team_count)
    logger.debug(
        "partitioned players=%d teams=%d mode=%s sizes=%s",
        len(ordered),
        team_count,
        mode,
        [len(t.players) for t in teams],
    )
    return teams
