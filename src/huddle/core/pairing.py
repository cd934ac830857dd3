"""Head-to-head pairings for one round.

Two teams play a single match. Three or more teams play a full round-robin
inside every quarter: each team meets every other team exactly once. The
enumeration order (outer team ascending, inner team ascending) is the
canonical order of the match list in every quarter.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations

from huddle.core.errors import ValidationError


@dataclass(frozen=True)
class MatchPairing:
    """Two team numbers that face each other. Always ``team1 < team2``."""

    team1: int
    team2: int


def generate_pairings(team_count: int) -> list[MatchPairing]:
    """Return every pairing for ``team_count`` teams numbered from 1.

    Args:
        team_count: Number of teams in the round. Must be at least 2.

    Returns:
        ``[(1, 2)]`` for two teams, ``n*(n-1)/2`` pairings otherwise.

    Raises:
        ValidationError: If ``team_count`` is below 2.
    """
    if team_count < 2:
        raise ValidationError(f"team_count must be at least 2, got {team_count}")
    return [MatchPairing(i, j) for i, j in combinations(range(1, team_count + 1), 2)]
