"""Tests for head-to-head pairing generation."""

import pytest

from huddle.core.errors import ValidationError
from huddle.core.pairing import MatchPairing, generate_pairings


class TestGeneratePairings:
    def test_two_teams_single_match(self):
        assert generate_pairings(2) == [MatchPairing(1, 2)]

    def test_three_teams_canonical_order(self):
        assert generate_pairings(3) == [
            MatchPairing(1, 2),
            MatchPairing(1, 3),
            MatchPairing(2, 3),
        ]

    @pytest.mark.parametrize("n", [2, 3, 4, 5, 8])
    def test_count_is_n_choose_2(self, n: int):
        assert len(generate_pairings(n)) == n * (n - 1) // 2

    @pytest.mark.parametrize("n", [3, 4, 6])
    def test_every_team_meets_every_other_once(self, n: int):
        pairings = generate_pairings(n)
        seen = {frozenset((p.team1, p.team2)) for p in pairings}
        assert len(seen) == len(pairings)
        for i in range(1, n + 1):
            opponents = [
                p.team2 if p.team1 == i else p.team1
                for p in pairings
                if i in (p.team1, p.team2)
            ]
            assert sorted(opponents) == [t for t in range(1, n + 1) if t != i]

    def test_lower_team_number_first(self):
        assert all(p.team1 < p.team2 for p in generate_pairings(6))

    @pytest.mark.parametrize("n", [1, 0, -3])
    def test_fewer_than_two_teams_rejected(self, n: int):
        with pytest.raises(ValidationError):
            generate_pairings(n)

    def test_pairings_are_frozen(self):
        pairing = generate_pairings(2)[0]
        with pytest.raises(AttributeError):
            pairing.team1 = 5  # type: ignore[misc]
