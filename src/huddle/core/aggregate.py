"""Score and statistics rollups.

Per-round: team totals, pairing results and a standings table.
Across finished games: team win rates, member attendance, MVP votes.
"""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from collections.abc import Iterable

from huddle.models.ledger import Round, ScoreEntry
from huddle.models.player import Member
from huddle.models.stats import (
    AttendanceRecord,
    AttendanceStat,
    FinishedGame,
    MatchResult,
    MvpRanking,
    Outcome,
    TeamStanding,
    TeamWinRate,
    VoteRecord,
)

DEFAULT_MVP_LIMIT = 10


def _one_decimal_pct(part: int, whole: int) -> float:
    """Percentage with one decimal, halves rounded up: 2/3 -> 66.7, 1/16 -> 6.3."""
    return math.floor(part / whole * 1000 + 0.5) / 10


def match_total(scores: Round | Iterable[ScoreEntry], team_number: int) -> int:
    """Total points for ``team_number``.

    ``scores`` is either a Round (sums the team's side of every pairing in
    every quarter) or flat legacy score entries for one game.
    """
    if isinstance(scores, Round):
        return sum(
            m.score_for(team_number) for qs in scores.quarter_scores for m in qs.matches
        )
    return sum(s.score for s in scores if s.team_number == team_number)


def winner(team1_total: int, team2_total: int) -> Outcome:
    if team1_total > team2_total:
        return Outcome.TEAM1
    if team2_total > team1_total:
        return Outcome.TEAM2
    return Outcome.TIE


def match_results(rnd: Round) -> list[MatchResult]:
    """Sum each pairing over all quarters, in first-seen pairing order."""
    totals: dict[tuple[int, int], list[int]] = {}
    for qs in rnd.quarter_scores:
        for m in qs.matches:
            cell = totals.setdefault((m.team1, m.team2), [0, 0])
            cell[0] += m.score1
            cell[1] += m.score2
    return [
        MatchResult(team1=t1, team2=t2, score1=s1, score2=s2, outcome=winner(s1, s2))
        for (t1, t2), (s1, s2) in totals.items()
    ]


def round_standings(rnd: Round) -> list[TeamStanding]:
    """Standings for one round.

    Returns:
        One entry per team, sorted by wins desc, then point diff desc, then
        team number.
    """
    table = {t.team_number: TeamStanding(team_number=t.team_number) for t in rnd.teams}

    for result in match_results(rnd):
        home = table.setdefault(result.team1, TeamStanding(team_number=result.team1))
        away = table.setdefault(result.team2, TeamStanding(team_number=result.team2))
        home.points_for += result.score1
        home.points_against += result.score2
        away.points_for += result.score2
        away.points_against += result.score1

        if result.outcome == Outcome.TEAM1:
            home.wins += 1
            away.losses += 1
        elif result.outcome == Outcome.TEAM2:
            away.wins += 1
            home.losses += 1
        else:
            home.ties += 1
            away.ties += 1

    return sorted(table.values(), key=lambda s: (-s.wins, -s.point_diff, s.team_number))


def team_win_rates(finished_games: Iterable[FinishedGame]) -> list[TeamWinRate]:
    """Win rate per team number across finished games.

    A game counts only when it has teams and recorded scores and exactly one
    team holds the top total. Tied games add nothing, not even to
    ``total_games``. Teams that never won are not listed.
    """
    total_games = 0
    wins: Counter[int] = Counter()

    for game in finished_games:
        if not game.has_teams or not game.scores:
            continue
        totals: dict[int, int] = defaultdict(int)
        for entry in game.scores:
            totals[entry.team_number] += entry.score
        top = max(totals.values())
        leaders = [team for team, total in totals.items() if total == top]
        if len(leaders) != 1:
            continue
        total_games += 1
        wins[leaders[0]] += 1

    return [
        TeamWinRate(
            team_number=team,
            wins=count,
            total_games=total_games,
            win_rate=_one_decimal_pct(count, total_games),
        )
        for team, count in sorted(wins.items())
    ]


def attendance_rate(
    member_id: str,
    finished_game_ids: Iterable[str],
    records: Iterable[AttendanceRecord],
) -> float | None:
    """Share of finished games the member attended, as a one-decimal percentage.

    Returns None when there are no finished games to measure against.
    """
    game_ids = set(finished_game_ids)
    if not game_ids:
        return None
    attended = {
        r.game_id
        for r in records
        if r.user_id == member_id and r.status == "attend" and r.game_id in game_ids
    }
    return _one_decimal_pct(len(attended), len(game_ids))


def attendance_stats(
    members: Iterable[Member],
    finished_game_ids: Iterable[str],
    records: Iterable[AttendanceRecord],
) -> list[AttendanceStat]:
    """Attendance for every member, highest rate first (members without a rate last)."""
    game_ids = set(finished_game_ids)
    records = list(records)
    stats = []
    for member in members:
        attended = {
            r.game_id
            for r in records
            if r.user_id == member.user_id and r.status == "attend" and r.game_id in game_ids
        }
        stats.append(
            AttendanceStat(
                user_id=member.user_id,
                name=member.name,
                total_games=len(game_ids),
                attended_games=len(attended),
                attendance_rate=(
                    _one_decimal_pct(len(attended), len(game_ids)) if game_ids else None
                ),
            )
        )
    return sorted(
        stats,
        key=lambda s: (s.attendance_rate is None, -(s.attendance_rate or 0.0)),
    )


def mvp_ranking(
    votes: Iterable[VoteRecord],
    limit: int | None = DEFAULT_MVP_LIMIT,
) -> list[MvpRanking]:
    """Vote totals per player, most votes first (ties by player id).

    ``limit=None`` returns every player, which is how a single game's tally
    is shown.
    """
    total: Counter[str] = Counter()
    games: dict[str, set[str]] = defaultdict(set)
    for vote in votes:
        total[vote.player_id] += 1
        games[vote.player_id].add(vote.game_id)

    ranking = sorted(
        (
            MvpRanking(player_id=pid, total_votes=count, games_voted_in=len(games[pid]))
            for pid, count in total.items()
        ),
        key=lambda r: (-r.total_votes, r.player_id),
    )
    return ranking if limit is None else ranking[:limit]
