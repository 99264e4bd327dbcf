from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1


class UnknownTeamInMatch(Exception):
    def __init__(self, team_id: str, match_id: Optional[str] = None, reason: str = None):
        self.team_id = team_id
        self.match_id = match_id
        self.reason = reason or (
            f"Match {match_id or '<unknown>'} references team {team_id} "
            f"which is not a member of the tournament"
        )
        super().__init__(self.reason)


@dataclass
class StandingRow:
    team: Dict[str, Any] = field(default_factory=dict)
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    points: int = 0

    def to_dict(self) -> dict:
        return {
            'team': self.team,
            'played': self.played,
            'wins': self.wins,
            'draws': self.draws,
            'losses': self.losses,
            'goals_for': self.goals_for,
            'goals_against': self.goals_against,
            'goal_difference': self.goal_difference,
            'points': self.points,
        }


def _score(value: Any) -> int:
    """Coerce a stored score to int. Null or non-numeric counts as 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def compute_standings(
    memberships: Iterable[Mapping[str, Any]],
    completed_matches: Iterable[Mapping[str, Any]]
) -> List[StandingRow]:
    """
    Build an ordered league table for one tournament.

    Args:
        memberships: one mapping per participating team with 'team_id' and
            'team' (display fields). Teams without matches still get a row.
        completed_matches: mappings with 'home_team_id', 'away_team_id',
            'home_score' and 'away_score'. Callers pass only completed matches.

    Returns:
        Rows sorted by points, then goal difference, both descending. Rows
        that tie on both keep membership order.

    Raises:
        UnknownTeamInMatch: a match names a team that has no membership.
    """
    rows: Dict[str, StandingRow] = {}
    for membership in memberships:
        team_id = membership['team_id']
        if team_id in rows:
            continue
        rows[team_id] = StandingRow(team=dict(membership.get('team') or {'id': team_id}))

    for match in completed_matches:
        home_id = match['home_team_id']
        away_id = match['away_team_id']
        match_id = match.get('id')

        for team_id in (home_id, away_id):
            if team_id not in rows:
                raise UnknownTeamInMatch(team_id, match_id)

        home = rows[home_id]
        away = rows[away_id]
        home_score = _score(match.get('home_score'))
        away_score = _score(match.get('away_score'))

        home.played += 1
        home.goals_for += home_score
        home.goals_against += away_score

        away.played += 1
        away.goals_for += away_score
        away.goals_against += home_score

        if home_score > away_score:
            home.wins += 1
            home.points += POINTS_FOR_WIN
            away.losses += 1
        elif away_score > home_score:
            away.wins += 1
            away.points += POINTS_FOR_WIN
            home.losses += 1
        else:
            home.draws += 1
            away.draws += 1
            home.points += POINTS_FOR_DRAW
            away.points += POINTS_FOR_DRAW

    standings = list(rows.values())
    for row in standings:
        row.goal_difference = row.goals_for - row.goals_against

    # sort() stays stable with reverse=True
    standings.sort(key=lambda r: (r.points, r.goal_difference), reverse=True)
    return standings
