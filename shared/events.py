from enum import Enum
from dataclasses import dataclass
from datetime import datetime
from typing import List
import json


class EventType(str, Enum):
    TOURNAMENT_CREATED = "tournament.created"

    # Membership changes
    TEAMS_ASSIGNED = "teams.assigned"
    TEAMS_REPLACED = "teams.replaced"

    # Match events
    MATCH_SCHEDULED = "match.scheduled"
    MATCH_STATUS_CHANGED = "match.status_changed"
    SCORE_RECORDED = "match.score_recorded"


# Events after which a cached league table is stale
STANDINGS_EVENTS = {
    EventType.TEAMS_ASSIGNED,
    EventType.TEAMS_REPLACED,
    EventType.MATCH_STATUS_CHANGED,
    EventType.SCORE_RECORDED,
}


@dataclass
class Event:
    type: EventType
    tournament_id: str
    timestamp: str = None
    data: dict = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.utcnow().isoformat() + "Z"
        if self.data is None:
            self.data = {}

    @property
    def affects_standings(self) -> bool:
        return self.type in STANDINGS_EVENTS

    def to_dict(self) -> dict:
        return {
            "type": self.type.value if isinstance(self.type, EventType) else self.type,
            "tournament_id": self.tournament_id,
            "timestamp": self.timestamp,
            "data": self.data,
            "affects_standings": self.affects_standings,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        return cls(
            type=EventType(data["type"]) if data["type"] in [e.value for e in EventType] else data["type"],
            tournament_id=data["tournament_id"],
            timestamp=data.get("timestamp"),
            data=data.get("data", {})
        )

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        return cls.from_dict(json.loads(json_str))


def tournament_created_event(tournament_id: str, name: str) -> Event:
    return Event(
        type=EventType.TOURNAMENT_CREATED,
        tournament_id=tournament_id,
        data={"name": name}
    )


def teams_assigned_event(tournament_id: str, team_ids: List[str], replaced: bool = False) -> Event:
    return Event(
        type=EventType.TEAMS_REPLACED if replaced else EventType.TEAMS_ASSIGNED,
        tournament_id=tournament_id,
        data={"team_ids": list(team_ids)}
    )


def match_scheduled_event(tournament_id: str, match_id: str, home_team_id: str, away_team_id: str) -> Event:
    return Event(
        type=EventType.MATCH_SCHEDULED,
        tournament_id=tournament_id,
        data={
            "match_id": match_id,
            "home_team_id": home_team_id,
            "away_team_id": away_team_id
        }
    )


def match_status_event(tournament_id: str, match_id: str, from_state: str, to_state: str) -> Event:
    return Event(
        type=EventType.MATCH_STATUS_CHANGED,
        tournament_id=tournament_id,
        data={
            "match_id": match_id,
            "from_state": from_state,
            "to_state": to_state
        }
    )


def score_recorded_event(tournament_id: str, match_id: str, home_score: int, away_score: int) -> Event:
    return Event(
        type=EventType.SCORE_RECORDED,
        tournament_id=tournament_id,
        data={
            "match_id": match_id,
            "home_score": home_score,
            "away_score": away_score
        }
    )
