import uuid
import logging
from datetime import date, time
from typing import List, Dict, Optional, Tuple

from .models import db, Match, Team, Tournament, TournamentTeam
from shared.events import match_scheduled_event, match_status_event, score_recorded_event
from shared.pubsub import EventPublisher
from shared.standings import compute_standings, StandingRow, UnknownTeamInMatch
from shared.state_machine import MatchStateMachine, MatchState, TransitionError

logger = logging.getLogger(__name__)


def list_all_matches(tournament_id: str = None) -> List[Match]:
    """Matches across tournaments, earliest kick-off first."""
    query = Match.query
    if tournament_id:
        query = query.join(Tournament).filter(Tournament.tournament_id == tournament_id)
    return query.order_by(Match.match_date, Match.match_time, Match.id).all()


class MatchEngine:
    def __init__(self, tournament_id: str, publisher: EventPublisher = None):
        self.tournament_id = tournament_id
        self.publisher = publisher or EventPublisher()
        # Foreign keys use the numeric ID
        self.t_record = Tournament.query.filter_by(tournament_id=tournament_id).first()
        if not self.t_record:
            raise ValueError(f"Tournament {tournament_id} not found")
        self.db_id = self.t_record.id

    def _member_team(self, team_id: str) -> Optional[Team]:
        return (
            Team.query
            .join(TournamentTeam, TournamentTeam.team_id == Team.id)
            .filter(TournamentTeam.tournament_id == self.db_id, Team.team_id == team_id)
            .first()
        )

    def get_match(self, match_id: str) -> Optional[Match]:
        return Match.query.filter_by(tournament_id=self.db_id, match_id=match_id).first()

    def get_matches(self, status: str = None) -> List[Dict]:
        query = Match.query.filter_by(tournament_id=self.db_id)
        if status:
            query = query.filter_by(status=status)
        matches = query.order_by(Match.match_date, Match.match_time, Match.id).all()
        return [m.to_dict() for m in matches]

    def schedule_match(
        self,
        home_team_id: str,
        away_team_id: str,
        match_date: date,
        match_time: time,
        venue: str = None
    ) -> Tuple[Optional[Match], str]:
        if home_team_id == away_team_id:
            return None, "Home and away teams cannot be the same"

        home = self._member_team(home_team_id)
        if not home:
            return None, f"Team {home_team_id} is not in this tournament"
        away = self._member_team(away_team_id)
        if not away:
            return None, f"Team {away_team_id} is not in this tournament"

        match = Match(
            match_id=f"m_{uuid.uuid4().hex[:12]}",
            tournament_id=self.db_id,
            home_team_id=home.id,
            away_team_id=away.id,
            match_date=match_date,
            match_time=match_time,
            venue=venue or None,
            status=MatchState.SCHEDULED.value
        )
        db.session.add(match)
        db.session.commit()

        logger.info(f"Scheduled {match.match_id}: {home.name} vs {away.name} in {self.tournament_id}")
        self.publisher.publish_tournament_event(
            match_scheduled_event(self.tournament_id, match.match_id, home_team_id, away_team_id)
        )
        return match, "Match scheduled successfully!"

    def record_score(self, match_id: str, home_score: int, away_score: int) -> Tuple[bool, str]:
        """Store the final score and mark the match completed."""
        match = self.get_match(match_id)
        if not match:
            return False, f"Match {match_id} not found"

        sm = MatchStateMachine.from_state_string(match.status)
        try:
            new_state = sm.transition('record_score', {
                'home_score': home_score,
                'away_score': away_score
            })
        except TransitionError as e:
            logger.warning(f"Rejected score for {match_id}: {e}")
            return False, str(e)

        old_state = match.status
        match.home_score = home_score
        match.away_score = away_score
        match.status = new_state.value
        db.session.commit()

        logger.info(f"Recorded {home_score}-{away_score} for {match_id} in {self.tournament_id}")
        self.publisher.publish_tournament_event(
            score_recorded_event(self.tournament_id, match_id, home_score, away_score)
        )
        if old_state != new_state.value:
            self.publisher.publish_tournament_event(
                match_status_event(self.tournament_id, match_id, old_state, new_state.value)
            )
        return True, "Score updated successfully!"

    def _change_status(self, match_id: str, action: str) -> Tuple[bool, str]:
        match = self.get_match(match_id)
        if not match:
            return False, f"Match {match_id} not found"

        sm = MatchStateMachine.from_state_string(match.status)
        if not sm.can_perform(action):
            return False, f"Cannot {action.replace('_', ' ')} a {match.status} match"

        try:
            old_state = sm.state.value
            new_state = sm.transition(action)
        except TransitionError as e:
            return False, str(e)

        match.status = new_state.value
        db.session.commit()

        logger.info(f"Match {match_id} moved {old_state} -> {new_state.value}")
        self.publisher.publish_tournament_event(
            match_status_event(self.tournament_id, match_id, old_state, new_state.value)
        )
        return True, f"Match is now {new_state.value}"

    def kick_off(self, match_id: str) -> Tuple[bool, str]:
        return self._change_status(match_id, 'kick_off')

    def cancel_match(self, match_id: str) -> Tuple[bool, str]:
        return self._change_status(match_id, 'cancel')

    def reschedule_match(self, match_id: str) -> Tuple[bool, str]:
        return self._change_status(match_id, 'reschedule')

    # ==================== Standings ====================

    def get_membership_snapshot(self) -> List[Dict]:
        memberships = (
            TournamentTeam.query
            .filter_by(tournament_id=self.db_id)
            .order_by(TournamentTeam.id)
            .all()
        )
        return [{'team_id': m.team.team_id, 'team': m.team.to_dict()} for m in memberships]

    def get_completed_matches(self) -> List[Dict]:
        matches = (
            Match.query
            .filter_by(tournament_id=self.db_id, status=MatchState.COMPLETED.value)
            .order_by(Match.id)
            .all()
        )
        return [m.to_dict() for m in matches]

    def get_standings(self) -> List[StandingRow]:
        """
        League table from the current memberships and completed matches.

        Raises:
            UnknownTeamInMatch: a completed match involves a team that is no
                longer assigned to the tournament.
        """
        memberships = self.get_membership_snapshot()
        completed = self.get_completed_matches()
        try:
            return compute_standings(memberships, completed)
        except UnknownTeamInMatch as e:
            logger.error(f"Standings for {self.tournament_id} failed: {e}")
            raise
