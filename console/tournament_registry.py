import uuid
import logging
from datetime import date
from typing import Optional, Tuple, List, Iterable

from sqlalchemy.exc import SQLAlchemyError

from .models import db, Tournament, Team, Player, TournamentTeam
from shared.events import tournament_created_event, teams_assigned_event
from shared.pubsub import EventPublisher

logger = logging.getLogger(__name__)


def _dedupe(ids: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            ordered.append(i)
    return ordered


class TournamentRegistry:
    """
    Data store for tournaments, teams, players and team assignments.

    Validation failures come back as (result, message) tuples; storage
    errors propagate to the caller.
    """

    def __init__(self, publisher: EventPublisher = None):
        self.publisher = publisher or EventPublisher()

    # ==================== Tournaments ====================

    def create_tournament(
        self,
        name: str,
        start_date: date,
        end_date: date,
        created_by: str,
        description: str = None
    ) -> Tournament:
        """Create a tournament owned by created_by."""
        tournament = Tournament(
            tournament_id=f"t_{uuid.uuid4().hex[:12]}",
            name=name,
            description=description or None,
            start_date=start_date,
            end_date=end_date,
            created_by=created_by
        )

        db.session.add(tournament)
        db.session.commit()

        logger.info(f"Created tournament {tournament.tournament_id} ({name}) for {created_by}")
        self.publisher.publish_tournament_event(
            tournament_created_event(tournament.tournament_id, name)
        )
        return tournament

    def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        """Get tournament by its public ID."""
        return Tournament.query.filter_by(tournament_id=tournament_id).first()

    def list_tournaments(self) -> List[Tournament]:
        """Newest first."""
        return Tournament.query.order_by(Tournament.created_at.desc(), Tournament.id.desc()).all()

    # ==================== Teams & players ====================

    def create_team(self, name: str, created_by: str, logo_url: str = None) -> Team:
        team = Team(
            team_id=f"team_{uuid.uuid4().hex[:12]}",
            name=name,
            logo_url=logo_url or None,
            created_by=created_by
        )
        db.session.add(team)
        db.session.commit()

        logger.info(f"Created team {team.team_id} ({name}) for {created_by}")
        return team

    def get_team(self, team_id: str) -> Optional[Team]:
        return Team.query.filter_by(team_id=team_id).first()

    def list_teams(self) -> List[Team]:
        """Newest first."""
        return Team.query.order_by(Team.created_at.desc(), Team.id.desc()).all()

    def add_player(
        self,
        name: str,
        team_id: str,
        email: str = None,
        position: str = None
    ) -> Tuple[Optional[Player], str]:
        team = self.get_team(team_id)
        if not team:
            return None, f"Team {team_id} not found"

        player = Player(
            player_id=f"p_{uuid.uuid4().hex[:12]}",
            name=name,
            email=email or None,
            position=position or None,
            team_id=team.id
        )
        db.session.add(player)
        db.session.commit()

        logger.info(f"Added player {player.player_id} ({name}) to team {team_id}")
        return player, "Player added successfully!"

    def list_players(self, team_id: str = None) -> List[Player]:
        query = Player.query
        if team_id:
            query = query.join(Team).filter(Team.team_id == team_id)
        return query.order_by(Player.name).all()

    # ==================== Team assignments ====================

    def list_memberships(self, tournament_id: str) -> List[TournamentTeam]:
        """Memberships of a tournament in assignment order."""
        return (
            TournamentTeam.query
            .join(Tournament)
            .filter(Tournament.tournament_id == tournament_id)
            .order_by(TournamentTeam.id)
            .all()
        )

    def available_teams(self, tournament_id: str) -> List[Team]:
        """Teams not yet assigned to the tournament, by name."""
        assigned = {m.team_id for m in self.list_memberships(tournament_id)}
        return [t for t in Team.query.order_by(Team.name).all() if t.id not in assigned]

    def list_assignments(self) -> List[Tournament]:
        """Every tournament with its teams, by name."""
        return Tournament.query.order_by(Tournament.name).all()

    def _resolve_teams(self, team_ids: List[str]) -> Tuple[Optional[List[Team]], str]:
        teams = Team.query.filter(Team.team_id.in_(team_ids)).all() if team_ids else []
        by_public_id = {t.team_id: t for t in teams}
        for team_id in team_ids:
            if team_id not in by_public_id:
                return None, f"Team {team_id} not found"
        return [by_public_id[i] for i in team_ids], ""

    def assign_teams(self, tournament_id: str, team_ids: List[str]) -> Tuple[bool, str]:
        """Add teams to a tournament in one insert."""
        tournament = self.get_tournament(tournament_id)
        if not tournament:
            return False, "Tournament not found"

        team_ids = _dedupe(team_ids)
        if not team_ids:
            return False, "Please select at least one team"

        teams, message = self._resolve_teams(team_ids)
        if teams is None:
            return False, message

        assigned = {m.team_id for m in tournament.memberships}
        for team in teams:
            if team.id in assigned:
                logger.warning(f"Team {team.team_id} already assigned to {tournament_id}")
                return False, f"Team {team.name} is already in this tournament"

        db.session.add_all(
            TournamentTeam(tournament_id=tournament.id, team_id=team.id) for team in teams
        )
        db.session.commit()

        logger.info(f"Assigned {len(teams)} team(s) to {tournament_id}")
        self.publisher.publish_tournament_event(teams_assigned_event(tournament_id, team_ids))
        return True, f"{len(teams)} team(s) added to tournament successfully!"

    def replace_memberships(self, tournament_id: str, team_ids: List[str], user_id: str) -> Tuple[bool, str]:
        """
        Replace the tournament's whole team set.

        The delete and the insert share one transaction, so a failure leaves
        the previous set in place.

        Raises:
            PermissionError: user_id does not own the tournament.
        """
        tournament = self.get_tournament(tournament_id)
        if not tournament:
            return False, "Tournament not found"

        if tournament.created_by != user_id:
            logger.warning(f"User {user_id} tried to replace teams of {tournament_id}")
            raise PermissionError("User is not authorized to change teams of this tournament")

        team_ids = _dedupe(team_ids)
        teams, message = self._resolve_teams(team_ids)
        if teams is None:
            return False, message

        try:
            TournamentTeam.query.filter_by(tournament_id=tournament.id).delete(synchronize_session='fetch')
            db.session.add_all(
                TournamentTeam(tournament_id=tournament.id, team_id=team.id) for team in teams
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception(f"Replacing teams of {tournament_id} failed, previous set kept")
            raise

        logger.info(f"Replaced teams of {tournament_id} with {len(teams)} team(s)")
        self.publisher.publish_tournament_event(
            teams_assigned_event(tournament_id, team_ids, replaced=True)
        )
        return True, f"Tournament now has {len(teams)} team(s)"
