from datetime import datetime
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

MATCH_STATUSES = ('scheduled', 'live', 'completed', 'cancelled')
PLAYER_POSITIONS = ('Goalkeeper', 'Defender', 'Midfielder', 'Forward')


class Tournament(db.Model):
    __tablename__ = 'tournaments'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    created_by = db.Column(db.String(100), nullable=False)  # Owning user
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    memberships = db.relationship('TournamentTeam', back_populates='tournament', cascade='all, delete-orphan')
    matches = db.relationship('Match', back_populates='tournament', cascade='all, delete-orphan')

    def to_dict(self, include_teams: bool = False):
        data = {
            'id': self.tournament_id,
            'name': self.name,
            'description': self.description,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'created_by': self.created_by,
            'team_count': len(self.memberships),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_teams:
            teams = sorted((m.team for m in self.memberships), key=lambda t: t.name)
            data['teams'] = [t.to_dict() for t in teams]
        return data


class Team(db.Model):
    __tablename__ = 'teams'

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    logo_url = db.Column(db.String(500), nullable=True)
    created_by = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    players = db.relationship('Player', back_populates='team', cascade='all, delete-orphan')
    memberships = db.relationship('TournamentTeam', back_populates='team', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.team_id,
            'name': self.name,
            'logo_url': self.logo_url,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Player(db.Model):
    __tablename__ = 'players'

    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(200), nullable=True)
    position = db.Column(db.String(20), nullable=True)  # See PLAYER_POSITIONS
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    team = db.relationship('Team', back_populates='players')

    def to_dict(self):
        return {
            'id': self.player_id,
            'name': self.name,
            'email': self.email,
            'position': self.position,
            'team_id': self.team.team_id if self.team else None,
            'team_name': self.team.name if self.team else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class TournamentTeam(db.Model):
    __tablename__ = 'tournament_teams'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id'), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='memberships')
    team = db.relationship('Team', back_populates='memberships')

    __table_args__ = (
        db.UniqueConstraint('tournament_id', 'team_id', name='unique_team_per_tournament'),
    )

    def to_dict(self):
        return {
            'tournament_id': self.tournament.tournament_id,
            'team_id': self.team.team_id,
            'team': self.team.to_dict(),
        }


class Match(db.Model):
    __tablename__ = 'matches'

    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id'), nullable=False)
    home_team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False)
    away_team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False)

    match_date = db.Column(db.Date, nullable=False)
    match_time = db.Column(db.Time, nullable=False)
    venue = db.Column(db.String(200), nullable=True)

    status = db.Column(db.String(20), nullable=False, default='scheduled')  # See MATCH_STATUSES

    # Only meaningful once status is 'completed'
    home_score = db.Column(db.Integer, nullable=True)
    away_score = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='matches')
    home_team = db.relationship('Team', foreign_keys=[home_team_id])
    away_team = db.relationship('Team', foreign_keys=[away_team_id])

    __table_args__ = (
        db.CheckConstraint('home_team_id != away_team_id', name='home_differs_from_away'),
    )

    def to_dict(self):
        return {
            'id': self.match_id,
            'tournament_id': self.tournament.tournament_id,
            'tournament_name': self.tournament.name,
            'home_team_id': self.home_team.team_id,
            'home_team_name': self.home_team.name,
            'away_team_id': self.away_team.team_id,
            'away_team_name': self.away_team.name,
            'match_date': self.match_date.isoformat() if self.match_date else None,
            'match_time': self.match_time.strftime('%H:%M') if self.match_time else None,
            'venue': self.venue,
            'status': self.status,
            'home_score': self.home_score,
            'away_score': self.away_score,
        }
