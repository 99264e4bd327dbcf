"""
Pytest configuration and fixtures for league console tests.
"""
import os
import sys
from datetime import date, time

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'
os.environ['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'

from console.app import create_app
from console.models import db, Tournament, Team, TournamentTeam, Match


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create database session for testing."""
    with app.app_context():
        # Clear all tables before each test
        db.session.remove()

        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture
def sample_tournament(app, db_session):
    """Create a sample tournament owned by user-1."""
    with app.app_context():
        tournament = Tournament(
            tournament_id='t_test000001',
            name='Sunday League',
            start_date=date(2024, 3, 1),
            end_date=date(2024, 6, 30),
            created_by='user-1'
        )
        db.session.add(tournament)
        db.session.commit()

        # Refresh to get ID
        db.session.refresh(tournament)
        return tournament


@pytest.fixture
def sample_teams(app, db_session):
    """Create four unassigned teams."""
    with app.app_context():
        teams = []
        for i, name in enumerate(['Lions', 'Tigers', 'Bears', 'Wolves']):
            team = Team(
                team_id=f'team_test{i + 1}',
                name=name,
                created_by='user-1'
            )
            db.session.add(team)
            teams.append(team)

        db.session.commit()

        for team in teams:
            db.session.refresh(team)

        return teams


@pytest.fixture
def memberships(app, db_session, sample_tournament, sample_teams):
    """Assign every sample team to the sample tournament, in order."""
    with app.app_context():
        for team in sample_teams:
            db.session.add(TournamentTeam(tournament_id=sample_tournament.id, team_id=team.id))
        db.session.commit()
        return [team.team_id for team in sample_teams]


@pytest.fixture
def sample_match(app, db_session, sample_tournament, sample_teams, memberships):
    """Scheduled match Lions vs Tigers."""
    with app.app_context():
        match = Match(
            match_id='m_test000001',
            tournament_id=sample_tournament.id,
            home_team_id=sample_teams[0].id,
            away_team_id=sample_teams[1].id,
            match_date=date(2024, 3, 10),
            match_time=time(15, 0),
            venue='Riverside Park',
            status='scheduled'
        )
        db.session.add(match)
        db.session.commit()

        db.session.refresh(match)
        return match


@pytest.fixture
def mock_publisher(mocker):
    """Publisher double that records published events."""
    from shared.pubsub import EventPublisher
    publisher = mocker.MagicMock(spec=EventPublisher)
    publisher.enabled = False
    return publisher
