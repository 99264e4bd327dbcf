import os
import logging
from flask import Flask, request, jsonify, Response

from .config import config
from .models import db, PLAYER_POSITIONS
from .tournament_registry import TournamentRegistry
from .validation import ValidationError, missing_fields, parse_date, parse_team_ids
from shared.pubsub import EventPublisher

logger = logging.getLogger(__name__)


def create_app(config_name: str = None) -> Flask:
    """Application factory for the tournament console."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)

    # Initialize services
    publisher = EventPublisher.from_url(app.config.get('REDIS_URL'), app.config.get('EVENT_LOG_SIZE', 1000))
    registry = TournamentRegistry(publisher)

    # Create tables
    with app.app_context():
        db.create_all()

    # Store services on app for access in routes
    app.publisher = publisher
    app.registry = registry

    register_api_routes(app)

    from .routes import matches
    app.register_blueprint(matches.bp)

    logger.info(f"Console app created with '{config_name}' config")
    return app


def _required_error(missing):
    return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400


def register_api_routes(app: Flask):
    """Register API routes."""

    # ==================== Tournaments ====================

    @app.route('/api/v1/tournaments', methods=['GET'])
    def api_list_tournaments():
        tournaments = app.registry.list_tournaments()
        return jsonify({
            'tournaments': [t.to_dict() for t in tournaments],
            'count': len(tournaments)
        })

    @app.route('/api/v1/tournaments', methods=['POST'])
    def api_create_tournament():
        data = request.get_json(silent=True) or {}

        missing = missing_fields(data, ['name', 'start_date', 'end_date', 'created_by'])
        if missing:
            return _required_error(missing)

        try:
            start_date = parse_date(data['start_date'], 'start_date')
            end_date = parse_date(data['end_date'], 'end_date')
        except ValidationError as e:
            return jsonify({'error': str(e)}), 400

        tournament = app.registry.create_tournament(
            name=str(data['name']).strip(),
            start_date=start_date,
            end_date=end_date,
            created_by=data['created_by'],
            description=data.get('description')
        )

        return jsonify({
            'message': 'Tournament created successfully!',
            'tournament': tournament.to_dict()
        }), 201

    @app.route('/api/v1/tournaments/<tournament_id>', methods=['GET'])
    def api_get_tournament(tournament_id: str):
        tournament = app.registry.get_tournament(tournament_id)
        if not tournament:
            return jsonify({'error': 'Tournament not found'}), 404

        return jsonify(tournament.to_dict(include_teams=True))

    # ==================== Teams & players ====================

    @app.route('/api/v1/teams', methods=['GET'])
    def api_list_teams():
        teams = app.registry.list_teams()
        return jsonify({
            'teams': [t.to_dict() for t in teams],
            'count': len(teams)
        })

    @app.route('/api/v1/teams', methods=['POST'])
    def api_create_team():
        data = request.get_json(silent=True) or {}

        missing = missing_fields(data, ['name', 'created_by'])
        if missing:
            return _required_error(missing)

        team = app.registry.create_team(
            name=str(data['name']).strip(),
            created_by=data['created_by'],
            logo_url=data.get('logo_url')
        )
        return jsonify({
            'message': 'Team created successfully!',
            'team': team.to_dict()
        }), 201

    @app.route('/api/v1/teams/<team_id>', methods=['GET'])
    def api_get_team(team_id: str):
        team = app.registry.get_team(team_id)
        if not team:
            return jsonify({'error': 'Team not found'}), 404

        data = team.to_dict()
        data['players'] = [p.to_dict() for p in app.registry.list_players(team_id)]
        return jsonify(data)

    @app.route('/api/v1/players', methods=['GET'])
    def api_list_players():
        players = app.registry.list_players(team_id=request.args.get('team_id'))
        return jsonify({
            'players': [p.to_dict() for p in players],
            'count': len(players)
        })

    @app.route('/api/v1/players', methods=['POST'])
    def api_add_player():
        data = request.get_json(silent=True) or {}

        missing = missing_fields(data, ['name', 'team_id'])
        if missing:
            return _required_error(missing)

        position = data.get('position') or None
        if position and position not in PLAYER_POSITIONS:
            return jsonify({'error': f"Position must be one of: {', '.join(PLAYER_POSITIONS)}"}), 400

        player, message = app.registry.add_player(
            name=str(data['name']).strip(),
            team_id=data['team_id'],
            email=data.get('email'),
            position=position
        )
        if not player:
            return jsonify({'error': message}), 404

        return jsonify({'message': message, 'player': player.to_dict()}), 201

    # ==================== Team assignments ====================

    @app.route('/api/v1/tournaments/<tournament_id>/teams', methods=['GET'])
    def api_list_tournament_teams(tournament_id: str):
        if not app.registry.get_tournament(tournament_id):
            return jsonify({'error': 'Tournament not found'}), 404

        memberships = sorted(app.registry.list_memberships(tournament_id), key=lambda m: m.team.name)
        return jsonify({
            'teams': [m.team.to_dict() for m in memberships],
            'count': len(memberships)
        })

    @app.route('/api/v1/tournaments/<tournament_id>/teams', methods=['POST'])
    def api_assign_teams(tournament_id: str):
        """Add the selected teams to a tournament."""
        if not app.registry.get_tournament(tournament_id):
            return jsonify({'error': 'Tournament not found'}), 404

        data = request.get_json(silent=True) or {}
        team_ids = parse_team_ids(data.get('team_ids'))
        if team_ids is None:
            return jsonify({'error': 'team_ids must be a list of team IDs'}), 400

        success, message = app.registry.assign_teams(tournament_id, team_ids)
        if not success:
            return jsonify({'error': message}), 400
        return jsonify({'message': message}), 201

    @app.route('/api/v1/tournaments/<tournament_id>/teams', methods=['PUT'])
    def api_replace_teams(tournament_id: str):
        """Replace the tournament's whole team set."""
        if not app.registry.get_tournament(tournament_id):
            return jsonify({'error': 'Tournament not found'}), 404

        data = request.get_json(silent=True) or {}
        if missing_fields(data, ['user_id']):
            return _required_error(['user_id'])

        team_ids = parse_team_ids(data.get('team_ids'))
        if team_ids is None:
            return jsonify({'error': 'team_ids must be a list of team IDs'}), 400

        try:
            success, message = app.registry.replace_memberships(tournament_id, team_ids, data['user_id'])
        except PermissionError as e:
            return jsonify({'error': str(e)}), 403

        if not success:
            return jsonify({'error': message}), 400
        return jsonify({'message': message})

    @app.route('/api/v1/tournaments/<tournament_id>/available-teams', methods=['GET'])
    def api_available_teams(tournament_id: str):
        if not app.registry.get_tournament(tournament_id):
            return jsonify({'error': 'Tournament not found'}), 404

        teams = app.registry.available_teams(tournament_id)
        return jsonify({
            'teams': [t.to_dict() for t in teams],
            'count': len(teams)
        })

    @app.route('/api/v1/assignments', methods=['GET'])
    def api_list_assignments():
        tournaments = app.registry.list_assignments()
        return jsonify({
            'tournaments': [t.to_dict(include_teams=True) for t in tournaments],
            'count': len(tournaments)
        })

    # ==================== Change events ====================

    @app.route('/api/v1/tournaments/<tournament_id>/events', methods=['GET'])
    def api_recent_events(tournament_id: str):
        count = request.args.get('count', 50, type=int)
        count = max(1, min(count, app.publisher.log_size))
        events = app.publisher.recent_events(tournament_id, count=count)
        return jsonify({
            'tournament_id': tournament_id,
            'events': [e.to_dict() for e in events]
        })

    @app.route('/api/v1/events/tournaments/<tournament_id>')
    def api_tournament_events(tournament_id: str):
        """SSE stream of change events for one tournament."""
        if not app.publisher.enabled:
            return jsonify({'error': 'Event streaming requires Redis'}), 503

        def generate():
            pubsub = app.publisher.open_stream(tournament_id)
            try:
                yield f"data: {{\"type\":\"connected\",\"tournament_id\":\"{tournament_id}\"}}\n\n"

                while True:
                    message = pubsub.get_message(timeout=30)
                    if message and message['type'] == 'message':
                        yield f"data: {message['data']}\n\n"
                    else:
                        yield ": keepalive\n\n"
            finally:
                pubsub.close()

        return Response(generate(), mimetype='text/event-stream', headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no'
        })

    # ==================== Health Check ====================

    @app.route('/health')
    def health_check():
        try:
            db.session.execute(db.text('SELECT 1'))
            db_ok = True
        except Exception as e:
            logger.error(f"Health check database query failed: {e}")
            db_ok = False

        redis_state = 'disabled'
        if app.publisher.enabled:
            redis_state = 'connected' if app.publisher.ping() else 'disconnected'

        healthy = db_ok and redis_state != 'disconnected'
        return jsonify({
            'status': 'healthy' if healthy else 'unhealthy',
            'database': 'connected' if db_ok else 'disconnected',
            'redis': redis_state
        }), 200 if healthy else 503
