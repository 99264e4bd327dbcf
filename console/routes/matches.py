from flask import Blueprint, request, jsonify, current_app

from console.match_engine import MatchEngine, list_all_matches
from console.validation import ValidationError, missing_fields, parse_date, parse_time, parse_score
from shared.standings import UnknownTeamInMatch

bp = Blueprint('matches', __name__)


def get_match_engine(tournament_id):
    try:
        return MatchEngine(tournament_id, current_app.publisher)
    except ValueError:
        return None


def _not_found():
    return jsonify({'error': 'Tournament not found'}), 404


# --- Routes ---

@bp.route('/api/v1/matches', methods=['GET'])
def list_matches():
    """Every match, optionally limited to one tournament."""
    matches = list_all_matches(request.args.get('tournament_id'))
    return jsonify({
        'matches': [m.to_dict() for m in matches],
        'count': len(matches)
    })


@bp.route('/api/v1/tournaments/<tournament_id>/matches', methods=['GET'])
def get_matches(tournament_id):
    match_engine = get_match_engine(tournament_id)
    if not match_engine:
        return _not_found()
    return jsonify(match_engine.get_matches(status=request.args.get('status')))


@bp.route('/api/v1/tournaments/<tournament_id>/matches', methods=['POST'])
def schedule_match(tournament_id):
    match_engine = get_match_engine(tournament_id)
    if not match_engine:
        return _not_found()

    data = request.get_json(silent=True) or {}
    missing = missing_fields(data, ['home_team_id', 'away_team_id', 'match_date', 'match_time'])
    if missing:
        return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400

    try:
        match_date = parse_date(data['match_date'], 'match_date')
        match_time = parse_time(data['match_time'], 'match_time')
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400

    match, message = match_engine.schedule_match(
        data['home_team_id'],
        data['away_team_id'],
        match_date,
        match_time,
        venue=data.get('venue')
    )
    if not match:
        return jsonify({'error': message}), 400

    return jsonify({'message': message, 'match': match.to_dict()}), 201


@bp.route('/api/v1/tournaments/<tournament_id>/matches/<match_id>', methods=['GET'])
def get_match(tournament_id, match_id):
    match_engine = get_match_engine(tournament_id)
    if not match_engine:
        return _not_found()

    match = match_engine.get_match(match_id)
    if not match:
        return jsonify({'error': 'Match not found'}), 404
    return jsonify(match.to_dict())


@bp.route('/api/v1/tournaments/<tournament_id>/matches/<match_id>/score', methods=['POST'])
def record_score(tournament_id, match_id):
    match_engine = get_match_engine(tournament_id)
    if not match_engine:
        return _not_found()

    if not match_engine.get_match(match_id):
        return jsonify({'error': 'Match not found'}), 404

    data = request.get_json(silent=True) or {}
    if missing_fields(data, ['home_score', 'away_score']):
        return jsonify({'error': 'Please enter both scores'}), 400

    try:
        home_score = parse_score(data['home_score'], 'home_score')
        away_score = parse_score(data['away_score'], 'away_score')
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400

    success, message = match_engine.record_score(match_id, home_score, away_score)
    if not success:
        return jsonify({'error': message}), 400

    return jsonify({
        'message': message,
        'match': match_engine.get_match(match_id).to_dict()
    })


def _status_action(tournament_id, match_id, action):
    match_engine = get_match_engine(tournament_id)
    if not match_engine:
        return _not_found()

    if not match_engine.get_match(match_id):
        return jsonify({'error': 'Match not found'}), 404

    success, message = getattr(match_engine, action)(match_id)
    if not success:
        return jsonify({'error': message}), 400

    return jsonify({
        'message': message,
        'match': match_engine.get_match(match_id).to_dict()
    })


@bp.route('/api/v1/tournaments/<tournament_id>/matches/<match_id>/kick-off', methods=['POST'])
def kick_off(tournament_id, match_id):
    return _status_action(tournament_id, match_id, 'kick_off')


@bp.route('/api/v1/tournaments/<tournament_id>/matches/<match_id>/cancel', methods=['POST'])
def cancel_match(tournament_id, match_id):
    return _status_action(tournament_id, match_id, 'cancel_match')


@bp.route('/api/v1/tournaments/<tournament_id>/matches/<match_id>/reschedule', methods=['POST'])
def reschedule_match(tournament_id, match_id):
    return _status_action(tournament_id, match_id, 'reschedule_match')


@bp.route('/api/v1/tournaments/<tournament_id>/standings')
def get_standings(tournament_id):
    match_engine = get_match_engine(tournament_id)
    if not match_engine:
        return _not_found()

    try:
        standings = match_engine.get_standings()
    except UnknownTeamInMatch as e:
        return jsonify({
            'error': str(e),
            'team_id': e.team_id,
            'match_id': e.match_id
        }), 409

    table = []
    for position, row in enumerate(standings, start=1):
        entry = row.to_dict()
        entry['position'] = position
        table.append(entry)

    return jsonify({
        'tournament_id': tournament_id,
        'tournament_name': match_engine.t_record.name,
        'standings': table
    })
