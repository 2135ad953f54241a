from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from . import action_response, parse_body, screen_response
from ..auth import admin_required
from ..models import User
from ..schemas import (
    FeaturedGameForm,
    FeaturedGameUpdate,
    LeaderboardForm,
    LeaderboardPoints,
    MatchForm,
    MatchStatusUpdate,
    MatchUpdate,
    MoveRequest,
    RoleUpdate,
    ScoreUpdate,
    SettingsUpdate,
    StatusUpdate,
    TournamentForm,
    TournamentUpdate,
)

bp = Blueprint('admin', __name__, url_prefix='/api/v1/admin')


def _not_found(message: str):
    return jsonify({'error': message}), 404


def _tuple_response(success: bool, message: str):
    if not success:
        code = 404 if message.endswith('not found') else 400
        return jsonify({'error': message}), code
    return jsonify({'message': message})


# ==================== Dashboard ====================

@bp.route('/dashboard', methods=['GET'])
@admin_required
def dashboard():
    return screen_response('dashboard', 'dashboard')


# ==================== Tournament CRUD ====================

@bp.route('/tournaments', methods=['GET'])
@admin_required
def list_tournaments():
    return screen_response('tournaments', 'tournaments', status=request.args.get('status'))


@bp.route('/tournaments', methods=['POST'])
@admin_required
def create_tournament():
    form = parse_body(TournamentForm)
    tournament = current_app.tournaments.create_tournament(form)
    return jsonify({'message': 'Tournament created', 'tournament': tournament}), 201


@bp.route('/tournaments/<tournament_id>', methods=['GET'])
@admin_required
def get_tournament(tournament_id: str):
    tournament = current_app.tournaments.get_tournament(tournament_id)
    if not tournament:
        return _not_found('Tournament not found')
    return jsonify(tournament)


@bp.route('/tournaments/<tournament_id>', methods=['PUT'])
@admin_required
def update_tournament(tournament_id: str):
    form = parse_body(TournamentUpdate)
    success, message, tournament = current_app.tournaments.update_tournament(tournament_id, form)
    if not success:
        return _tuple_response(success, message)
    return jsonify({'message': message, 'tournament': tournament})


@bp.route('/tournaments/<tournament_id>', methods=['DELETE'])
@admin_required
def delete_tournament(tournament_id: str):
    """Delete a tournament with no registrations or matches."""
    return _tuple_response(*current_app.tournaments.delete_tournament(tournament_id))


# ==================== Registrations ====================

@bp.route('/registrations', methods=['GET'])
@admin_required
def pending_registrations():
    """Moderation queue."""
    return screen_response('registrations', 'registrations')


@bp.route('/registrations/<registration_id>', methods=['GET'])
@admin_required
def get_registration(registration_id: str):
    registration = current_app.registrations.get_registration(registration_id)
    if not registration:
        return _not_found('Registration not found')
    return jsonify(registration)


@bp.route('/registrations/<registration_id>/status', methods=['PUT'])
@admin_required
def update_registration_status(registration_id: str):
    form = parse_body(StatusUpdate)
    result = current_app.registrations.update_status(registration_id, form.status)
    if not result.success and result.message == 'Registration not found':
        return _not_found(result.message)
    return action_response(result, 'registration')


@bp.route('/teams', methods=['GET'])
@admin_required
def teams():
    return screen_response('teams', 'teams')


# ==================== Matches ====================

@bp.route('/matches', methods=['GET'])
@admin_required
def list_matches():
    return screen_response('matches', 'matches', tournament_id=request.args.get('tournament_id'))


@bp.route('/matches', methods=['POST'])
@admin_required
def create_match():
    form = parse_body(MatchForm)
    return action_response(current_app.matches.create_match(form), 'match', created=True)


@bp.route('/matches/<match_id>', methods=['PUT'])
@admin_required
def update_match(match_id: str):
    form = parse_body(MatchUpdate)
    return action_response(current_app.matches.update_match(match_id, form), 'match')


@bp.route('/matches/<match_id>/score', methods=['PUT'])
@admin_required
def update_score(match_id: str):
    form = parse_body(ScoreUpdate)
    result = current_app.matches.update_score(match_id, form.team1_score, form.team2_score)
    return action_response(result, 'match')


@bp.route('/matches/<match_id>/status', methods=['PUT'])
@admin_required
def set_match_status(match_id: str):
    form = parse_body(MatchStatusUpdate)
    return action_response(current_app.matches.set_status(match_id, form.status), 'match')


@bp.route('/matches/<match_id>', methods=['DELETE'])
@admin_required
def delete_match(match_id: str):
    return _tuple_response(*current_app.matches.delete_match(match_id))


# ==================== Leaderboard ====================

@bp.route('/leaderboard', methods=['GET'])
@admin_required
def leaderboard():
    return screen_response('leaderboard', 'leaderboard')


@bp.route('/leaderboard', methods=['POST'])
@admin_required
def save_points():
    """Create or update the entry for a team."""
    form = parse_body(LeaderboardForm)
    return action_response(current_app.leaderboard.save_points(form), 'entry')


@bp.route('/leaderboard/<entry_id>', methods=['PUT'])
@admin_required
def update_entry(entry_id: str):
    form = parse_body(LeaderboardPoints)
    return action_response(current_app.leaderboard.update_entry(entry_id, form), 'entry')


@bp.route('/leaderboard/<entry_id>', methods=['DELETE'])
@admin_required
def delete_entry(entry_id: str):
    return _tuple_response(*current_app.leaderboard.delete_entry(entry_id))


# ==================== Featured games ====================

@bp.route('/featured-games', methods=['GET'])
@admin_required
def list_games():
    return screen_response('featured_games', 'games')


@bp.route('/featured-games', methods=['POST'])
@admin_required
def create_game():
    form = parse_body(FeaturedGameForm)
    return action_response(current_app.featured_games.create_game(form), 'game', created=True)


@bp.route('/featured-games/<game_id>', methods=['PUT'])
@admin_required
def update_game(game_id: str):
    form = parse_body(FeaturedGameUpdate)
    return action_response(current_app.featured_games.update_game(game_id, form), 'game')


@bp.route('/featured-games/<game_id>', methods=['DELETE'])
@admin_required
def delete_game(game_id: str):
    return _tuple_response(*current_app.featured_games.delete_game(game_id))


@bp.route('/featured-games/<game_id>/move', methods=['POST'])
@admin_required
def move_game(game_id: str):
    form = parse_body(MoveRequest)
    return _tuple_response(*current_app.featured_games.move_game(game_id, form.direction))


# ==================== Settings & users ====================

@bp.route('/settings', methods=['GET'])
@admin_required
def get_settings():
    return jsonify(current_app.settings_service.get_settings())


@bp.route('/settings', methods=['PUT'])
@admin_required
def update_settings():
    form = parse_body(SettingsUpdate)
    settings = current_app.settings_service.set_maintenance_mode(form.maintenance_mode)
    return jsonify({'message': 'Settings saved', 'settings': settings})


@bp.route('/users', methods=['GET'])
@admin_required
def list_users():
    users = User.query.order_by(User.created_at.desc()).all()
    return jsonify({'users': [u.to_dict() for u in users], 'count': len(users)})


@bp.route('/users/<user_id>/role', methods=['PUT'])
@admin_required
def update_role(user_id: str):
    form = parse_body(RoleUpdate)
    return _tuple_response(*current_app.settings_service.set_admin(current_user.id, user_id, form.is_admin))
