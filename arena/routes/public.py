import logging

from flask import Blueprint, current_app, jsonify, request, send_from_directory
from flask_login import current_user, login_user, logout_user

from . import action_response, parse_body, screen_response
from ..models import db, User
from ..schemas import LoginForm, RegistrationForm

logger = logging.getLogger(__name__)

bp = Blueprint('public', __name__)


# ==================== Tournaments ====================

@bp.route('/api/v1/tournaments', methods=['GET'])
def list_tournaments():
    """Tournaments with live registration counts."""
    return screen_response('tournaments', 'tournaments', status=request.args.get('status'))


@bp.route('/api/v1/tournaments/<tournament_id>', methods=['GET'])
def get_tournament(tournament_id: str):
    """Tournament details with approved teams and matches."""
    snapshot = current_app.screens.snapshot('tournament', tournament_id=tournament_id)
    if snapshot['error']:
        return jsonify({'error': 'Failed to load data, please reload'}), 503
    if snapshot['data'] is None:
        return jsonify({'error': 'Tournament not found'}), 404
    return jsonify(snapshot['data'])


# ==================== Registration ====================

@bp.route('/api/v1/tournaments/<tournament_id>/registrations', methods=['POST'])
def register_team(tournament_id: str):
    """Submit a team application; it starts out pending."""
    if current_app.settings_service.maintenance_mode():
        return jsonify({'error': 'Registrations are paused for maintenance'}), 503

    form = parse_body(RegistrationForm)
    result = current_app.registrations.submit(tournament_id, form)
    if not result.success and result.message == 'Tournament not found':
        return jsonify({'error': result.message}), 404
    return action_response(result, 'registration', created=True)


@bp.route('/api/v1/registrations/<registration_id>/checkout', methods=['GET'])
def checkout(registration_id: str):
    """Manual UPI payment instructions for a registration."""
    registration = current_app.registrations.get_registration(registration_id)
    if not registration:
        return jsonify({'error': 'Registration not found'}), 404

    cfg = current_app.config
    return jsonify({
        'registration_id': registration_id,
        'team_name': registration['team_name'],
        'status': registration['status'],
        'amount': cfg['ENTRY_FEE'],
        'upi_id': cfg['UPI_ID'],
        'payee_name': cfg['UPI_PAYEE'],
        'reference': registration_id,
    })


@bp.route('/api/v1/uploads/logos', methods=['POST'])
def upload_logo():
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return jsonify({'error': 'No file uploaded'}), 400
    try:
        url = current_app.storage.save(upload)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify({'url': url}), 201


@bp.route('/uploads/<path:name>', methods=['GET'])
def uploaded_file(name: str):
    return send_from_directory(current_app.storage.folder, name)


# ==================== Matches, leaderboard, games ====================

@bp.route('/api/v1/matches', methods=['GET'])
def list_matches():
    return screen_response('matches', 'matches', tournament_id=request.args.get('tournament_id'))


@bp.route('/api/v1/leaderboard', methods=['GET'])
def leaderboard():
    return screen_response('leaderboard', 'leaderboard')


@bp.route('/api/v1/featured-games', methods=['GET'])
def featured_games():
    return screen_response('featured_games', 'games')


# ==================== Auth ====================

@bp.route('/api/v1/auth/login', methods=['POST'])
def login():
    form = parse_body(LoginForm)
    user = User.query.filter_by(email=form.email.lower()).first()
    if user is None or not user.check_password(form.password):
        return jsonify({'error': 'Invalid email or password'}), 401

    login_user(user)
    logger.info("User %s signed in", user.id)
    return jsonify({'message': 'Signed in', 'user': user.to_dict()})


@bp.route('/api/v1/auth/logout', methods=['POST'])
def logout():
    if current_user.is_authenticated:
        logout_user()
    return jsonify({'message': 'Signed out'})


@bp.route('/api/v1/auth/me', methods=['GET'])
def me():
    if not current_user.is_authenticated:
        return jsonify({'user': None})
    return jsonify({'user': current_user.to_dict()})


# ==================== Health Check ====================

@bp.route('/health')
def health_check():
    """Health check endpoint."""
    try:
        db.session.execute(db.text('SELECT 1'))
        db_ok = True
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        db_ok = False

    feed_ok = current_app.feed.ping()
    status = 'healthy' if (feed_ok and db_ok) else 'unhealthy'
    code = 200 if status == 'healthy' else 503

    return jsonify({
        'status': status,
        'change_feed': 'connected' if feed_ok else 'disconnected',
        'database': 'connected' if db_ok else 'disconnected'
    }), code
