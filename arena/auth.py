from functools import wraps

from flask import jsonify
from flask_login import LoginManager, current_user

from .models import db, User

login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(User, user_id)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Authentication required'}), 401


def admin_denied():
    """Error response for a non-admin caller, or None for an admin."""
    if not current_user.is_authenticated:
        return unauthorized()
    if not current_user.is_admin:
        return jsonify({'error': 'Admin access required'}), 403
    return None


def admin_required(view):
    """Allow only signed-in users with the admin flag."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        denied = admin_denied()
        if denied is not None:
            return denied
        return view(*args, **kwargs)
    return wrapped
