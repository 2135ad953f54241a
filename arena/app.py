import os
import logging

from flask import Flask, jsonify
from pydantic import ValidationError

from livesync.feed import ChangeFeed, LocalChangeFeed, RedisChangeFeed
from livesync.state_machine import TransitionError
from .auth import login_manager
from .config import config
from .models import db
from .notifications import NotificationClient
from .schemas import validation_errors
from .screens import ScreenBindings
from .services import (
    FeaturedGameService,
    LeaderboardService,
    MatchService,
    RegistrationService,
    SettingsService,
    TournamentRegistry,
)
from .storage import AssetStorage
from .store import BackingStore, StoreError

logger = logging.getLogger(__name__)


def create_app(config_name: str = None) -> Flask:
    """Application factory for the tournament site and admin API."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    # Initialize services
    feed = build_feed(app)
    store = BackingStore(feed)
    notifier = NotificationClient(
        app.config['NOTIFY_FUNCTION_URL'],
        api_key=app.config['NOTIFY_API_KEY'],
        timeout=app.config['NOTIFY_TIMEOUT']
    )
    storage = AssetStorage(app.config['UPLOAD_FOLDER'])
    tournaments = TournamentRegistry(store)

    # Create tables
    with app.app_context():
        db.create_all()

    # Store services on app for access in routes
    app.feed = feed
    app.store = store
    app.notifier = notifier
    app.storage = storage
    app.tournaments = tournaments
    app.registrations = RegistrationService(store, tournaments, notifier, storage)
    app.matches = MatchService(store)
    app.leaderboard = LeaderboardService(store)
    app.featured_games = FeaturedGameService(store)
    app.settings_service = SettingsService(store)
    app.screens = ScreenBindings(app, store, entry_fee=app.config['ENTRY_FEE'])

    # Register routes
    from .routes import admin, live, public
    app.register_blueprint(public.bp)
    app.register_blueprint(admin.bp)
    app.register_blueprint(live.bp)
    register_error_handlers(app)

    logger.info("Arena started (config=%s, change feed=%s)", config_name, type(feed).__name__)
    return app


def build_feed(app: Flask) -> ChangeFeed:
    if app.config['CHANGE_FEED'] == 'local':
        return LocalChangeFeed()
    return RedisChangeFeed(app.config['REDIS_URL'], prefix=app.config['CHANGE_FEED_PREFIX'])


def configure_logging(app: Flask):
    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def register_error_handlers(app: Flask):

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        return jsonify({'error': 'Invalid request', 'fields': validation_errors(e)}), 400

    @app.errorhandler(TransitionError)
    def handle_transition_error(e: TransitionError):
        return jsonify({'error': str(e)}), 400

    @app.errorhandler(StoreError)
    def handle_store_error(e: StoreError):
        logger.error("Backing store error: %s", e)
        return jsonify({'error': 'The data store is unavailable, please try again'}), 503

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(413)
    def handle_too_large(e):
        return jsonify({'error': 'File is too large'}), 413

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error("Unhandled error: %s", getattr(e, "original_exception", e))
        return jsonify({'error': 'Something went wrong, please reload the page'}), 500
