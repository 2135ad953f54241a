"""
Pytest configuration and fixtures for arena tests.
"""
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
from flask import g

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from arena.app import create_app
from arena.models import db, User
from arena.schemas import TournamentForm
from livesync.feed import LocalChangeFeed


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app('testing')
    app.storage.folder = str(tmp_path_factory.mktemp('uploads'))

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    # Flask-Login caches the user on g, and g lives as long as the shared app context
    g.pop('_login_user', None)
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


@pytest.fixture(autouse=True)
def mock_notify(mocker):
    """Email functions always succeed unless a test says otherwise."""
    post = mocker.patch('arena.notifications.requests.post')
    post.return_value = mocker.MagicMock(ok=True, status_code=200, text='ok')
    return post


@pytest.fixture
def feed():
    """Fresh in-process change feed."""
    feed = LocalChangeFeed()
    yield feed
    feed.close()


@pytest.fixture
def store(app):
    return app.store


@pytest.fixture
def sample_tournament(app, db_session):
    """Create an open tournament for testing."""
    now = datetime.now(timezone.utc)
    return app.tournaments.create_tournament(TournamentForm(
        title='Monsoon Cup',
        game='BGMI',
        description='Squad battle royale',
        start_date=now + timedelta(days=7),
        end_date=now + timedelta(days=9),
        registration_deadline=now + timedelta(days=5),
        prize_pool='₹10,000',
        max_participants=8,
    ))


@pytest.fixture
def sample_teams(app, db_session, sample_tournament):
    """Four approved registrations in the sample tournament."""
    teams = app.store.insert('registrations', [
        {
            'tournament_id': sample_tournament['id'],
            'team_name': f'Team {i}',
            'status': 'approved',
            'team_members': [{'name': f'P{i}{j}', 'username': f'p{i}{j}'} for j in range(4)],
            'contact_info': {'full_name': f'Captain {i}', 'email': f'team{i}@example.com'},
        }
        for i in range(1, 5)
    ])
    app.tournaments.update_participant_count(sample_tournament['id'])
    return teams


@pytest.fixture
def pending_registration(app, db_session, sample_tournament):
    return app.store.insert('registrations', {
        'tournament_id': sample_tournament['id'],
        'team_name': 'Pending Squad',
        'status': 'pending',
        'contact_info': {'full_name': 'Ravi K', 'email': 'ravi@example.com'},
    })[0]


@pytest.fixture
def admin_user(app, db_session):
    user = User.create_user('admin@example.com', 'secret-pass', is_admin=True, full_name='Admin')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_client(app, client, admin_user):
    """Test client signed in as an admin."""
    response = client.post('/api/v1/auth/login', json={
        'email': 'admin@example.com',
        'password': 'secret-pass'
    })
    assert response.status_code == 200
    return client
