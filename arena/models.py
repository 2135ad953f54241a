import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from livesync.aggregator import win_rate

db = SQLAlchemy()


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value):
    """Serialize with an explicit offset; naive values from the database are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(100), nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @staticmethod
    def create_user(email: str, password: str, is_admin: bool = False, full_name: str = None) -> 'User':
        user = User(email=email.strip().lower(), full_name=full_name, is_admin=is_admin)
        user.set_password(password)
        return user

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'is_admin': self.is_admin,
            'created_at': isoformat(self.created_at),
        }


class Tournament(db.Model):
    __tablename__ = 'tournaments'
    CHANGE_KEYS = ('id', 'status', 'registration_open')

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    game = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    registration_deadline = db.Column(db.DateTime(timezone=True), nullable=True)
    prize_pool = db.Column(db.String(100), nullable=False, default='')
    max_participants = db.Column(db.Integer, nullable=False, default=100)
    current_participants = db.Column(db.Integer, nullable=False, default=0)
    format = db.Column(db.String(20), nullable=False, default='squad')  # solo, duo, squad, team
    status = db.Column(db.String(20), nullable=False, default='upcoming')  # upcoming, ongoing, completed
    registration_open = db.Column(db.Boolean, nullable=False, default=True)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    registrations = db.relationship('Registration', back_populates='tournament')
    matches = db.relationship('Match', back_populates='tournament')

    @property
    def is_full(self) -> bool:
        return self.current_participants >= self.max_participants

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'game': self.game,
            'description': self.description,
            'start_date': isoformat(self.start_date),
            'end_date': isoformat(self.end_date),
            'registration_deadline': isoformat(self.registration_deadline),
            'prize_pool': self.prize_pool,
            'max_participants': self.max_participants,
            'current_participants': self.current_participants,
            'format': self.format,
            'status': self.status,
            'registration_open': self.registration_open,
            'image_url': self.image_url,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class Registration(db.Model):
    __tablename__ = 'registrations'
    CHANGE_KEYS = ('id', 'tournament_id', 'status')

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    tournament_id = db.Column(db.String(36), db.ForeignKey('tournaments.id'), nullable=False, index=True)
    team_name = db.Column(db.String(100), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='pending')  # pending, approved, rejected
    team_members = db.Column(db.JSON, nullable=False, default=list)
    contact_info = db.Column(db.JSON, nullable=False, default=dict)
    game_details = db.Column(db.JSON, nullable=False, default=dict)
    tournament_preferences = db.Column(db.JSON, nullable=False, default=dict)
    logo_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    tournament = db.relationship('Tournament', back_populates='registrations')

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'team_name': self.team_name,
            'status': self.status,
            'team_members': self.team_members,
            'contact_info': self.contact_info,
            'game_details': self.game_details,
            'tournament_preferences': self.tournament_preferences,
            'logo_url': self.logo_url,
            'created_at': isoformat(self.created_at),
        }


class Match(db.Model):
    __tablename__ = 'matches'
    CHANGE_KEYS = ('id', 'tournament_id', 'status')

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    tournament_id = db.Column(db.String(36), db.ForeignKey('tournaments.id'), nullable=False, index=True)
    round = db.Column(db.Integer, nullable=False, default=1)
    team1_id = db.Column(db.String(36), db.ForeignKey('registrations.id'), nullable=False)
    team2_id = db.Column(db.String(36), db.ForeignKey('registrations.id'), nullable=False)
    team1_score = db.Column(db.Integer, nullable=False, default=0)
    team2_score = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default='scheduled')  # scheduled, live, completed
    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    stream_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    tournament = db.relationship('Tournament', back_populates='matches')

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'round': self.round,
            'team1_id': self.team1_id,
            'team2_id': self.team2_id,
            'team1_score': self.team1_score,
            'team2_score': self.team2_score,
            'status': self.status,
            'start_time': isoformat(self.start_time),
            'stream_url': self.stream_url,
            'created_at': isoformat(self.created_at),
        }


class LeaderboardEntry(db.Model):
    __tablename__ = 'leaderboard'
    CHANGE_KEYS = ('id', 'team_id')

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    team_id = db.Column(db.String(36), db.ForeignKey('registrations.id'), nullable=False)
    survival_points = db.Column(db.Integer, nullable=False, default=0)
    kill_points = db.Column(db.Integer, nullable=False, default=0)
    total_points = db.Column(db.Integer, nullable=False, default=0)
    matches_played = db.Column(db.Integer, nullable=False, default=0)
    wins = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.UniqueConstraint('team_id', name='unique_leaderboard_entry_per_team'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'team_id': self.team_id,
            'survival_points': self.survival_points,
            'kill_points': self.kill_points,
            'total_points': self.total_points,
            'matches_played': self.matches_played,
            'wins': self.wins,
            'win_rate': win_rate(self.wins, self.matches_played),
            'updated_at': isoformat(self.updated_at),
        }


class FeaturedGame(db.Model):
    __tablename__ = 'featured_games'
    CHANGE_KEYS = ('id',)

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    image_url = db.Column(db.String(500), nullable=False)
    tournaments_count = db.Column(db.Integer, nullable=False, default=0)
    players_count = db.Column(db.String(20), nullable=False, default='0')
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'category': self.category,
            'image_url': self.image_url,
            'tournaments_count': self.tournaments_count,
            'players_count': self.players_count,
            'sort_order': self.sort_order,
        }


class SiteSettings(db.Model):
    __tablename__ = 'site_settings'
    CHANGE_KEYS = ('id',)

    id = db.Column(db.Integer, primary_key=True)  # always 1
    maintenance_mode = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'maintenance_mode': self.maintenance_mode,
            'updated_at': isoformat(self.updated_at),
        }
