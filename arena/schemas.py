"""
Input schemas for public and admin forms.

Validation happens here, before anything touches the backing store.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator, model_validator

PHONE_RE = re.compile(r'^\+?[1-9]\d{9,14}$')


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to UTC; naive input is taken as UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _check_url(value: Optional[str]) -> Optional[str]:
    if value in (None, ''):
        return None
    if value.startswith(('http://', 'https://', '/uploads/')):
        return value
    raise ValueError('Please enter a valid URL')


# Registration form

class PersonalInfo(BaseModel):
    full_name: str = Field(min_length=3)
    in_game_name: str = Field(min_length=3)
    date_of_birth: date
    contact_number: str
    email: EmailStr

    @field_validator('contact_number')
    @classmethod
    def valid_phone(cls, v: str) -> str:
        if not PHONE_RE.match(v):
            raise ValueError('Invalid phone number')
        return v


class TeamMember(BaseModel):
    name: str = Field(min_length=3)
    username: str = Field(min_length=3)


class TeamDetails(BaseModel):
    team_name: str = Field(min_length=3, max_length=100)
    team_logo: Optional[str] = None
    team_members: List[TeamMember] = Field(min_length=4)
    is_team_captain: bool = True

    @field_validator('team_logo')
    @classmethod
    def valid_logo(cls, v):
        return _check_url(v)


class GameDetails(BaseModel):
    platform: Literal['Android', 'iOS', 'Emulator']
    uid: str = Field(min_length=6)
    device_model: str = Field(min_length=3)
    region: str = Field(min_length=2)


class TournamentPreferences(BaseModel):
    format: Literal['Solo', 'Duo', 'Squad']
    mode: Literal['Battle Royale', 'Team Deathmatch', 'Zombie Mode']
    experience: bool = False
    previous_tournaments: Optional[str] = None


class TermsAndConditions(BaseModel):
    agree_to_rules: bool
    agree_to_fair_play: bool
    agree_to_media_usage: bool = False

    @model_validator(mode='after')
    def required_agreements(self) -> 'TermsAndConditions':
        if not self.agree_to_rules:
            raise ValueError('You must agree to the rules')
        if not self.agree_to_fair_play:
            raise ValueError('You must agree to fair play')
        return self


class RegistrationForm(BaseModel):
    personal_info: PersonalInfo
    team_details: TeamDetails
    game_details: GameDetails
    tournament_details: TournamentPreferences
    terms_and_conditions: TermsAndConditions


class StatusUpdate(BaseModel):
    status: Literal['approved', 'rejected']


# Admin forms

class TournamentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    game: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    prize_pool: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=1)
    format: Optional[Literal['solo', 'duo', 'squad', 'team']] = None
    status: Optional[Literal['upcoming', 'ongoing', 'completed']] = None
    registration_open: Optional[bool] = None
    image_url: Optional[str] = None

    @field_validator('start_date', 'end_date', 'registration_deadline')
    @classmethod
    def assume_utc(cls, v):
        return _aware(v)

    @field_validator('image_url')
    @classmethod
    def valid_image(cls, v):
        return _check_url(v)

    @model_validator(mode='after')
    def dates_in_order(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError('End date must be after start date')
        return self


class TournamentForm(TournamentUpdate):
    title: str = Field(min_length=3, max_length=200)
    game: str = Field(min_length=1, max_length=100)
    start_date: datetime
    end_date: datetime
    prize_pool: str = ''
    max_participants: int = Field(default=100, ge=1)
    format: Literal['solo', 'duo', 'squad', 'team'] = 'squad'
    status: Literal['upcoming', 'ongoing', 'completed'] = 'upcoming'
    registration_open: bool = True


class MatchForm(BaseModel):
    tournament_id: str = Field(min_length=1)
    round: int = Field(default=1, ge=1)
    team1_id: str = Field(min_length=1)
    team2_id: str = Field(min_length=1)
    start_time: datetime
    stream_url: Optional[str] = None

    @field_validator('start_time')
    @classmethod
    def assume_utc(cls, v):
        return _aware(v)

    @field_validator('stream_url')
    @classmethod
    def valid_stream(cls, v):
        return _check_url(v)


class MatchUpdate(BaseModel):
    start_time: Optional[datetime] = None
    stream_url: Optional[str] = None
    status: Optional[Literal['scheduled', 'live', 'completed']] = None
    team1_score: Optional[int] = Field(default=None, ge=0)
    team2_score: Optional[int] = Field(default=None, ge=0)

    @field_validator('start_time')
    @classmethod
    def assume_utc(cls, v):
        return _aware(v)

    @field_validator('stream_url')
    @classmethod
    def valid_stream(cls, v):
        return _check_url(v)


class ScoreUpdate(BaseModel):
    team1_score: int = Field(ge=0)
    team2_score: int = Field(ge=0)


class MatchStatusUpdate(BaseModel):
    status: Literal['scheduled', 'live', 'completed']


class LeaderboardPoints(BaseModel):
    survival_points: int = Field(default=0, ge=0)
    kill_points: int = Field(default=0, ge=0)
    matches_played: int = Field(default=0, ge=0)
    wins: int = Field(default=0, ge=0)

    @model_validator(mode='after')
    def wins_within_matches(self):
        if self.wins > self.matches_played:
            raise ValueError('Wins cannot exceed matches played')
        return self


class LeaderboardForm(LeaderboardPoints):
    team_id: str = Field(min_length=1)


class FeaturedGameUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    image_url: Optional[str] = None
    tournaments_count: Optional[int] = Field(default=None, ge=0)
    players_count: Optional[str] = None

    @field_validator('image_url')
    @classmethod
    def valid_image(cls, v):
        return _check_url(v)


class FeaturedGameForm(FeaturedGameUpdate):
    title: str = Field(min_length=1, max_length=100)
    category: str = Field(min_length=1, max_length=50)
    image_url: str = Field(min_length=1)
    tournaments_count: int = Field(default=0, ge=0)
    players_count: str = '0'


class MoveRequest(BaseModel):
    direction: Literal['up', 'down']


class SettingsUpdate(BaseModel):
    maintenance_mode: bool


class RoleUpdate(BaseModel):
    is_admin: bool


class LoginForm(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


def validation_errors(error: ValidationError) -> Dict[str, str]:
    """Flatten a pydantic error into {'field.path': 'message'}."""
    fields = {}
    for err in error.errors():
        path = '.'.join(str(part) for part in err['loc']) or '__root__'
        message = err['msg']
        if message.startswith('Value error, '):
            message = message[len('Value error, '):]
        fields.setdefault(path, message)
    return fields
