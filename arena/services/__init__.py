from .base import ActionResult
from .tournaments import TournamentRegistry
from .registrations import RegistrationService
from .matches import MatchService
from .leaderboard import LeaderboardService
from .featured_games import FeaturedGameService
from .settings import SettingsService

__all__ = [
    'ActionResult',
    'TournamentRegistry',
    'RegistrationService',
    'MatchService',
    'LeaderboardService',
    'FeaturedGameService',
    'SettingsService',
]
