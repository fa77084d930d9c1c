# Database module for Rune Relic
from .connection import DatabaseManager
from .models import PlayerProfile, OwnedRune, RuneStats, DailyChallenge
from .profile_repository import ProfileRepository

__all__ = ['DatabaseManager', 'PlayerProfile', 'OwnedRune', 'RuneStats', 'DailyChallenge', 'ProfileRepository']
