"""
Rune Game Package
Collection, economy and battle engine for Rune Relic
"""
from .rune_library import RuneLibrary, Species, CatalogError, rune_library
from .config import EngineConfig
from .game_engine import GameEngine

__all__ = ['RuneLibrary', 'Species', 'CatalogError', 'rune_library', 'EngineConfig', 'GameEngine']
