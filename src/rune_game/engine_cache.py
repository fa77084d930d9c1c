"""
Engine Cache
Keeps live engines for recently active players and saves them out when idle
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from .game_engine import GameEngine

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = timedelta(minutes=30)


class EngineCache:
    """Per-user engines with last-use tracking"""

    def __init__(self, save: Callable[[int, GameEngine], None],
                 idle_timeout: timedelta = DEFAULT_IDLE_TIMEOUT):
        self._save = save
        self.idle_timeout = idle_timeout
        self._engines: Dict[int, GameEngine] = {}
        self._last_used: Dict[int, datetime] = {}

    def __len__(self) -> int:
        return len(self._engines)

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._engines

    def get(self, user_id: int, now: datetime, create: Callable[[], GameEngine]) -> GameEngine:
        """Cached engine for the user, built with create on a miss"""
        engine = self._engines.get(user_id)
        if engine is None:
            # A failing create leaves nothing cached
            engine = create()
            self._engines[user_id] = engine
        self._last_used[user_id] = now
        return engine

    def touch(self, user_id: int, now: datetime):
        """Mark a cached engine as used"""
        if user_id in self._engines:
            self._last_used[user_id] = now

    def peek(self, user_id: int) -> Optional[GameEngine]:
        return self._engines.get(user_id)

    def save(self, user_id: int):
        engine = self._engines.get(user_id)
        if engine is not None:
            self._save(user_id, engine)

    def save_all(self):
        for user_id in list(self._engines):
            self.save(user_id)

    def evict(self, user_id: int):
        """Save the user's engine, then drop it; a failed save keeps it cached"""
        self.save(user_id)
        self._engines.pop(user_id, None)
        self._last_used.pop(user_id, None)

    def evict_idle(self, now: datetime) -> List[int]:
        """Evict every engine unused for the idle timeout, returns the evicted user IDs"""
        evicted = []
        for user_id, last_used in list(self._last_used.items()):
            if now - last_used < self.idle_timeout:
                continue
            try:
                self.evict(user_id)
            except Exception:
                logger.exception("[ENGINE_CACHE] Could not save %s, keeping it cached", user_id)
                continue
            evicted.append(user_id)

        if evicted:
            logger.info("[ENGINE_CACHE] Evicted %s idle engine(s)", len(evicted))
        return evicted

    def evict_inactive(self) -> List[int]:
        """Evict every engine without a live encounter, battle or boss fight"""
        evicted = []
        for user_id, engine in list(self._engines.items()):
            if engine.get_active_session_snapshot() is not None:
                continue
            self.evict(user_id)
            evicted.append(user_id)
        return evicted
