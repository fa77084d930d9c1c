"""
Database Setup and Initialization
Handles table creation, migrations, and default configuration
"""
import logging
import sqlite3
from typing import Optional

from .connection import DatabaseManager, db_manager
from ..rune_game.config import EngineConfig

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2


class DatabaseSetup:
    """Handles database initialization and migrations"""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    def initialize_database(self):
        """Initialize all database tables and populate default config"""
        logger.info("[DATABASE] Initializing database...")

        self._create_tables()
        self._run_migrations()
        self._populate_initial_data()

        logger.info("[DATABASE] Database initialization complete")

    def _create_tables(self):
        """Create all necessary database tables"""
        conn = self.db.get_connection()
        cursor = conn.cursor()

        try:
            if self.db.db_type == 'postgresql':
                self._create_postgresql_tables(cursor)
            else:
                self._create_sqlite_tables(cursor)

            conn.commit()
            logger.info("[DATABASE] Tables created")

        except Exception as e:
            logger.error("[DATABASE] Error creating tables: %s", e)
            raise
        finally:
            conn.close()

    def _create_postgresql_tables(self, cursor):
        """Create PostgreSQL tables"""
        cursor.execute('''CREATE TABLE IF NOT EXISTS players
                         (user_id BIGINT PRIMARY KEY, username TEXT NOT NULL,
                          sage INTEGER DEFAULT 100, energy INTEGER DEFAULT 5, last_energy_regen TEXT,
                          boss_energy INTEGER DEFAULT 1, last_boss_reset TEXT,
                          wins INTEGER DEFAULT 0, losses INTEGER DEFAULT 0,
                          last_daily_reset TEXT, daily_streak INTEGER DEFAULT 0,
                          streak_reward_claimed BOOLEAN DEFAULT FALSE)''')

        cursor.execute('''CREATE TABLE IF NOT EXISTS player_runes
                         (user_id BIGINT NOT NULL, rune_id TEXT NOT NULL, species_id INTEGER NOT NULL,
                          rarity TEXT NOT NULL, power INTEGER NOT NULL, guard INTEGER NOT NULL,
                          speed INTEGER NOT NULL, wins INTEGER DEFAULT 0, variant TEXT DEFAULT 'normal',
                          caught_at TEXT, position INTEGER DEFAULT 0,
                          PRIMARY KEY (user_id, rune_id))''')

        cursor.execute('''CREATE TABLE IF NOT EXISTS player_dex
                         (user_id BIGINT NOT NULL, species_id INTEGER NOT NULL, caught BOOLEAN DEFAULT FALSE,
                          PRIMARY KEY (user_id, species_id))''')

        cursor.execute('''CREATE TABLE IF NOT EXISTS daily_challenges
                         (user_id BIGINT NOT NULL, challenge_id TEXT NOT NULL, position INTEGER DEFAULT 0,
                          challenge_type TEXT NOT NULL, description TEXT NOT NULL,
                          target INTEGER NOT NULL, reward INTEGER NOT NULL, current INTEGER DEFAULT 0,
                          element TEXT, completed BOOLEAN DEFAULT FALSE, claimed BOOLEAN DEFAULT FALSE,
                          PRIMARY KEY (user_id, challenge_id))''')

        cursor.execute('''CREATE TABLE IF NOT EXISTS boss_clears
                         (user_id BIGINT NOT NULL, boss_id TEXT NOT NULL,
                          PRIMARY KEY (user_id, boss_id))''')

        # Config table
        cursor.execute('''CREATE TABLE IF NOT EXISTS config
                         (key TEXT PRIMARY KEY, value TEXT)''')

        # Database version tracking
        cursor.execute('''CREATE TABLE IF NOT EXISTS db_version
                         (version INTEGER PRIMARY KEY)''')

    def _create_sqlite_tables(self, cursor):
        """Create SQLite tables"""
        cursor.execute('''CREATE TABLE IF NOT EXISTS players
                         (user_id INTEGER PRIMARY KEY, username TEXT NOT NULL,
                          sage INTEGER DEFAULT 100, energy INTEGER DEFAULT 5, last_energy_regen TEXT,
                          boss_energy INTEGER DEFAULT 1, last_boss_reset TEXT,
                          wins INTEGER DEFAULT 0, losses INTEGER DEFAULT 0,
                          last_daily_reset TEXT, daily_streak INTEGER DEFAULT 0,
                          streak_reward_claimed INTEGER DEFAULT 0)''')

        cursor.execute('''CREATE TABLE IF NOT EXISTS player_runes
                         (user_id INTEGER NOT NULL, rune_id TEXT NOT NULL, species_id INTEGER NOT NULL,
                          rarity TEXT NOT NULL, power INTEGER NOT NULL, guard INTEGER NOT NULL,
                          speed INTEGER NOT NULL, wins INTEGER DEFAULT 0, variant TEXT DEFAULT 'normal',
                          caught_at TEXT, position INTEGER DEFAULT 0,
                          PRIMARY KEY (user_id, rune_id))''')

        cursor.execute('''CREATE TABLE IF NOT EXISTS player_dex
                         (user_id INTEGER NOT NULL, species_id INTEGER NOT NULL, caught INTEGER DEFAULT 0,
                          PRIMARY KEY (user_id, species_id))''')

        cursor.execute('''CREATE TABLE IF NOT EXISTS daily_challenges
                         (user_id INTEGER NOT NULL, challenge_id TEXT NOT NULL, position INTEGER DEFAULT 0,
                          challenge_type TEXT NOT NULL, description TEXT NOT NULL,
                          target INTEGER NOT NULL, reward INTEGER NOT NULL, current INTEGER DEFAULT 0,
                          element TEXT, completed INTEGER DEFAULT 0, claimed INTEGER DEFAULT 0,
                          PRIMARY KEY (user_id, challenge_id))''')

        cursor.execute('''CREATE TABLE IF NOT EXISTS boss_clears
                         (user_id INTEGER NOT NULL, boss_id TEXT NOT NULL,
                          PRIMARY KEY (user_id, boss_id))''')

        # Config table
        cursor.execute('''CREATE TABLE IF NOT EXISTS config
                         (key TEXT PRIMARY KEY, value TEXT)''')

        # Database version tracking
        cursor.execute('''CREATE TABLE IF NOT EXISTS db_version
                         (version INTEGER PRIMARY KEY)''')

    def get_schema_version(self) -> int:
        """Highest applied migration, 0 for a fresh database"""
        row = self.db.fetch_one('SELECT version FROM db_version ORDER BY version DESC LIMIT 1')
        return row[0] if row else 0

    def _run_migrations(self):
        """Run database migrations"""
        current_version = self.get_schema_version()
        conn = self.db.get_connection()
        cursor = conn.cursor()

        try:
            if self.db.db_type == 'postgresql':
                self._run_postgresql_migrations(cursor, current_version)
            else:
                self._run_sqlite_migrations(cursor, current_version)

            conn.commit()
            logger.info("[DATABASE] Migrations complete (version %s -> %s)", current_version, SCHEMA_VERSION)

        except Exception as e:
            logger.error("[DATABASE] Error running migrations: %s", e)
            raise
        finally:
            conn.close()

    def _run_postgresql_migrations(self, cursor, current_version):
        """Run PostgreSQL-specific migrations"""
        if current_version < 1:
            cursor.execute('INSERT INTO db_version (version) VALUES (%s) ON CONFLICT (version) DO NOTHING', (1,))

        if current_version < 2:
            # Migration 2: Rune nicknames
            cursor.execute('ALTER TABLE player_runes ADD COLUMN IF NOT EXISTS nickname TEXT')
            cursor.execute('INSERT INTO db_version (version) VALUES (%s) ON CONFLICT (version) DO NOTHING', (2,))

    def _run_sqlite_migrations(self, cursor, current_version):
        """Run SQLite-specific migrations"""
        if current_version < 1:
            cursor.execute('INSERT OR REPLACE INTO db_version (version) VALUES (1)')

        if current_version < 2:
            # Migration 2: Rune nicknames
            try:
                cursor.execute('ALTER TABLE player_runes ADD COLUMN nickname TEXT')
            except sqlite3.OperationalError as e:
                logger.info("[DATABASE] Migration note: %s", e)

            cursor.execute('INSERT OR REPLACE INTO db_version (version) VALUES (2)')

    def _populate_initial_data(self):
        """Populate default engine configuration, keeping existing overrides"""
        default_config = EngineConfig().to_config_rows()

        conn = self.db.get_connection()
        cursor = conn.cursor()

        try:
            for key, value in default_config.items():
                if self.db.db_type == 'postgresql':
                    cursor.execute('INSERT INTO config (key, value) VALUES (%s, %s) ON CONFLICT (key) DO NOTHING', (key, value))
                else:
                    cursor.execute('INSERT OR IGNORE INTO config (key, value) VALUES (?, ?)', (key, value))

            conn.commit()
            logger.info("[DATABASE] Default configuration populated")

        except Exception as e:
            logger.error("[DATABASE] Error populating config: %s", e)
            raise
        finally:
            conn.close()

    def get_config(self, key: str) -> Optional[str]:
        """Read a single config value"""
        row = self.db.fetch_one('SELECT value FROM config WHERE key = ?', (key,))
        return row[0] if row else None

    def set_config(self, key: str, value: str):
        """Write a single config value"""
        if self.db.db_type == 'postgresql':
            self.db.execute_query('INSERT INTO config (key, value) VALUES (?, ?) '
                                  'ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value', (key, value))
        else:
            self.db.execute_query('INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)', (key, value))


# Global database setup instance
db_setup = DatabaseSetup()
