"""
Database Connection Manager
Handles PostgreSQL and SQLite connections with automatic fallback
"""
import logging
import os
import sqlite3
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages database connections with automatic PostgreSQL/SQLite fallback"""

    def __init__(self, database_url: Optional[str] = None, sqlite_path: Optional[str] = None):
        self.database_url = database_url if database_url is not None else os.getenv('DATABASE_URL')
        self.sqlite_path = sqlite_path or self._get_sqlite_path()
        self.db_type = 'sqlite'
        self._test_connection()

    def _test_connection(self):
        """Test and determine the best database connection"""
        if self.database_url and self.database_url.startswith('postgresql://'):
            try:
                import psycopg2
                logger.info("[DATABASE] Attempting to connect to PostgreSQL database...")

                conn = psycopg2.connect(self.database_url, connect_timeout=10, sslmode='require')
                conn.close()

                logger.info("[DATABASE] Connected to PostgreSQL database")
                self.db_type = 'postgresql'
                return

            except ImportError:
                logger.warning("[DATABASE] psycopg2 not installed (pip install psycopg2-binary), falling back to SQLite")

            except Exception as e:
                logger.warning("[DATABASE] PostgreSQL connection failed: %s, falling back to SQLite", e)

        logger.info("[DATABASE] Using SQLite database at: %s", self.sqlite_path)
        self.db_type = 'sqlite'

    @staticmethod
    def _get_sqlite_path() -> str:
        """Get the appropriate SQLite database path for the environment"""
        if os.getenv('RENDER') or os.getenv('RAILWAY_ENVIRONMENT') or os.getenv('PORT'):
            # Cloud hosts only guarantee /tmp is writable
            return '/tmp/rune_relic.db'
        return 'rune_relic.db'

    def get_connection(self):
        """Get a database connection"""
        if self.db_type == 'postgresql':
            import psycopg2
            return psycopg2.connect(self.database_url, connect_timeout=10, sslmode='require')
        return sqlite3.connect(self.sqlite_path)

    def convert_query(self, query: str) -> str:
        """Convert SQLite placeholders (?) to PostgreSQL placeholders (%s) if needed"""
        if self.db_type == 'postgresql':
            return query.replace('?', '%s')
        return query

    def _run(self, cursor, query: str, params: Optional[tuple] = None):
        if params:
            cursor.execute(self.convert_query(query), params)
        else:
            cursor.execute(self.convert_query(query))

    def execute_query(self, query: str, params: Optional[tuple] = None):
        """Execute and commit one statement, SELECT statements return their first row"""
        conn = self.get_connection()

        try:
            cursor = conn.cursor()
            self._run(cursor, query, params)
            result = cursor.fetchone() if query.lstrip().upper().startswith('SELECT') else True
            conn.commit()
            return result

        except Exception as e:
            logger.error("[DATABASE] Error in execute_query: %s | Query: %s | Params: %s", e, query, params)
            raise
        finally:
            conn.close()

    def execute_transaction(self, statements: Iterable[Tuple[str, Optional[tuple]]]):
        """Run several statements in one transaction, rolling back on any failure"""
        conn = self.get_connection()

        try:
            cursor = conn.cursor()
            for query, params in statements:
                self._run(cursor, query, params)
            conn.commit()

        except Exception as e:
            conn.rollback()
            logger.error("[DATABASE] Transaction rolled back: %s", e)
            raise
        finally:
            conn.close()

    def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[tuple]:
        """Every row a query returns"""
        conn = self.get_connection()

        try:
            cursor = conn.cursor()
            self._run(cursor, query, params)
            return cursor.fetchall()

        except Exception as e:
            logger.error("[DATABASE] Error in fetch_all: %s | Query: %s", e, query)
            raise
        finally:
            conn.close()

    def fetch_one(self, query: str, params: Optional[tuple] = None):
        """First row of a query, None when empty or on error"""
        conn = self.get_connection()

        try:
            cursor = conn.cursor()
            self._run(cursor, query, params)
            return cursor.fetchone()

        except Exception as e:
            logger.error("[DATABASE] Error in fetch_one: %s | Query: %s | Params: %s", e, query, params)
            return None
        finally:
            conn.close()


# Global database manager instance
db_manager = DatabaseManager()
