import sqlite3
import os
from typing import Optional, Dict, Any
from contextlib import contextmanager
from serenity.core.config import get_database_path
import logging

logger = logging.getLogger(__name__)


class DatabaseManager:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or get_database_path()
        self._ensure_db_directory()
        self._initialize_database()

    def _ensure_db_directory(self):
        db_dir = os.path.dirname(self.db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)
            logger.info(f"Created database directory: {db_dir}")

    @contextmanager
    def get_connection(self):
        conn = sqlite3.connect(
            self.db_path,
            check_same_thread=False,
            timeout=30.0,
        )
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("PRAGMA journal_mode = WAL;")
        conn.execute("PRAGMA synchronous = NORMAL;")

        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            conn.close()

    def _initialize_database(self):
        with self.get_connection() as conn:
            cur = conn.cursor()

            # chat_sessions
            cur.execute("""
                CREATE TABLE IF NOT EXISTS chat_sessions (
                    session_id TEXT PRIMARY KEY,
                    user_id TEXT,
                    current_mood TEXT,
                    created_at DATETIME NOT NULL,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                );
            """)

            # chat_turns (append-only)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS chat_turns (
                    session_id TEXT NOT NULL,
                    seq INTEGER NOT NULL,
                    turn_id TEXT NOT NULL,
                    origin TEXT NOT NULL,
                    text TEXT NOT NULL,
                    content_kind TEXT NOT NULL DEFAULT 'plain',
                    category TEXT,
                    created_at DATETIME NOT NULL,
                    PRIMARY KEY (session_id, seq),
                    FOREIGN KEY (session_id) REFERENCES chat_sessions(session_id) ON DELETE CASCADE
                );
            """)

            # profiles (entitlement flag only)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    user_id TEXT PRIMARY KEY,
                    is_premium BOOLEAN NOT NULL DEFAULT FALSE,
                    premium_confirmation TEXT,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                );
            """)

            self._create_indexes(cur)

            logger.info("Database initialized successfully")

    def _create_indexes(self, cur):
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_chat_sessions_user_id ON chat_sessions(user_id);",
            "CREATE INDEX IF NOT EXISTS idx_chat_turns_created_at ON chat_turns(created_at);",
        ]
        for sql in indexes:
            try:
                cur.execute(sql)
            except sqlite3.Error as e:
                logger.warning(f"Index creation failed: {e}")

    def health_check(self) -> Dict[str, Any]:
        try:
            with self.get_connection() as conn:
                cur = conn.cursor()
                cur.execute("SELECT 1")
                cur.execute("SELECT COUNT(*) FROM chat_sessions")
                session_count = cur.fetchone()[0]
                cur.execute("SELECT COUNT(*) FROM chat_turns")
                turn_count = cur.fetchone()[0]
                cur.execute("PRAGMA page_count")
                page_count = cur.fetchone()[0]
                cur.execute("PRAGMA page_size")
                page_size = cur.fetchone()[0]
                db_size_mb = (page_count * page_size) / (1024 * 1024)
                return {
                    "status": "healthy",
                    "database_path": self.db_path,
                    "sessions_count": session_count,
                    "turns_count": turn_count,
                    "database_size_mb": round(db_size_mb, 2),
                    "wal_mode": True,
                }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}


_db_manager = None

def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
