import logging
import os
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

ROLES = ("assistant", "user")


class TranscriptRepository:
    """Append-only log of conversation turns."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or os.getenv("BISTRO_DB_PATH", "bistro.db")
        self._init_db()

    def _get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        conn = self._get_connection()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS transcript_turns (
                    conversation_id TEXT NOT NULL,
                    seq INTEGER NOT NULL,
                    role TEXT NOT NULL,
                    text TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    PRIMARY KEY (conversation_id, seq)
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def append_turn(self, conversation_id: str, role: str, text: str) -> bool:
        """
        Appends one turn. Returns False instead of raising when the write fails.
        """
        if role not in ROLES:
            logger.warning(f"Refusing transcript turn with unknown role {role!r}")
            return False

        try:
            conn = self._get_connection()
        except sqlite3.Error as e:
            logger.warning(f"Could not open transcript store {self.db_path}: {e}")
            return False

        try:
            seq = conn.execute(
                "SELECT COALESCE(MAX(seq), 0) + 1 FROM transcript_turns WHERE conversation_id = ?",
                (conversation_id,),
            ).fetchone()[0]
            conn.execute(
                "INSERT INTO transcript_turns (conversation_id, seq, role, text, created_at) VALUES (?, ?, ?, ?, ?)",
                (conversation_id, seq, role, text, datetime.now().isoformat()),
            )
            conn.commit()
            return True
        except sqlite3.Error as e:
            logger.warning(f"Error storing {role} turn for conversation {conversation_id}: {e}")
            return False
        finally:
            conn.close()

    def get_transcript(self, conversation_id: str) -> List[Dict[str, Any]]:
        conn = self._get_connection()
        try:
            rows = conn.execute(
                "SELECT seq, role, text, created_at FROM transcript_turns WHERE conversation_id = ? ORDER BY seq",
                (conversation_id,),
            ).fetchall()
            return [dict(r) for r in rows]
        finally:
            conn.close()
