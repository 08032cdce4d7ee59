import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import PersistenceError
from .logger import get_logger
from .models import TranscriptRecord

logger = get_logger(__name__)

COLUMNS = ("title", "date", "duration", "url", "thumbnail_url", "summary", "transcript")


class MeetingDatabase:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        try:
            self.conn = sqlite3.connect(str(db_path))
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open database {db_path}: {e}") from e
        self.conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self):
        cursor = self.conn.cursor()
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS meetings (
                id INTEGER PRIMARY KEY,
                title TEXT NOT NULL,
                date TEXT,
                duration TEXT,
                url TEXT UNIQUE,
                thumbnail_url TEXT,
                summary TEXT,
                transcript TEXT,
                created_at TIMESTAMP DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
            )
        ''')
        self.conn.commit()

    def _query(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        try:
            cursor = self.conn.execute(sql, params)
            return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise PersistenceError(f"Query failed: {e}", {"sql": sql.strip()}) from e

    def test_connection(self) -> bool:
        """Check that the meetings table can be read."""
        try:
            rows = self._query("SELECT id FROM meetings")
        except PersistenceError as e:
            logger.error(f"Database connection test failed: {e}")
            return False
        logger.info(f"Database connection successful, current row count: {len(rows)}")
        return True

    def insert_meeting(self, record: TranscriptRecord) -> Dict[str, Any]:
        """Insert a meeting and return the stored row."""
        record.check_content()
        row = record.to_row()
        # Meetings without a link are stored with a NULL url; UNIQUE allows many
        row["url"] = row["url"] or None
        logger.info(f"Inserting meeting: {row['title']} ({row['url']})")
        try:
            cursor = self.conn.execute(
                f"INSERT INTO meetings ({', '.join(COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in COLUMNS)})",
                tuple(row[c] for c in COLUMNS)
            )
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise PersistenceError(f"Error inserting meeting: {e}",
                                   {"title": row['title'], "url": row['url']}) from e

        stored = self._query("SELECT * FROM meetings WHERE id = ?", (cursor.lastrowid,))[0]
        logger.info(f"Inserted meeting id {stored['id']}")
        return stored

    def get_meeting_by_url(self, url: str) -> Optional[Dict[str, Any]]:
        """Look up a meeting by URL. Returns None when there is no such row."""
        rows = self._query("SELECT * FROM meetings WHERE url = ?", (url,))
        if not rows:
            logger.info(f"No meeting found with URL: {url}")
            return None
        return rows[0]

    def get_all_meetings(self) -> List[Dict[str, Any]]:
        """All meetings, newest first."""
        return self._query("SELECT * FROM meetings ORDER BY created_at DESC, id DESC")

    def search_meetings(self, query: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring search over title, summary and transcript."""
        rows = self._query('''
            SELECT * FROM meetings
            WHERE instr(lower(title), lower(?)) > 0
               OR instr(lower(summary), lower(?)) > 0
               OR instr(lower(transcript), lower(?)) > 0
            ORDER BY created_at DESC, id DESC
        ''', (query, query, query))
        logger.info(f"Found {len(rows)} meetings matching query: {query}")
        return rows

    def close(self):
        self.conn.close()
