"""Writing scraped meetings to disk and to the meeting database."""

import re
from pathlib import Path
from typing import Optional

from .database import MeetingDatabase
from .exceptions import PersistenceError
from .logger import get_logger
from .models import TranscriptRecord

logger = get_logger(__name__)


def sanitize_name(value: str) -> str:
    """Lowercase and replace every non-alphanumeric character with '_'."""
    return re.sub(r'[^a-z0-9]', '_', value, flags=re.IGNORECASE).lower()


def canonical_filename(title: str, date: str) -> str:
    # NOTE: two meetings with the same title and date land on the same file
    return f"{sanitize_name(title)}_{sanitize_name(date)}.txt"


def compact_lines(text: str) -> str:
    """Trim every line and drop the blank ones."""
    return '\n'.join(line.strip() for line in text.split('\n') if line.strip())


def format_transcript(record: TranscriptRecord) -> str:
    meta = record.metadata
    return (
        "=== Meeting Information ===\n"
        f"Title: {meta.title}\n"
        f"Date: {meta.date}\n"
        f"Duration: {meta.duration}\n"
        f"URL: {meta.url}\n"
        f"Section: {meta.section}\n"
        f"Checkmarks: {meta.checkmarks}\n"
        "\n"
        "=== Summary ===\n"
        f"{compact_lines(record.summary)}\n"
        "\n"
        "=== Transcript ===\n"
        f"{compact_lines(record.transcript)}"
    )


def save_transcript(record: TranscriptRecord, transcripts_dir: Path) -> Path:
    """Write the record as a text file and return its path."""
    filepath = Path(transcripts_dir) / canonical_filename(record.metadata.title,
                                                          record.metadata.date)
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(format_transcript(record))
        size = filepath.stat().st_size
    except OSError as e:
        raise PersistenceError(f"Could not write transcript file: {e}",
                               {"path": str(filepath)}) from e

    logger.info(f"Transcript file size: {size} bytes")
    return filepath


class TranscriptPersister:
    """Saves a record to the transcripts folder and, if configured, the database."""

    def __init__(self, transcripts_dir: Path, database: Optional[MeetingDatabase] = None):
        self.transcripts_dir = Path(transcripts_dir)
        self.database = database

    def save_file(self, record: TranscriptRecord) -> Path:
        return save_transcript(record, self.transcripts_dir)

    def save_remote(self, record: TranscriptRecord) -> Optional[dict]:
        """Insert the meeting unless a row with its URL already exists."""
        if self.database is None:
            return None

        if not record.metadata.url:
            logger.warning("Meeting has no URL, storing it without a lookup key")

        url = record.metadata.url
        existing = self.database.get_meeting_by_url(url) if url else None
        if existing is not None:
            logger.info(f"Meeting already stored (id {existing['id']}), skipping insert")
            return existing
        return self.database.insert_meeting(record)

    def persist(self, record: TranscriptRecord) -> Path:
        """
        Save to both sinks.

        A file write failure propagates. A database failure is logged and
        re-raised after the file has been written; the file stays in place.
        An invalid record raises InvariantViolation before either sink writes.
        """
        record.check_content()
        filepath = self.save_file(record)
        logger.info(f"Transcript saved to: {filepath}")

        try:
            self.save_remote(record)
        except PersistenceError as e:
            logger.error(f"Could not store meeting in database: {e}")
            raise
        return filepath
