import sqlite3

import pytest

from fathom_scraper.database import MeetingDatabase
from fathom_scraper.exceptions import InvariantViolation, PersistenceError
from fathom_scraper.models import MeetingMetadata, TranscriptRecord


def make_record(title, url, summary="Meeting summary.", transcript="Speaker 1: hello."):
    # Padded past the minimum lengths a record accepts
    return TranscriptRecord(
        meeting_title=title,
        summary=summary + " " + "s" * 120,
        transcript=transcript + " " + "t" * 1100,
        metadata=MeetingMetadata(title=title, url=url, date="Mar 4, 2025"),
    )


@pytest.fixture
def database(tmp_path):
    db = MeetingDatabase(tmp_path / "meetings.db")
    yield db
    db.close()


def test_initialization_creates_table(tmp_path):
    db_path = tmp_path / "meetings.db"
    MeetingDatabase(db_path).close()

    conn = sqlite3.connect(db_path)
    tables = {row[0] for row in conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table'"
    )}
    conn.close()

    assert "meetings" in tables


def test_connection_check(database):
    assert database.test_connection() is True


def test_insert_and_lookup(database):
    stored = database.insert_meeting(make_record("Standup", "https://fathom.video/calls/1"))

    assert stored["id"] is not None
    assert stored["created_at"]

    found = database.get_meeting_by_url("https://fathom.video/calls/1")
    assert found["title"] == "Standup"
    assert found["transcript"].startswith("Speaker 1: hello.")


def test_lookup_missing_url_returns_none(database):
    assert database.get_meeting_by_url("https://fathom.video/calls/404") is None


def test_lookup_error_is_not_not_found(database):
    database.conn.execute("DROP TABLE meetings")

    with pytest.raises(PersistenceError):
        database.get_meeting_by_url("https://fathom.video/calls/1")


def test_duplicate_url_is_persistence_error(database):
    database.insert_meeting(make_record("One", "https://fathom.video/calls/1"))

    with pytest.raises(PersistenceError):
        database.insert_meeting(make_record("Two", "https://fathom.video/calls/1"))


def test_get_all_newest_first(database):
    database.insert_meeting(make_record("First", "https://fathom.video/calls/1"))
    database.insert_meeting(make_record("Second", "https://fathom.video/calls/2"))

    titles = [row["title"] for row in database.get_all_meetings()]

    assert titles == ["Second", "First"]


def test_search_is_case_insensitive_over_all_text(database):
    database.insert_meeting(make_record("Budget Review", "https://fathom.video/calls/1"))
    database.insert_meeting(make_record("Standup", "https://fathom.video/calls/2",
                                        summary="We discussed the BUDGET."))
    database.insert_meeting(make_record("Retro", "https://fathom.video/calls/3",
                                        transcript="nothing relevant"))

    titles = {row["title"] for row in database.search_meetings("budget")}

    assert titles == {"Budget Review", "Standup"}


def test_search_treats_wildcards_literally(database):
    database.insert_meeting(make_record("100% done", "https://fathom.video/calls/1"))
    database.insert_meeting(make_record("Other", "https://fathom.video/calls/2"))

    assert [row["title"] for row in database.search_meetings("%")] == ["100% done"]


def test_meetings_without_url_are_all_stored(database):
    first = database.insert_meeting(make_record("Untitled", ""))
    second = database.insert_meeting(make_record("Also untitled", ""))

    assert first["url"] is None
    assert second["url"] is None
    assert len(database.get_all_meetings()) == 2


def test_invalid_record_is_not_inserted(database):
    text = "same text " * 200
    record = TranscriptRecord.model_construct(
        meeting_title="Standup",
        summary=text,
        transcript=text,
        metadata=MeetingMetadata(title="Standup", url="https://fathom.video/calls/1"),
    )

    with pytest.raises(InvariantViolation):
        database.insert_meeting(record)

    assert database.get_all_meetings() == []
