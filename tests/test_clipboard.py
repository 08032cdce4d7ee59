import pytest
from unittest.mock import AsyncMock

from playwright.async_api import Error as PlaywrightError

from fathom_scraper.clipboard import (capture_summary, capture_transcript, poll_clipboard,
                                      read_clipboard_text)
from fathom_scraper.exceptions import ClipboardPermissionDenied, ClipboardRetriesExhausted
from fathom_scraper.validation import is_valid_summary


@pytest.mark.asyncio
async def test_poll_returns_first_valid_read():
    summary = "S" * 150
    read = AsyncMock(side_effect=["<button>x</button>", "", summary])

    result = await poll_clipboard(read, is_valid_summary, max_attempts=20, interval_ms=0)

    assert result == summary
    assert read.await_count == 3


@pytest.mark.asyncio
async def test_poll_stops_reading_after_success():
    read = AsyncMock(side_effect=["A" * 150, "B" * 150])

    result = await poll_clipboard(read, is_valid_summary, max_attempts=5, interval_ms=0)

    assert result == "A" * 150
    assert read.await_count == 1


@pytest.mark.asyncio
async def test_poll_exhausts_after_exactly_max_attempts():
    read = AsyncMock(return_value="too short")

    with pytest.raises(ClipboardRetriesExhausted) as excinfo:
        await poll_clipboard(read, is_valid_summary, max_attempts=4, interval_ms=0)

    assert read.await_count == 4
    assert excinfo.value.attempts == 4


@pytest.mark.asyncio
async def test_permission_denied_counts_as_failed_attempt():
    read = AsyncMock(side_effect=[
        ClipboardPermissionDenied("Clipboard permission not granted: prompt"),
        PlaywrightError("Execution context was destroyed"),
        "C" * 200,
    ])

    result = await poll_clipboard(read, is_valid_summary, max_attempts=3, interval_ms=0)

    assert result == "C" * 200
    assert read.await_count == 3


@pytest.mark.asyncio
async def test_transcript_capture_skips_stale_summary(summary_text, transcript_text):
    stale = summary_text * 10  # long enough to pass the length check
    read = AsyncMock(side_effect=[stale, stale, transcript_text])

    result = await capture_transcript(read, stale, max_attempts=5, interval_ms=0)

    assert result == transcript_text
    assert read.await_count == 3


@pytest.mark.asyncio
async def test_summary_capture_gives_up():
    read = AsyncMock(return_value="")

    with pytest.raises(ClipboardRetriesExhausted):
        await capture_summary(read, max_attempts=2, interval_ms=0)


@pytest.mark.asyncio
async def test_read_clipboard_text_requires_permission():
    page = AsyncMock()
    page.evaluate.return_value = {'state': 'denied', 'text': ''}

    with pytest.raises(ClipboardPermissionDenied):
        await read_clipboard_text(page)


@pytest.mark.asyncio
async def test_read_clipboard_text_returns_text():
    page = AsyncMock()
    page.evaluate.return_value = {'state': 'granted', 'text': 'hello'}

    assert await read_clipboard_text(page) == 'hello'
