"""
Clipboard capture.

Fathom only exposes the summary and transcript through "Copy" buttons. The
page writes to the clipboard some time after the click with no signal when
it's done, so we keep reading until the content passes a validator.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .exceptions import ClipboardPermissionDenied, ClipboardRetriesExhausted
from .logger import get_logger
from .validation import is_valid_summary, is_valid_transcript

logger = get_logger(__name__)

DEFAULT_ATTEMPTS = 20  # 20 attempts * 500ms = 10 seconds max wait
DEFAULT_INTERVAL_MS = 500

Reader = Callable[[], Awaitable[str]]
Validator = Callable[[Optional[str], Optional[str]], bool]

READ_CLIPBOARD_JS = '''async () => {
    const permission = await navigator.permissions.query({ name: 'clipboard-read' });
    if (permission.state !== 'granted') {
        return { state: permission.state, text: '' };
    }
    const text = await navigator.clipboard.readText();
    return { state: permission.state, text: text || '' };
}'''


async def read_clipboard_text(page: Page) -> str:
    """Read the clipboard through the page, if the permission is granted."""
    result = await page.evaluate(READ_CLIPBOARD_JS)
    state = (result or {}).get('state', 'unknown')
    if state != 'granted':
        raise ClipboardPermissionDenied(f"Clipboard permission not granted: {state}",
                                        {"state": state})
    return result.get('text') or ''


async def poll_clipboard(
    read: Reader,
    validate: Validator,
    max_attempts: int = DEFAULT_ATTEMPTS,
    interval_ms: int = DEFAULT_INTERVAL_MS,
    previous: Optional[str] = None,
    label: str = "clipboard",
) -> str:
    """
    Read until `validate(text, previous)` accepts, at most `max_attempts` times.

    A denied permission or a failed read counts as an unsuccessful attempt,
    not as a fatal error.

    Returns:
        The first accepted text

    Raises:
        ClipboardRetriesExhausted: no read was accepted
    """
    for attempt in range(1, max_attempts + 1):
        try:
            text = await read()
        except (ClipboardPermissionDenied, PlaywrightError) as e:
            logger.debug(f"{label}: clipboard read failed on attempt {attempt}: {e}")
            text = None

        if validate(text, previous):
            logger.info(f"Got {label} content, length: {len(text)} characters")
            return text

        logger.debug(f"Waiting for valid {label} content (attempt {attempt}/{max_attempts})...")
        if attempt < max_attempts:
            await asyncio.sleep(interval_ms / 1000)

    raise ClipboardRetriesExhausted(
        f"Failed to get valid {label} content after {max_attempts} attempts",
        attempts=max_attempts,
    )


async def capture_summary(read: Reader, max_attempts: int = DEFAULT_ATTEMPTS,
                          interval_ms: int = DEFAULT_INTERVAL_MS) -> str:
    return await poll_clipboard(read, is_valid_summary, max_attempts, interval_ms,
                                label="summary")


async def capture_transcript(read: Reader, summary: str, max_attempts: int = DEFAULT_ATTEMPTS,
                             interval_ms: int = DEFAULT_INTERVAL_MS) -> str:
    return await poll_clipboard(read, is_valid_transcript, max_attempts, interval_ms,
                                previous=summary, label="transcript")
