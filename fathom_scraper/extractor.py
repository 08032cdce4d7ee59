"""
Extraction of the most recent meeting from the Fathom home page.

Opens the first meeting of the second gallery group, reads its tile metadata,
then copies the summary and the transcript out through the clipboard.
"""

import re
import time
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .clipboard import capture_summary, capture_transcript, read_clipboard_text
from .config import HOME_URL, Settings
from .exceptions import (AuthExpired, ElementNotFound, NavigationTimeout,
                         NoMeetingFound, ScraperError)
from .logger import get_logger
from .metadata import extract_metadata
from .models import TranscriptRecord, assemble_record

logger = get_logger(__name__)

# The gallery is grouped into date sections; section 2 holds the newest meetings
THUMBNAIL_SELECTOR = ('page-completed-calls > call-gallery > '
                      'section:nth-child(2) > call-gallery-thumbnail')
COPY_SUMMARY_SELECTOR = 'button:has-text("Copy Summary")'
TRANSCRIPT_TAB_SELECTOR = 'button.uppercase:has-text("Transcript")'
COPY_TRANSCRIPT_SELECTOR = 'button:has-text("Copy Transcript")'
MEETING_URL_PATTERN = re.compile(r'calls/[0-9]+')


def log_timing(operation: str, start: float):
    logger.info(f"{operation} took {time.perf_counter() - start:.2f} seconds")


def is_home_url(url: str) -> bool:
    return 'fathom.video/home' in url


class MeetingExtractor:
    """Scrapes one meeting's metadata, summary and transcript from a logged-in page."""

    def __init__(self, page: Page, settings: Optional[Settings] = None):
        self.page = page
        self.settings = settings or Settings()

    async def open_home(self):
        """Make sure the page shows the meeting list, navigating there if needed."""
        if is_home_url(self.page.url):
            return
        logger.info("Not on home page, navigating...")
        try:
            await self.page.goto(HOME_URL, wait_until='domcontentloaded',
                                 timeout=self.settings.navigation_timeout)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout("Timed out opening the Fathom home page",
                                    {"url": HOME_URL}) from e
        if not is_home_url(self.page.url):
            raise AuthExpired("Redirected away from home, login required",
                              {"url": self.page.url})

    async def select_meeting(self) -> Locator:
        """Return the tile of the newest meeting."""
        try:
            await self.page.wait_for_selector(THUMBNAIL_SELECTOR,
                                              timeout=self.settings.element_timeout)
        except PlaywrightTimeoutError as e:
            raise NoMeetingFound("No meeting found in the meeting list") from e

        tile = self.page.locator(THUMBNAIL_SELECTOR).first
        if not await tile.count():
            raise NoMeetingFound("No meeting found in the meeting list")
        return tile

    async def open_meeting(self, tile: Locator):
        link = tile.locator('a').first
        await self._click(link, "meeting link")
        try:
            await self.page.wait_for_url(MEETING_URL_PATTERN,
                                         timeout=self.settings.navigation_timeout)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout("Meeting page did not open",
                                    {"url": self.page.url}) from e
        logger.info(f"Page transition complete, new URL: {self.page.url}")

    async def copy_summary(self) -> str:
        await self.page.wait_for_load_state('domcontentloaded')
        await self._click(self.page.locator(COPY_SUMMARY_SELECTOR).first, "Copy Summary button")
        logger.info("Waiting for summary content in clipboard...")
        return await capture_summary(self._read_clipboard,
                                     max_attempts=self.settings.clipboard_attempts,
                                     interval_ms=self.settings.clipboard_interval_ms)

    async def copy_transcript(self, summary: str) -> str:
        await self._click(self.page.locator(TRANSCRIPT_TAB_SELECTOR).first, "Transcript tab")
        await self._click(self.page.locator(COPY_TRANSCRIPT_SELECTOR).first,
                          "Copy Transcript button")
        logger.info("Waiting for transcript content in clipboard...")
        return await capture_transcript(self._read_clipboard, summary,
                                        max_attempts=self.settings.clipboard_attempts,
                                        interval_ms=self.settings.clipboard_interval_ms)

    async def extract(self) -> TranscriptRecord:
        """Run every step in order; the first failing step's error propagates."""
        started = time.perf_counter()
        logger.info("=== Starting Scraper ===")
        try:
            step = time.perf_counter()
            await self.open_home()
            log_timing("Navigation to home page", step)

            tile = await self.select_meeting()

            step = time.perf_counter()
            metadata = await extract_metadata(tile)
            log_timing("Metadata extraction", step)

            await self.open_meeting(tile)

            step = time.perf_counter()
            summary = await self.copy_summary()
            transcript = await self.copy_transcript(summary)
            record = assemble_record(summary, transcript, metadata)
            log_timing("Content extraction", step)
        except ScraperError as e:
            logger.error(f"Failed to scrape meeting transcript: {e.__class__.__name__}: {e}")
            raise

        log_timing("Total scraping operation", started)
        return record

    async def _read_clipboard(self) -> str:
        return await read_clipboard_text(self.page)

    async def _click(self, target: Locator, description: str):
        try:
            await target.wait_for(state='visible', timeout=self.settings.element_timeout)
            await target.click()
        except PlaywrightTimeoutError as e:
            raise ElementNotFound(f"{description} not found") from e
        except PlaywrightError as e:
            raise ElementNotFound(f"Could not click {description}: {e}") from e
        logger.info(f"Clicked {description}")
