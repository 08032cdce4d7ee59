#!/usr/bin/env python3
"""
Fathom Transcripts Scraper

This script logs in to fathom.video with a Google account and saves the
summary and transcript of the most recent meeting.

Usage:
    python scraper.py [--headed] [--browser-path /path/to/chromium]

Environment Variables (or .env):
    GOOGLE_EMAIL, GOOGLE_PASSWORD - Google account used for "Sign in with Google"
    CHROMIUM_PATH - Path to Chromium executable
    FATHOM_SESSION_FILE, FATHOM_TRANSCRIPTS_DIR, FATHOM_DB_PATH, FATHOM_HEADLESS

The script will:
1. Launch a Chromium browser, reusing the saved session if there is one
2. Log in (falling back to manual sign-in if Google shows an unknown screen)
3. Open the newest meeting and copy out its summary and transcript
4. Save them to transcripts/ and to the meetings database
"""

import argparse
import asyncio
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from fathom_scraper.auth import LoginFlow
from fathom_scraper.config import HOME_URL, Settings
from fathom_scraper.database import MeetingDatabase
from fathom_scraper.exceptions import PersistenceError, ScraperError, is_auth_error
from fathom_scraper.extractor import MeetingExtractor, is_home_url
from fathom_scraper.logger import get_logger, setup_logging
from fathom_scraper.models import TranscriptRecord
from fathom_scraper.storage import TranscriptPersister

logger = get_logger("scraper")

LAUNCH_ARGS = [
    '--no-sandbox',
    '--disable-blink-features=AutomationControlled',
    '--disable-features=IsolateOrigins,site-per-process',
]

USER_AGENT = ('Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
              '(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36')

STEALTH_JS = '''() => {
    Object.defineProperty(navigator, 'webdriver', { get: () => false });
    Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
}'''


class FathomScraper:
    def __init__(self, settings: Settings, database: Optional[MeetingDatabase] = None):
        self.settings = settings
        self.session_file = Path(settings.session_file)
        self.transcripts_dir = Path(settings.transcripts_dir)
        self.database = database
        self.persister = TranscriptPersister(self.transcripts_dir, database)
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self.used_stored_session = False

    def context_options(self) -> dict:
        options = {
            'viewport': {'width': 1280, 'height': 720},
            'user_agent': USER_AGENT,
            'permissions': ['clipboard-read', 'clipboard-write'],
            'locale': 'en-US',
            'color_scheme': 'light',
            'accept_downloads': True,
        }
        if self.session_file.exists():
            options['storage_state'] = str(self.session_file)
        return options

    async def setup(self):
        """Initialize Playwright and launch browser."""
        self.playwright = await async_playwright().start()

        launch_options = {
            'headless': self.settings.headless,
            'args': LAUNCH_ARGS,
        }
        if self.settings.browser_path:
            launch_options['executable_path'] = self.settings.browser_path
            logger.info(f"Using Chromium at: {self.settings.browser_path}")

        self.browser = await self.playwright.chromium.launch(**launch_options)

        options = self.context_options()
        self.used_stored_session = 'storage_state' in options
        if self.used_stored_session:
            logger.info(f"✓ Loading saved session from {self.session_file}")
        else:
            logger.info("No stored authentication found")

        self.context = await self.browser.new_context(**options)
        await self.context.add_init_script(STEALTH_JS)
        self.page = await self.context.new_page()

    async def login(self):
        """Run the login flow and save the session for next time."""
        credentials = self.settings.require_credentials()
        flow = LoginFlow(
            self.page,
            credentials,
            element_timeout=self.settings.element_timeout,
            navigation_timeout=self.settings.navigation_timeout,
            manual_timeout=self.settings.manual_login_timeout,
            probe_timeout=self.settings.probe_timeout,
        )
        await flow.run()
        await self.context.storage_state(path=str(self.session_file))
        logger.info("✓ Login session saved!")

    async def ensure_logged_in(self):
        """Reuse the stored session if it still works, otherwise log in."""
        if not self.used_stored_session:
            await self.login()
            return

        logger.info("Using stored authentication...")
        try:
            await self.page.goto(HOME_URL, wait_until='domcontentloaded',
                                 timeout=self.settings.navigation_timeout)
            await self.page.wait_for_load_state('networkidle', timeout=5000)
        except PlaywrightTimeoutError:
            logger.debug("Network did not become idle, but page is loaded")

        if not is_home_url(self.page.url):
            logger.warning("Stored authentication expired, logging in again...")
            self.discard_session()
            await self.login()

    def discard_session(self):
        if self.session_file.exists():
            self.session_file.unlink()
            logger.info(f"Removed stored session {self.session_file}")

    async def scrape(self) -> TranscriptRecord:
        await self.ensure_logged_in()
        return await MeetingExtractor(self.page, self.settings).extract()

    def report(self, record: TranscriptRecord, filepath: Path):
        meta = record.metadata
        print("\n=== Scraped Meeting Data ===")
        print(f"Meeting Title: {record.meeting_title}")
        print(f"Duration: {meta.duration}")
        print(f"Date: {meta.date}")
        print(f"URL: {meta.url}")
        print(f"Section: {meta.section}")
        print(f"Checkmarks: {meta.checkmarks}")
        print(f"Transcript Length: {len(record.transcript)} characters")
        print(f"Saved to: {filepath}")

    async def close(self):
        if self.context:
            await self.context.close()
        if self.browser:
            await self.browser.close()
        if hasattr(self, 'playwright'):
            await self.playwright.stop()

    async def run(self) -> bool:
        """Main execution flow. Returns True if the meeting was saved."""
        started = time.perf_counter()
        try:
            await self.setup()
            record = await self.scrape()
            filepath = self.persister.persist(record)
            self.report(record, filepath)
            logger.info("🎉 All done!")
            return True

        except PersistenceError as e:
            logger.error(f"❌ Could not save meeting: {e}")
            return False

        except ScraperError as e:
            logger.error(f"❌ Error during execution: {e.__class__.__name__}: {e}")
            if is_auth_error(e):
                logger.warning("Authentication error detected, removing stored credentials...")
                self.discard_session()
            return False

        except PlaywrightError as e:
            logger.error(f"❌ Browser error: {e}")
            return False

        finally:
            await self.close()
            logger.info(f"Total execution time: {time.perf_counter() - started:.2f} seconds")


def print_meetings(rows: list):
    if not rows:
        print("No meetings found")
        return
    for row in rows:
        print(f"[{row['id']}] {row['date'] or 'unknown date'} | {row['title']} | {row['url']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Save the newest Fathom meeting summary and transcript'
    )
    parser.add_argument(
        '--headed',
        action='store_true',
        help='Show the browser window (useful for finishing a login by hand)'
    )
    parser.add_argument(
        '--browser-path',
        type=str,
        help='Path to Chromium executable (or set CHROMIUM_PATH env var)'
    )
    parser.add_argument(
        '--session-file',
        type=Path,
        help='Where the login session is stored (default: auth.json)'
    )
    parser.add_argument(
        '--transcripts-dir',
        type=Path,
        help='Directory to save transcripts (default: ./transcripts)'
    )
    parser.add_argument(
        '--db-path',
        type=Path,
        help='SQLite database for scraped meetings (default: meetings.db)'
    )
    parser.add_argument(
        '--no-db',
        action='store_true',
        help='Only write the transcript file'
    )
    parser.add_argument(
        '--check-db',
        action='store_true',
        help='Test the database connection and exit'
    )
    parser.add_argument(
        '--list',
        action='store_true',
        help='List stored meetings and exit'
    )
    parser.add_argument(
        '--search',
        type=str,
        metavar='QUERY',
        help='Search stored meetings and exit'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )
    return parser


def settings_from_args(args: argparse.Namespace, base: Settings) -> Settings:
    settings = base.with_overrides(
        session_file=args.session_file,
        transcripts_dir=args.transcripts_dir,
        db_path=args.db_path,
        browser_path=args.browser_path,
        log_level=args.log_level.upper() if args.log_level else None,
        headless=False if args.headed else None,
    )
    if args.no_db:
        settings = replace(settings, db_path=None)
    return settings


def run_database_command(args: argparse.Namespace, settings: Settings) -> int:
    if settings.db_path is None:
        print("❌ No database configured")
        return 1

    database = MeetingDatabase(settings.db_path)
    try:
        if args.check_db:
            if not database.test_connection():
                print("❌ Database connection test failed")
                return 1
            count = len(database.get_all_meetings())
            print(f"✅ Database OK. Found {count} existing meetings.")
        elif args.search:
            print_meetings(database.search_meetings(args.search))
        else:
            print_meetings(database.get_all_meetings())
        return 0
    except PersistenceError as e:
        print(f"❌ {e}")
        return 1
    finally:
        database.close()


async def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args, Settings.from_env())
    setup_logging(settings.log_level, args.log_file)

    if args.check_db or args.list or args.search:
        return run_database_command(args, settings)

    try:
        database = MeetingDatabase(settings.db_path) if settings.db_path else None
    except PersistenceError as e:
        print(f"❌ {e}")
        return 1

    try:
        scraper = FathomScraper(settings, database)
        return 0 if await scraper.run() else 1
    finally:
        if database:
            database.close()


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
