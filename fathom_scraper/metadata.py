"""
Metadata extraction from a meeting tile on the Fathom home page.

Every field falls back to a default when its part of the tile is missing or
unreadable; a tile that lacks a date still yields a usable record.
"""

import re
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator

from .logger import get_logger
from .models import MeetingMetadata

logger = get_logger(__name__)

TITLE_SELECTOR = 'call-gallery-thumbnail-title span'
DATE_SELECTOR = 'li.text-default'
DURATION_SELECTOR = 'span.font-sans'
LINK_SELECTOR = 'a'
IMAGE_SELECTOR = 'img'
CHECKMARKS_SELECTOR = 'li.text-info-warn'

# Tiles sit inside a <section>; the date group label ("Yesterday") is the
# element right before it.
SECTION_JS = '''el => {
    const header = el.closest('section')?.previousElementSibling;
    return header ? header.textContent || '' : '';
}'''

# Short timeout since we only read elements that count() says are there
READ_TIMEOUT = 2000


async def _text(tile: Locator, selector: str) -> Optional[str]:
    node = tile.locator(selector).first
    try:
        if not await node.count():
            return None
        return await node.text_content(timeout=READ_TIMEOUT)
    except PlaywrightError as e:
        logger.debug(f"Could not read text of {selector}: {e}")
        return None


async def _attribute(tile: Locator, selector: str, name: str) -> Optional[str]:
    node = tile.locator(selector).first
    try:
        if not await node.count():
            return None
        return await node.get_attribute(name, timeout=READ_TIMEOUT)
    except PlaywrightError as e:
        logger.debug(f"Could not read {name} of {selector}: {e}")
        return None


async def _section(tile: Locator) -> Optional[str]:
    try:
        return await tile.evaluate(SECTION_JS)
    except PlaywrightError as e:
        logger.debug(f"Could not read section header: {e}")
        return None


def parse_checkmarks(text: Optional[str]) -> int:
    """Pull the count out of a badge like '✓ 3'."""
    if not text:
        return 0
    digits = re.sub(r'\D', '', text)
    return int(digits) if digits else 0


def _clean(value: Optional[str], default: str = '') -> str:
    value = (value or '').strip()
    return value or default


async def extract_metadata(tile: Locator) -> MeetingMetadata:
    """Read a meeting tile into a MeetingMetadata record."""
    logger.info("Extracting metadata from thumbnail...")

    metadata = MeetingMetadata(
        title=_clean(await _text(tile, TITLE_SELECTOR), 'Untitled'),
        date=_clean(await _text(tile, DATE_SELECTOR)),
        duration=_clean(await _text(tile, DURATION_SELECTOR)),
        url=_clean(await _attribute(tile, LINK_SELECTOR, 'href')),
        thumbnail_url=_clean(await _attribute(tile, IMAGE_SELECTOR, 'src')),
        section=_clean(await _section(tile)),
        checkmarks=parse_checkmarks(await _text(tile, CHECKMARKS_SELECTOR)),
    )

    logger.info(
        f"Metadata: title={metadata.title!r} date={metadata.date or '-'} "
        f"duration={metadata.duration or '-'} section={metadata.section or '-'} "
        f"checkmarks={metadata.checkmarks}"
    )
    return metadata
