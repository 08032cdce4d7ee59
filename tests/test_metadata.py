import pytest
from playwright.async_api import Error as PlaywrightError

from fathom_scraper.metadata import (CHECKMARKS_SELECTOR, DATE_SELECTOR, DURATION_SELECTOR,
                                     IMAGE_SELECTOR, LINK_SELECTOR, TITLE_SELECTOR,
                                     extract_metadata, parse_checkmarks)
from fakes import FakeLocator


def full_tile():
    return FakeLocator(
        section="  Yesterday \n",
        children={
            TITLE_SELECTOR: FakeLocator(text="  Weekly Sync  "),
            DATE_SELECTOR: FakeLocator(text="Mar 4, 2025"),
            DURATION_SELECTOR: FakeLocator(text=" 32 mins "),
            LINK_SELECTOR: FakeLocator(attrs={"href": "https://fathom.video/calls/123"}),
            IMAGE_SELECTOR: FakeLocator(attrs={"src": "https://cdn.fathom.video/t.jpg"}),
            CHECKMARKS_SELECTOR: FakeLocator(text="✓ 3"),
        },
    )


@pytest.mark.asyncio
async def test_extracts_all_fields():
    metadata = await extract_metadata(full_tile())

    assert metadata.title == "Weekly Sync"
    assert metadata.date == "Mar 4, 2025"
    assert metadata.duration == "32 mins"
    assert metadata.url == "https://fathom.video/calls/123"
    assert metadata.thumbnail_url == "https://cdn.fathom.video/t.jpg"
    assert metadata.section == "Yesterday"
    assert metadata.checkmarks == 3


@pytest.mark.asyncio
async def test_empty_tile_gets_defaults():
    metadata = await extract_metadata(FakeLocator(section=None))

    assert metadata.title == "Untitled"
    assert metadata.date == ""
    assert metadata.duration == ""
    assert metadata.url == ""
    assert metadata.thumbnail_url == ""
    assert metadata.section == ""
    assert metadata.checkmarks == 0


@pytest.mark.asyncio
async def test_unreadable_elements_do_not_raise():
    broken = PlaywrightError("Element is not attached to the DOM")
    tile = FakeLocator(
        section=PlaywrightError("Execution context was destroyed"),
        children={
            TITLE_SELECTOR: FakeLocator(error=broken),
            DATE_SELECTOR: FakeLocator(text="Mar 4, 2025"),
            LINK_SELECTOR: FakeLocator(error=broken),
            CHECKMARKS_SELECTOR: FakeLocator(text="none"),
        },
    )

    metadata = await extract_metadata(tile)

    assert metadata.title == "Untitled"
    assert metadata.date == "Mar 4, 2025"
    assert metadata.url == ""
    assert metadata.section == ""
    assert metadata.checkmarks == 0


@pytest.mark.asyncio
async def test_blank_title_falls_back_to_untitled():
    tile = FakeLocator(children={TITLE_SELECTOR: FakeLocator(text="   ")})

    metadata = await extract_metadata(tile)

    assert metadata.title == "Untitled"


def test_parse_checkmarks():
    assert parse_checkmarks("12") == 12
    assert parse_checkmarks("✓ 4 items") == 4
    assert parse_checkmarks("") == 0
    assert parse_checkmarks(None) == 0
    assert parse_checkmarks("done") == 0
