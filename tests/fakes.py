"""Stand-ins for the parts of the Playwright page API the scraper touches."""

import re
from typing import Callable, Dict, Iterable, List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class FakeLocator:
    def __init__(
        self,
        text: Optional[str] = None,
        attrs: Optional[Dict[str, str]] = None,
        children: Optional[Dict[str, "FakeLocator"]] = None,
        section: Optional[str] = None,
        present: bool = True,
        visible: bool = True,
        on_click: Optional[Callable[[], None]] = None,
        error: Optional[Exception] = None,
    ):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.section = section
        self.present = present
        self.visible = visible
        self.on_click = on_click
        self.error = error
        self.clicks = 0

    @property
    def first(self) -> "FakeLocator":
        return self

    def locator(self, selector: str) -> "FakeLocator":
        return self.children.get(selector, FakeLocator(present=False))

    async def count(self) -> int:
        return 1 if self.present else 0

    async def text_content(self, timeout=None):
        if self.error:
            raise self.error
        return self.text

    async def get_attribute(self, name, timeout=None):
        if self.error:
            raise self.error
        return self.attrs.get(name)

    async def evaluate(self, expression):
        if isinstance(self.section, Exception):
            raise self.section
        return self.section

    async def wait_for(self, state=None, timeout=None):
        if not (self.present and self.visible):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for locator")

    async def click(self, **kwargs):
        if not (self.present and self.visible):
            raise PlaywrightTimeoutError("Timeout exceeded waiting for locator to click")
        self.clicks += 1
        if self.on_click:
            self.on_click()


def granted(text: str) -> dict:
    return {'state': 'granted', 'text': text}


class FakePage:
    def __init__(
        self,
        url: str = "about:blank",
        visible: Iterable[str] = (),
        navigations: Optional[Dict[str, List[str]]] = None,
        redirects: Optional[Dict[str, str]] = None,
        on_click: Optional[Dict[str, Callable[["FakePage"], None]]] = None,
        locators: Optional[Dict[str, FakeLocator]] = None,
        clipboard: Iterable = (),
        eventual_url: Optional[str] = None,
    ):
        self.url = url
        self.visible = set(visible)
        self.navigations = {k: list(v) for k, v in (navigations or {}).items()}
        self.redirects = redirects or {}
        self.on_click = on_click or {}
        self.locators = locators or {}
        self.clipboard = list(clipboard)
        self.eventual_url = eventual_url
        self.clicked: List[str] = []
        self.filled: Dict[str, str] = {}
        self.visited: List[str] = []
        self.evaluations = 0

    async def goto(self, url, **kwargs):
        self.visited.append(url)
        self.url = self.redirects.get(url, url)

    async def wait_for_selector(self, selector, state=None, timeout=None):
        if selector not in self.visible:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return FakeLocator()

    def _matches(self, pattern) -> bool:
        if callable(pattern):
            return bool(pattern(self.url))
        return bool(re.search(pattern, self.url))

    async def wait_for_url(self, pattern, timeout=None):
        if not self._matches(pattern) and self.eventual_url:
            self.url = self.eventual_url
        if not self._matches(pattern):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for URL")

    async def wait_for_load_state(self, state=None, timeout=None):
        pass

    async def wait_for_timeout(self, ms):
        pass

    async def click(self, selector, timeout=None):
        if selector in self.navigations or selector in self.on_click:
            pass
        elif selector not in self.visible:
            raise PlaywrightTimeoutError(f"Timeout exceeded waiting for {selector} to click")
        self.clicked.append(selector)
        if self.navigations.get(selector):
            self.url = self.navigations[selector].pop(0)
        if selector in self.on_click:
            self.on_click[selector](self)

    async def fill(self, selector, value):
        self.filled[selector] = value

    async def evaluate(self, expression):
        self.evaluations += 1
        if not self.clipboard:
            return granted('')
        reply = self.clipboard.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def locator(self, selector):
        return self.locators.get(selector, FakeLocator(present=False))
