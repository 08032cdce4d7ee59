"""
Visibility probes for the screens Google may show during sign-in.

Which screens appear, and in what order, depends on the account's security
settings, so each probe is a short bounded wait that answers yes or no.
"""

from enum import Enum
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import SHORT_TIMEOUT
from .logger import get_logger

logger = get_logger(__name__)

SECURITY_WARNING_SELECTOR = 'text=This browser or app may not be secure'
TRY_AGAIN_SELECTOR = 'button:has-text("Try again")'
PASSKEY_SELECTOR = 'button:has-text("Try another way")'
PASSWORD_OPTION_SELECTOR = 'div:text-is("Enter your password")'
PASSWORD_INPUT_SELECTOR = 'input[type="password"]'
EMAIL_INPUT_SELECTOR = 'input[type="email"]'
NEXT_BUTTON_SELECTOR = 'button[type="button"]:has-text("Next") >> nth=0'

TARGET_DOMAIN = 'fathom.video'
SIGN_IN_PATH = '/users/sign_in'


def is_target_url(url: str) -> bool:
    """True once the browser is back on Fathom past its sign-in page.

    Fathom appearing in a redirect parameter doesn't count, and neither does
    landing back on the sign-in page after a failed OAuth round-trip.
    """
    parsed = urlparse(url)
    host = parsed.hostname or ''
    if host != TARGET_DOMAIN and not host.endswith('.' + TARGET_DOMAIN):
        return False
    return not parsed.path.startswith(SIGN_IN_PATH)


class Screen(Enum):
    """What the sign-in flow is currently showing."""
    SECURITY_WARNING = "security_warning"
    PASSKEY_PROMPT = "passkey_prompt"
    SIGN_IN_OPTIONS = "sign_in_options"
    PASSWORD = "password"
    TARGET_SITE = "target_site"
    UNKNOWN = "unknown"


class ScreenDetector:
    """Probes a live page for sign-in screen markers."""

    def __init__(self, page: Page, timeout: int = SHORT_TIMEOUT):
        self.page = page
        self.timeout = timeout

    async def _visible(self, selector: str) -> bool:
        try:
            await self.page.wait_for_selector(selector, state='visible', timeout=self.timeout)
            return True
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            # Navigation mid-probe destroys the context; the screen isn't there
            logger.debug(f"Probe for {selector} failed: {e}")
            return False

    async def security_warning(self) -> bool:
        return await self._visible(SECURITY_WARNING_SELECTOR)

    async def passkey_prompt(self) -> bool:
        return await self._visible(PASSKEY_SELECTOR)

    async def password_option(self) -> bool:
        return await self._visible(PASSWORD_OPTION_SELECTOR)

    async def password_field(self) -> bool:
        return await self._visible(PASSWORD_INPUT_SELECTOR)

    def on_target_site(self) -> bool:
        return is_target_url(self.page.url)

    async def detect(self) -> Screen:
        """Return the first known screen that is showing, in priority order."""
        if self.on_target_site():
            return Screen.TARGET_SITE
        if await self.security_warning():
            return Screen.SECURITY_WARNING
        if await self.passkey_prompt():
            return Screen.PASSKEY_PROMPT
        if await self.password_option():
            return Screen.SIGN_IN_OPTIONS
        if await self.password_field():
            return Screen.PASSWORD
        return Screen.UNKNOWN
