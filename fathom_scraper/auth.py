"""
Fathom login through "Sign in with Google".

Google decides which screens to show based on the account: a security
warning, a passkey prompt, a list of sign-in options, or straight to the
password. The flow is a small state machine; every optional screen is probed
for and only acted on when it is actually showing. Anything unexpected drops
into manual fallback, which leaves the browser alone and waits for a human to
finish signing in.
"""

from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import (DEFAULT_TIMEOUT, MANUAL_LOGIN_TIMEOUT, NAVIGATION_TIMEOUT,
                     SHORT_TIMEOUT, SIGN_IN_URL, Credentials)
from .exceptions import NavigationTimeout
from .logger import get_logger
from .screens import (EMAIL_INPUT_SELECTOR, NEXT_BUTTON_SELECTOR, PASSKEY_SELECTOR,
                      PASSWORD_INPUT_SELECTOR, PASSWORD_OPTION_SELECTOR,
                      TRY_AGAIN_SELECTOR, Screen, ScreenDetector, is_target_url)

logger = get_logger(__name__)

GOOGLE_BUTTON_SELECTOR = 'button >> text=Sign in with Google'
GALLERY_SELECTOR = 'call-gallery'

MAX_SECURITY_RETRIES = 3


class LoginState(Enum):
    SIGN_IN_PAGE = "sign_in_page"
    AWAITING_OAUTH = "awaiting_oauth"
    EMAIL_ENTRY = "email_entry"
    SECURITY_WARNING = "security_warning"
    PASSKEY_PROMPT = "passkey_prompt"
    SIGN_IN_OPTIONS = "sign_in_options"
    PASSWORD_ENTRY = "password_entry"
    AWAITING_HOME = "awaiting_home"
    MANUAL_FALLBACK = "manual_fallback"
    LOGGED_IN = "logged_in"


# States that already wait on the long login ceiling; timing out there is final
WAITING_STATES = (LoginState.AWAITING_HOME, LoginState.MANUAL_FALLBACK)

SCREEN_TO_STATE = {
    Screen.SECURITY_WARNING: LoginState.SECURITY_WARNING,
    Screen.PASSKEY_PROMPT: LoginState.PASSKEY_PROMPT,
    Screen.SIGN_IN_OPTIONS: LoginState.SIGN_IN_OPTIONS,
    Screen.PASSWORD: LoginState.PASSWORD_ENTRY,
    Screen.TARGET_SITE: LoginState.AWAITING_HOME,
    Screen.UNKNOWN: LoginState.MANUAL_FALLBACK,
}


class LoginFlow:
    """Drives one login attempt from the Fathom sign-in page to the home page."""

    def __init__(
        self,
        page: Page,
        credentials: Credentials,
        detector: Optional[ScreenDetector] = None,
        element_timeout: int = DEFAULT_TIMEOUT,
        navigation_timeout: int = NAVIGATION_TIMEOUT,
        manual_timeout: int = MANUAL_LOGIN_TIMEOUT,
        probe_timeout: int = SHORT_TIMEOUT,
    ):
        self.page = page
        self.credentials = credentials
        self.detector = detector or ScreenDetector(page, timeout=probe_timeout)
        self.element_timeout = element_timeout
        self.navigation_timeout = navigation_timeout
        self.manual_timeout = manual_timeout
        self.history: List[LoginState] = []
        self.security_retries = 0
        self._handlers: Dict[LoginState, Callable[[], Awaitable[LoginState]]] = {
            LoginState.SIGN_IN_PAGE: self._open_sign_in,
            LoginState.AWAITING_OAUTH: self._await_oauth,
            LoginState.EMAIL_ENTRY: self._enter_email,
            LoginState.SECURITY_WARNING: self._dismiss_security_warning,
            LoginState.PASSKEY_PROMPT: self._skip_passkey,
            LoginState.SIGN_IN_OPTIONS: self._choose_password,
            LoginState.PASSWORD_ENTRY: self._enter_password,
            LoginState.AWAITING_HOME: self._await_home,
            LoginState.MANUAL_FALLBACK: self._manual_fallback,
        }

    @property
    def used_manual_fallback(self) -> bool:
        return LoginState.MANUAL_FALLBACK in self.history

    async def run(self, start: LoginState = LoginState.SIGN_IN_PAGE) -> LoginState:
        """Run the flow until logged in.

        Raises:
            NavigationTimeout: nobody finished the login within the long timeout
        """
        state = start
        while state is not LoginState.LOGGED_IN:
            self.history.append(state)
            logger.debug(f"Login state: {state.value}")
            try:
                state = await self._handlers[state]()
            except PlaywrightTimeoutError as e:
                if state in WAITING_STATES:
                    raise NavigationTimeout(
                        "Timed out waiting for login to complete",
                        {"state": state.value, "url": self.page.url},
                    ) from e
                logger.warning(f"Step {state.value} timed out, switching to manual login")
                state = LoginState.MANUAL_FALLBACK
            except PlaywrightError as e:
                if state in WAITING_STATES:
                    raise
                logger.warning(f"Step {state.value} failed ({e}), switching to manual login")
                state = LoginState.MANUAL_FALLBACK

        self.history.append(state)
        logger.info("Login and page load successful!")
        return state

    async def _next_screen(self) -> LoginState:
        screen = await self.detector.detect()
        logger.info(f"Detected sign-in screen: {screen.value}")
        return SCREEN_TO_STATE[screen]

    async def _open_sign_in(self) -> LoginState:
        logger.info("Navigating to Fathom login page...")
        await self.page.goto(SIGN_IN_URL, wait_until='networkidle',
                             timeout=self.navigation_timeout)
        await self.page.wait_for_selector(GOOGLE_BUTTON_SELECTOR, timeout=self.element_timeout)
        logger.info("Clicking Sign in with Google button...")
        await self.page.click(GOOGLE_BUTTON_SELECTOR)
        return LoginState.AWAITING_OAUTH

    async def _await_oauth(self) -> LoginState:
        await self.page.wait_for_url(lambda url: 'accounts.google.com' in url,
                                     timeout=self.navigation_timeout)
        return LoginState.EMAIL_ENTRY

    async def _enter_email(self) -> LoginState:
        logger.info("Entering email...")
        await self.page.wait_for_selector(EMAIL_INPUT_SELECTOR, timeout=self.element_timeout)
        await self.page.fill(EMAIL_INPUT_SELECTOR, self.credentials.email)
        await self.page.wait_for_timeout(1000)
        await self.page.click(NEXT_BUTTON_SELECTOR)
        await self._settle()
        return await self._next_screen()

    async def _dismiss_security_warning(self) -> LoginState:
        self.security_retries += 1
        if self.security_retries > MAX_SECURITY_RETRIES:
            logger.warning("Security warning keeps coming back")
            return LoginState.MANUAL_FALLBACK
        logger.info('Security warning detected, clicking "Try again"...')
        await self.page.click(TRY_AGAIN_SELECTOR, timeout=self.element_timeout)
        await self.page.wait_for_timeout(2000)
        return await self._next_screen()

    async def _skip_passkey(self) -> LoginState:
        logger.info('Passkey screen detected, clicking "Try another way"...')
        await self.page.click(PASSKEY_SELECTOR, timeout=self.element_timeout)
        await self.page.wait_for_timeout(2000)
        return LoginState.SIGN_IN_OPTIONS

    async def _choose_password(self) -> LoginState:
        if not await self.detector.password_option():
            logger.warning("Password option not found among sign-in options")
            return LoginState.MANUAL_FALLBACK
        logger.info("Selecting password option...")
        await self.page.click(PASSWORD_OPTION_SELECTOR, timeout=self.element_timeout)
        await self.page.wait_for_timeout(1000)
        return LoginState.PASSWORD_ENTRY

    async def _enter_password(self) -> LoginState:
        logger.info("Entering password...")
        await self.page.wait_for_selector(PASSWORD_INPUT_SELECTOR, state='visible',
                                          timeout=self.element_timeout)
        await self.page.fill(PASSWORD_INPUT_SELECTOR, self.credentials.password)
        await self.page.wait_for_timeout(1000)
        await self.page.click(NEXT_BUTTON_SELECTOR)
        return LoginState.AWAITING_HOME

    async def _await_home(self) -> LoginState:
        logger.info("Waiting for redirect to Fathom...")
        await self.page.wait_for_url(is_target_url, timeout=self.manual_timeout)
        await self._wait_for_gallery()
        return LoginState.LOGGED_IN

    async def _manual_fallback(self) -> LoginState:
        logger.warning("Please complete the sign-in process manually in the browser window.")
        await self.page.wait_for_url(is_target_url, timeout=self.manual_timeout)
        await self._wait_for_gallery()
        return LoginState.LOGGED_IN

    async def _settle(self):
        try:
            await self.page.wait_for_load_state('networkidle', timeout=self.element_timeout)
        except PlaywrightTimeoutError:
            logger.debug("Network did not become idle, continuing")

    async def _wait_for_gallery(self):
        """Give the home page a chance to render its meeting list."""
        await self._settle()
        try:
            await self.page.wait_for_selector(GALLERY_SELECTOR, state='visible',
                                              timeout=self.navigation_timeout)
            logger.info("Call gallery found")
        except PlaywrightTimeoutError:
            logger.warning("Call gallery did not show up after login")
