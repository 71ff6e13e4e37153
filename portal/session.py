"""Browser session for the Fetch Pet portal: one context, one page, one login."""

import logging

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from . import selectors as sel
from .errors import BrowserNotInitializedError, LoginError
from .models import FetchPetConfig

logger = logging.getLogger(__name__)

# How long to wait for a post-login signal before checking the page by hand
_LOGIN_SUCCESS_TIMEOUT_MS = 30_000

# Re-evaluated by Playwright after every navigation, so a full-page redirect
# away from the login form is picked up even if the new page never goes idle.
_LOGIN_SUCCESS_JS = """
([markers, navSelector]) => {
    const href = window.location.href.toLowerCase();
    const leftLogin = !markers.some((marker) => href.includes(marker));
    return leftLogin || document.querySelector(navSelector) !== null;
}
"""

_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


class PortalSession:
    """Owns the Playwright browser and the single page every portal operation shares.

    Not safe for concurrent callers: operations must be awaited one at a time.
    """

    def __init__(self, config: FetchPetConfig, page: Page | None = None) -> None:
        self.config = config
        self.authenticated = False
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        # A caller-supplied page skips the browser launch.
        self._page: Page | None = page

    @property
    def page(self) -> Page:
        if self._page is None:
            raise BrowserNotInitializedError()
        return self._page

    async def initialize(self) -> None:
        """Launch the browser and log in. A no-op once authenticated."""
        if self.authenticated:
            return
        if self._page is None:
            await self._launch()
        await self._login(self.page)
        self.authenticated = True
        logger.info("Logged in to %s", self.config.base_url)

    async def _launch(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=["--disable-dev-shm-usage", "--no-sandbox"],
        )
        self._context = await self._browser.new_context(
            viewport={"width": 1920, "height": 1080},
            user_agent=_USER_AGENT,
            accept_downloads=True,
        )
        self._page = await self._context.new_page()
        self._page.set_default_timeout(self.config.timeout_ms)

    async def _login(self, page: Page) -> None:
        await page.goto(self.config.base_url, wait_until="domcontentloaded")
        try:
            await page.wait_for_load_state("networkidle", timeout=10_000)
        except PlaywrightTimeoutError:
            logger.debug("Login page did not reach network idle; continuing")

        email_input = await sel.first_match(page, sel.EMAIL_INPUT)
        if email_input is None:
            raise LoginError(f"Login failed: could not find the email field on {page.url}")
        await email_input.fill(self.config.username)

        password_input = await sel.first_match(page, sel.PASSWORD_INPUT)
        if password_input is None:
            raise LoginError(f"Login failed: could not find the password field on {page.url}")
        await password_input.fill(self.config.password)

        sign_in = await sel.first_match(page, sel.SIGN_IN_BUTTON)
        if sign_in is None:
            raise LoginError("Login failed: could not find the sign in button")
        await sign_in.click()

        try:
            await page.wait_for_function(
                _LOGIN_SUCCESS_JS,
                arg=[list(sel.LOGIN_URL_MARKERS), sel.POST_LOGIN_NAV],
                timeout=_LOGIN_SUCCESS_TIMEOUT_MS,
                polling=500,
            )
        except PlaywrightTimeoutError:
            logger.info("No post-login signal within %sms; checking page state", _LOGIN_SUCCESS_TIMEOUT_MS)

        current_url = page.url.lower()
        if any(marker in current_url for marker in sel.LOGIN_URL_MARKERS):
            error_element = await sel.first_match(page, sel.LOGIN_ERROR)
            if error_element is not None:
                error_text = await sel.text_of(error_element)
                raise LoginError(f"Login failed: {error_text or 'Invalid credentials'}")
            raise LoginError("Login failed - still on login page. Check your credentials.")

    async def get_current_url(self) -> str:
        return self.page.url

    async def close(self) -> None:
        """Release the browser and reset the authenticated state."""
        try:
            if self._browser is not None:
                await self._browser.close()
            if self._playwright is not None:
                await self._playwright.stop()
        finally:
            self._playwright = None
            self._browser = None
            self._context = None
            self._page = None
            self.authenticated = False
