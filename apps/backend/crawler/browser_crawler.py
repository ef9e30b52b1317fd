"""
Browser session for JavaScript-rendered listing pages, using Playwright.

One BrowserSession owns one Chromium process for the duration of a run. It
navigates to listing pages, waits for the first readiness selector that
shows up, detects access-denial pages and makes a single recovery attempt.
"""
import asyncio
import logging
import hashlib
import random
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, List, Tuple

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from core.errors import NavigationTimeout, SessionError
from core.scrape_config import ScrapeConfig, get_scrape_config
from core.source_config import SourceConfig
from pipeline.snapshot import Snapshot

logger = logging.getLogger(__name__)

USER_AGENTS = [
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36',
]

EXTRA_HEADERS = {
    'Accept-Language': 'en-US,en;q=0.9',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8',
    'Accept-Encoding': 'gzip, deflate, br',
    'Cache-Control': 'max-age=0',
    'Sec-Fetch-Dest': 'document',
    'Sec-Fetch-Mode': 'navigate',
    'Sec-Fetch-Site': 'none',
    'Sec-Fetch-User': '?1',
    'Upgrade-Insecure-Requests': '1',
}

LAUNCH_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-accelerated-2d-canvas',
    '--no-first-run',
    '--no-zygote',
    '--disable-gpu',
    '--disable-blink-features=AutomationControlled',
    '--disable-features=VizDisplayCompositor',
    '--disable-features=ChromeWhatsNewUI',
    '--disable-ipc-flooding-protection',
    '--window-size=1366,768',
]

HIDE_WEBDRIVER_SCRIPT = "Object.defineProperty(navigator, 'webdriver', { get: () => undefined });"

MAX_SCROLL_OFFSET = 500


class SessionState(str, Enum):
    UNINITIALIZED = 'uninitialized'
    READY = 'ready'
    NAVIGATING = 'navigating'
    LOADED = 'loaded'
    BLOCKED = 'blocked'
    RECOVERING = 'recovering'
    FAILED = 'failed'
    CLOSED = 'closed'


class PageStatus(str, Enum):
    LOADED = 'loaded'
    BLOCKED = 'blocked'
    FAILED = 'failed'


@dataclass
class NavigationOutcome:
    """Result of navigating to one listing page"""
    status: PageStatus
    url: str
    snapshot: Optional[Snapshot] = None
    reason: Optional[str] = None
    recovered: bool = False

    @property
    def is_loaded(self) -> bool:
        return self.status == PageStatus.LOADED


class BrowserSession:
    """Headless Chromium session with anti-detection behavior and block recovery"""

    def __init__(self, source: SourceConfig, config: Optional[ScrapeConfig] = None):
        self.source = source
        self.config = config or get_scrape_config()
        self.state = SessionState.UNINITIALIZED
        self.user_agent: Optional[str] = None

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self) -> 'BrowserSession':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def start(self):
        """
        Launch the browser with a randomized user agent and suppressed automation fingerprint.

        Raises:
            SessionError: if the browser cannot be started
        """
        if self.state != SessionState.UNINITIALIZED:
            raise SessionError(f"Session cannot start from state {self.state.value}")

        logger.info("[session] Initializing stealth browser...")
        self.user_agent = random.choice(USER_AGENTS)
        viewport = self.config.viewport

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                args=LAUNCH_ARGS,
            )
            self._context = await self._browser.new_context(
                user_agent=self.user_agent,
                viewport=viewport,
                extra_http_headers=EXTRA_HEADERS,
            )
            await self._context.add_init_script(HIDE_WEBDRIVER_SCRIPT)
            self._page = await self._context.new_page()
        except PlaywrightError as e:
            logger.error(f"[session] Failed to start browser: {e}")
            await self.close()
            raise SessionError(f"Could not start browser session: {e}") from e

        self.state = SessionState.READY
        logger.info(f"[session] Browser ready with UA: {self.user_agent[:50]}...")

    def _require_page(self) -> Page:
        if self._page is None or self.state in (SessionState.UNINITIALIZED, SessionState.CLOSED):
            raise SessionError(f"Session is not ready (state={self.state.value})")
        return self._page

    async def navigate(self, url: str) -> NavigationOutcome:
        """
        Navigate to a listing page and wait until its content is ready.

        Returns:
            NavigationOutcome with a Snapshot when loaded, otherwise a BLOCKED
            or FAILED status and a reason
        """
        page = self._require_page()
        self.state = SessionState.NAVIGATING

        await asyncio.sleep(random.uniform(*self.config.pre_navigation_delay))

        try:
            await self._goto(page, url)
        except NavigationTimeout as e:
            logger.warning(f"[session] {e}")
            self.state = SessionState.FAILED
            return NavigationOutcome(PageStatus.FAILED, url, reason='navigation_timeout')
        except PlaywrightError as e:
            logger.warning(f"[session] Navigation to {url} failed: {e}")
            self.state = SessionState.FAILED
            return NavigationOutcome(PageStatus.FAILED, url, reason='navigation_error')

        logger.debug("[session] Simulating human behavior...")
        await self.simulate_human_behavior()

        selector = await self._wait_for_content(page)
        if selector:
            return await self._loaded(page, url, selector)

        html = await self._page_content(page)
        marker = self.find_block_marker(html)
        if marker:
            logger.warning(f"[session] Access blocked on {url} (marker: {marker!r}) - attempting recovery")
            self.state = SessionState.BLOCKED
            return await self._recover(page, url)

        logger.warning(f"[session] No job selectors found on {url}")
        await self._save_debug_screenshot(page, url)
        self.state = SessionState.FAILED
        return NavigationOutcome(PageStatus.FAILED, url, reason='no_content')

    async def _goto(self, page: Page, url: str):
        timeout = self.config.navigation_timeout_ms
        try:
            await page.goto(url, wait_until='networkidle', timeout=timeout)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(url, timeout) from e

    async def _wait_for_content(self, page: Page) -> Optional[str]:
        """Try readiness selectors in order; return the first that appears."""
        for selector, timeout in self.source.selector_timeouts():
            try:
                await page.wait_for_selector(selector, timeout=timeout)
            except PlaywrightTimeoutError:
                logger.debug(f"[session] Trying next selector after timeout for: {selector}")
                continue
            except PlaywrightError as e:
                logger.debug(f"[session] Selector {selector} failed: {e}")
                continue
            logger.info(f"[session] Page loaded with selector: {selector}")
            return selector
        return None

    async def _loaded(self, page: Page, url: str, selector: str, recovered: bool = False) -> NavigationOutcome:
        html = await self._page_content(page)
        snapshot = Snapshot(url=url, html=html, matched_selector=selector)
        self.state = SessionState.LOADED
        await self.simulate_human_behavior()
        return NavigationOutcome(PageStatus.LOADED, url, snapshot=snapshot, recovered=recovered)

    async def _page_content(self, page: Page) -> str:
        try:
            return await page.content()
        except PlaywrightError as e:
            logger.warning(f"[session] Could not read page content: {e}")
            return ''

    def find_block_marker(self, html: str) -> Optional[str]:
        """Return the first block marker present in the markup, if any."""
        for marker in self.source.block_markers:
            if marker in html:
                return marker
        return None

    async def _recover(self, page: Page, url: str) -> NavigationOutcome:
        """
        Single recovery attempt: longer wait, reload, human behavior, readiness check.
        """
        self.state = SessionState.RECOVERING
        delay = random.uniform(*self.config.recovery_delay)
        logger.info(f"[session] Waiting {delay:.1f}s before reloading {url}")
        await asyncio.sleep(delay)

        try:
            await page.reload(wait_until='networkidle', timeout=self.config.navigation_timeout_ms)
        except PlaywrightError as e:
            logger.warning(f"[session] Reload after block failed: {e}")
            self.state = SessionState.FAILED
            return NavigationOutcome(PageStatus.BLOCKED, url, reason='recovery_failed')

        await self.simulate_human_behavior()

        selector = await self._wait_for_content(page)
        if selector:
            logger.info(f"[session] Recovered from block on {url}")
            return await self._loaded(page, url, selector, recovered=True)

        logger.warning(f"[session] Still no content after reload, abandoning {url}")
        self.state = SessionState.FAILED
        return NavigationOutcome(PageStatus.BLOCKED, url, reason='recovery_failed')

    async def simulate_human_behavior(self):
        """Random pointer move and scroll-then-return. Best effort: errors are ignored."""
        page = self._page
        if page is None:
            return
        viewport = self.config.viewport
        try:
            await page.mouse.move(random.random() * viewport['width'], random.random() * viewport['height'])
            await page.evaluate("offset => window.scrollTo(0, offset)", random.random() * MAX_SCROLL_OFFSET)
            await asyncio.sleep(random.uniform(*self.config.behavior_pause))
            await page.evaluate("() => window.scrollTo(0, 0)")
        except PlaywrightError as e:
            logger.debug(f"[session] Human behavior simulation failed: {e}")

    async def _save_debug_screenshot(self, page: Page, url: str) -> Optional[str]:
        debug_dir = Path(self.config.debug_dir)
        url_hash = hashlib.sha256(url.encode()).hexdigest()[:8]
        path = debug_dir / f"debug-{self.source.source_id}-{url_hash}-{int(time.time())}.png"
        try:
            debug_dir.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path), full_page=True)
            logger.info(f"[session] Screenshot saved: {path}")
            return str(path)
        except (PlaywrightError, OSError) as e:
            logger.debug(f"[session] Failed to capture screenshot: {e}")
            return None

    async def close(self):
        """Tear down page, context, browser and driver. Safe to call repeatedly."""
        if self.state == SessionState.CLOSED:
            return

        page, context, browser, driver = self._page, self._context, self._browser, self._playwright
        self._page = self._context = self._browser = self._playwright = None
        self.state = SessionState.CLOSED

        closers: List[Tuple[str, object]] = [
            ('page', page.close if page else None),
            ('context', context.close if context else None),
            ('browser', browser.close if browser else None),
            ('driver', driver.stop if driver else None),
        ]
        for name, closer in closers:
            if closer is None:
                continue
            try:
                await closer()
            except Exception as e:
                logger.debug(f"[session] Error closing {name}: {e}")

        logger.info("[session] Browser closed")
