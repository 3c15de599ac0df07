# thumbnail/browser.py
import logging, os, time
from contextlib import asynccontextmanager

from playwright.async_api import async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from thumbnail.errors import (
    BrowserLaunchError,
    InvalidTargetError,
    NavigationError,
    NavigationTimeoutError,
    ScreenshotError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def browser_session(settings, playwright_factory=None):
    """Launch one headless Chromium and yield a fresh page.

    The browser is closed on every exit path.
    """
    async with (playwright_factory or async_playwright)() as p:
        try:
            browser = await p.chromium.launch(
                headless=True,
                args=list(settings.chromium_args),
                timeout=settings.launch_timeout * 1000,
                env={**os.environ, "HOME": settings.font_home},
            )
        except PlaywrightError as e:
            raise BrowserLaunchError(f"Could not launch browser: {e.message}") from e
        try:
            page = await browser.new_page(
                viewport={"width": settings.width, "height": settings.height},
                device_scale_factor=1,
            )
            yield page
        finally:
            await browser.close()


async def guard_requests(page, policy, nav_timeout: float) -> list:
    """Run every request the page makes, redirect hops included, past ``policy``.

    Each hop is fetched with redirects disabled and handed back to the page,
    so a redirect comes back through the handler as a new request. Returns
    the list of blocked navigation URLs, filled in as the page loads.
    """
    blocked = []

    async def handler(route):
        request = route.request
        try:
            policy.check(request.url)
        except InvalidTargetError as e:
            logger.warning("Blocked request to %s: %s", request.url, e)
            if request.is_navigation_request():
                blocked.append(request.url)
            await route.abort("blockedbyclient")
            return
        try:
            response = await route.fetch(max_redirects=0, timeout=nav_timeout * 1000)
        except PlaywrightError as e:
            logger.info("Request to %s failed: %s", request.url, e.message)
            await route.abort("failed")
            return
        await route.fulfill(response=response)

    await page.route("**/*", handler)
    return blocked


async def capture(page, url: str, nav_timeout: float, policy) -> bytes:
    blocked = await guard_requests(page, policy, nav_timeout)
    try:
        response = await page.goto(url, timeout=nav_timeout * 1000)
    except PlaywrightTimeoutError as e:
        raise NavigationTimeoutError(f"Navigation to {url} timed out after {nav_timeout:g}s") from e
    except PlaywrightError as e:
        if blocked:
            raise InvalidTargetError(f"Navigation redirected to a disallowed address: {blocked[0]}") from e
        raise NavigationError(f"Navigation to {url} failed: {e.message}") from e
    # None for same-document navigations
    if response is not None and response.status >= 400:
        raise NavigationError(f"Target responded with HTTP {response.status}")

    try:
        return await page.screenshot(type="png", full_page=False)
    except PlaywrightError as e:
        raise ScreenshotError(f"Screenshot failed: {e.message}") from e


async def render(target_url: str, *, settings, fonts, policy, playwright_factory=None) -> bytes:
    """Render ``target_url`` at the configured viewport and return PNG bytes."""
    url = policy.check(target_url)
    await fonts.ensure()

    started = time.monotonic()
    logger.info("Rendering %s", url)
    async with browser_session(settings, playwright_factory) as page:
        img = await capture(page, url, settings.nav_timeout, policy)
    logger.info("Rendered %s in %.2fs (%d bytes)", url, time.monotonic() - started, len(img))
    return img
