# tests/conftest.py
import struct, zlib
from contextlib import asynccontextmanager

import pytest
from playwright.async_api import Error as PlaywrightError

from thumbnail.config import Settings
from thumbnail.policy import UrlPolicy

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def make_png(width: int, height: int) -> bytes:
    """Header-only PNG, enough for signature and size checks."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0)
    chunk = b"IHDR" + ihdr
    return PNG_SIGNATURE + struct.pack(">I", len(ihdr)) + chunk + struct.pack(">I", zlib.crc32(chunk))


def png_size(data: bytes):
    return struct.unpack(">II", data[16:24])


class FakeResponse:
    def __init__(self, status=200):
        self.status = status


class FakeRequest:
    def __init__(self, url, navigation=True):
        self.url = url
        self.navigation = navigation

    def is_navigation_request(self):
        return self.navigation


class FakeRoute:
    def __init__(self, url, navigation=True, fetch_error=None):
        self.request = FakeRequest(url, navigation)
        self.fetch_error = fetch_error
        self.outcome = None

    async def fetch(self, max_redirects=None, timeout=None):
        self.fetch_kwargs = {"max_redirects": max_redirects, "timeout": timeout}
        if self.fetch_error:
            raise self.fetch_error
        return FakeResponse(200)

    async def fulfill(self, response=None):
        self.outcome = "fulfilled"

    async def abort(self, error_code=None):
        self.outcome = error_code or "aborted"


class FakePage:
    """Navigation walks ``redirects`` hop by hop through the routed handler,
    then loads ``subresources``, the way Chromium re-issues a redirected request."""

    def __init__(self, browser, viewport, goto_error=None, status=200, screenshot_error=None,
                 redirects=(), subresources=(), fetch_error=None):
        self.browser = browser
        self.viewport = viewport
        self.goto_error = goto_error
        self.status = status
        self.screenshot_error = screenshot_error
        self.redirects = list(redirects)
        self.subresources = list(subresources)
        self.fetch_error = fetch_error
        self.handler = None
        self.routes = []
        self.visited = []

    async def route(self, pattern, handler):
        self.route_pattern = pattern
        self.handler = handler

    async def _request(self, url, navigation):
        route = FakeRoute(url, navigation, self.fetch_error)
        self.routes.append(route)
        if self.handler:
            await self.handler(route)
        return route

    async def goto(self, url, timeout=None):
        self.visited.append((url, timeout))
        if self.goto_error:
            raise self.goto_error
        for hop in [url] + self.redirects:
            route = await self._request(hop, navigation=True)
            if route.outcome != "fulfilled":
                raise PlaywrightError(f"net::ERR_FAILED at {hop}")
        for sub in self.subresources:
            await self._request(sub, navigation=False)
        return FakeResponse(self.status)

    async def screenshot(self, type="png", full_page=False):
        if self.screenshot_error:
            raise self.screenshot_error
        return make_png(self.viewport["width"], self.viewport["height"])


class FakeBrowser:
    def __init__(self, **page_opts):
        self.page_opts = page_opts
        self.pages = []
        self.closed = False

    async def new_page(self, viewport=None, device_scale_factor=None):
        page = FakePage(self, viewport, **self.page_opts)
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, launch_error=None, **page_opts):
        self.launch_error = launch_error
        self.page_opts = page_opts
        self.launches = []
        self.browsers = []

    async def launch(self, **kwargs):
        self.launches.append(kwargs)
        if self.launch_error:
            raise self.launch_error
        browser = FakeBrowser(**self.page_opts)
        self.browsers.append(browser)
        return browser


class FakePlaywright:
    """Stands in for ``async_playwright``; call it to get the context manager."""

    def __init__(self, **opts):
        self.chromium = FakeChromium(**opts)

    @asynccontextmanager
    async def _session(self):
        yield self

    def __call__(self):
        return self._session()

    @property
    def browsers(self):
        return self.chromium.browsers


class FakeFonts:
    def __init__(self, error=None):
        self.error = error
        self.calls = 0

    async def ensure(self):
        self.calls += 1
        if self.error:
            raise self.error
        return "/tmp/.fonts/NotoColorEmoji.ttf"


@pytest.fixture
def settings(tmp_path):
    return Settings(font_home=str(tmp_path))


@pytest.fixture
def policy():
    return UrlPolicy()


@pytest.fixture
def fonts():
    return FakeFonts()
