# thumbnail/fonts.py
import asyncio, logging, os
from urllib.parse import urlsplit

import httpx

from thumbnail.errors import FontLoadError

logger = logging.getLogger(__name__)


class FontStore:
    """Makes the emoji font visible to Chromium's fontconfig.

    The file is fetched at most once per process and kept under
    ``<font_home>/.fonts``; the browser is launched with HOME pointing at
    ``font_home`` so it picks the font up.
    """

    def __init__(self, settings, transport: httpx.AsyncBaseTransport = None):
        self.url = settings.font_url
        self.fonts_dir = settings.fonts_dir
        self.timeout = settings.font_timeout
        self._transport = transport
        self._lock = asyncio.Lock()
        self._loaded = False

    @property
    def path(self) -> str:
        name = os.path.basename(urlsplit(self.url).path) or "font.ttf"
        return os.path.join(self.fonts_dir, name)

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def ensure(self) -> str:
        if self._loaded:
            return self.path
        async with self._lock:
            if self._loaded:
                return self.path
            if not os.path.exists(self.path):
                await self._download()
            self._loaded = True
        return self.path

    async def _download(self):
        logger.info("Downloading font %s", self.url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, transport=self._transport
            ) as client:
                r = await client.get(self.url)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FontLoadError(f"Font download failed: {e.response.status_code} {self.url}") from e
        except httpx.HTTPError as e:
            raise FontLoadError(f"Font download failed: {e}") from e

        await asyncio.to_thread(self._store, r.content)
        logger.info("Font stored at %s (%d bytes)", self.path, len(r.content))

    def _store(self, content: bytes):
        os.makedirs(self.fonts_dir, exist_ok=True)
        tmp_path = f"{self.path}.{os.getpid()}.part"
        try:
            with open(tmp_path, "wb") as f:
                f.write(content)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise FontLoadError(f"Could not store font: {e}") from e
