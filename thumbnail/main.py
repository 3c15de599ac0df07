# thumbnail/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from thumbnail.browser import render
from thumbnail.config import Settings
from thumbnail.errors import RenderError
from thumbnail.fonts import FontStore
from thumbnail.policy import UrlPolicy

settings = Settings.from_env()

logging.basicConfig(level=settings.log_level, format="%(levelname)s  %(name)s  %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # process-wide state, shared by every request
    app.state.settings = settings
    app.state.fonts = FontStore(settings)
    app.state.policy = UrlPolicy.from_settings(settings)
    yield


app = FastAPI(title="Thumbnail Renderer", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=list(settings.cors_origins), allow_methods=["GET"], allow_headers=["*"])

NO_STORE = {"Cache-Control": "no-store"}


@app.get("/healthz")
def health():
    return {"status": "ok"}


@app.get("/api/thumbnail")
async def thumbnail(request: Request, path: str = Query("", description="URL of the page to render")):
    state = request.app.state
    try:
        img = await render(
            path,
            settings=state.settings,
            fonts=state.fonts,
            policy=state.policy,
        )
    except RenderError as e:
        logger.warning("Render failed for %r: %s", path, e)
        return JSONResponse({"error": str(e)}, status_code=e.status_code, headers=NO_STORE)
    except Exception:
        logger.exception("Unexpected error rendering %r", path)
        return JSONResponse({"error": "Internal error"}, status_code=500, headers=NO_STORE)

    return Response(
        content=img,
        media_type="image/png",
        headers={"Cache-Control": state.settings.cache_control},
    )
