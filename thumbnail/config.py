# thumbnail/config.py
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

EMOJI_FONT_URL = "https://raw.githack.com/googlei18n/noto-emoji/master/fonts/NotoColorEmoji.ttf"

# Chromium flags for serverless hosts (no /dev/shm, no sandbox, no GPU)
DEFAULT_CHROMIUM_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-zygote",
    "--single-process",
    "--hide-scrollbars",
    "--font-render-hinting=none",
)


def _getenv_bool(name: str, default: bool) -> bool:
    v = os.getenv(name, str(default)).strip().lower()
    return v in ("1", "true", "yes", "y", "on")


def _getenv_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return float(v)


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return int(v)


def _getenv_list(name: str, default: tuple) -> tuple:
    v = os.getenv(name)
    if v is None:
        return default
    return tuple(item.strip() for item in v.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    # font
    font_url: str = EMOJI_FONT_URL
    font_home: str = "/tmp"
    font_timeout: float = 20.0

    # browser
    launch_timeout: float = 30.0
    nav_timeout: float = 15.0
    width: int = 700
    height: int = 430
    chromium_args: tuple = DEFAULT_CHROMIUM_ARGS

    # url policy
    allowed_hosts: tuple = ()
    allow_private: bool = False

    # http
    cors_origins: tuple = ("*",)
    cache_control: str = "s-maxage=31536000, stale-while-revalidate"
    log_level: str = "INFO"

    @property
    def fonts_dir(self) -> str:
        return os.path.join(self.font_home, ".fonts")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            font_url=os.getenv("THUMBNAIL_FONT_URL") or EMOJI_FONT_URL,
            font_home=os.getenv("THUMBNAIL_FONT_HOME") or "/tmp",
            font_timeout=_getenv_float("THUMBNAIL_FONT_TIMEOUT", 20.0),
            launch_timeout=_getenv_float("THUMBNAIL_LAUNCH_TIMEOUT", 30.0),
            nav_timeout=_getenv_float("THUMBNAIL_NAV_TIMEOUT", 15.0),
            width=_getenv_int("THUMBNAIL_WIDTH", 700),
            height=_getenv_int("THUMBNAIL_HEIGHT", 430),
            chromium_args=_getenv_list("THUMBNAIL_CHROMIUM_ARGS", DEFAULT_CHROMIUM_ARGS),
            allowed_hosts=_getenv_list("THUMBNAIL_ALLOWED_HOSTS", ()),
            allow_private=_getenv_bool("THUMBNAIL_ALLOW_PRIVATE", False),
            cors_origins=_getenv_list("THUMBNAIL_CORS_ORIGINS", ("*",)),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )
