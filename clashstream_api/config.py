# config.py
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

APP_NAME = "ClashStream"
APP_VERSION = "0.2"

# yt-dlp, the media CDN and the thumbnail host all reject obvious non-browser clients
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_THUMBNAIL_HOSTS = ("ytimg.com", "ggpht.com", "googleusercontent.com")


def _optional_int(value: Optional[str]) -> Optional[int]:
    return int(value) if value and value.strip() else None


def _csv(value: str) -> Tuple[str, ...]:
    return tuple(p.strip().lower() for p in value.split(",") if p.strip())


@dataclass
class Settings:
    """Runtime settings, read from the environment (or a .env file)."""

    host: str = "0.0.0.0"
    port: int = 3000
    stream_ttl: float = 3600.0
    user_agent: str = BROWSER_USER_AGENT
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    # None: no cap. A paused listener keeps its upstream connection checked out.
    max_connections: Optional[int] = None
    relay_chunk_size: int = 64 * 1024
    relay_buffer_chunks: int = 8
    extractor_timeout: float = 60.0
    max_search_results: int = 25
    thumbnail_hosts: Tuple[str, ...] = field(default=DEFAULT_THUMBNAIL_HOSTS)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            stream_ttl=float(os.getenv("STREAM_TTL", "3600")),
            user_agent=os.getenv("UPSTREAM_USER_AGENT", BROWSER_USER_AGENT),
            connect_timeout=float(os.getenv("UPSTREAM_CONNECT_TIMEOUT", "10")),
            read_timeout=float(os.getenv("UPSTREAM_READ_TIMEOUT", "60")),
            max_connections=_optional_int(os.getenv("UPSTREAM_MAX_CONNECTIONS")),
            relay_chunk_size=int(os.getenv("RELAY_CHUNK_SIZE", str(64 * 1024))),
            relay_buffer_chunks=int(os.getenv("RELAY_BUFFER_CHUNKS", "8")),
            extractor_timeout=float(os.getenv("EXTRACTOR_TIMEOUT", "60")),
            max_search_results=int(os.getenv("MAX_SEARCH_RESULTS", "25")),
            thumbnail_hosts=_csv(os.getenv("THUMBNAIL_HOSTS", ",".join(DEFAULT_THUMBNAIL_HOSTS))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
