"""
Thin wrapper over yt-dlp.

Every call here blocks on the network; routes run them through
asyncio.to_thread.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import yt_dlp
from yt_dlp.utils import DownloadError

from .config import Settings
from .utils import watch_url

logger = logging.getLogger(__name__)

AUDIO_FORMAT = "bestaudio"


class ExtractionError(Exception):
    pass


def audio_url_from_info(info: Dict[str, Any]) -> str:
    """Direct media URL for the selected format (first one if several)."""
    url = info.get("url")
    if not url:
        for fmt in info.get("requested_formats") or []:
            if fmt.get("url"):
                url = fmt["url"]
                break
    if not url:
        raise ExtractionError("Could not extract audio URL")
    return url.split("\n")[0]


class MediaExtractor:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _options(self, **extra) -> Dict[str, Any]:
        opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "nocheckcertificate": True,
            "socket_timeout": self.settings.extractor_timeout,
            "http_headers": {"User-Agent": self.settings.user_agent},
        }
        opts.update(extra)
        return opts

    def _extract(self, target: str, **extra) -> Dict[str, Any]:
        logger.info("yt-dlp: %s", target[:60])
        try:
            with yt_dlp.YoutubeDL(self._options(**extra)) as ydl:
                info = ydl.extract_info(target, download=False)
        except DownloadError as e:
            logger.error("yt-dlp error: %s", e)
            raise ExtractionError(str(e)) from e
        if not info:
            raise ExtractionError("No results found")
        return info

    @staticmethod
    def _first_entry(info: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if "entries" not in info:
            return info
        for entry in info.get("entries") or []:
            if entry:
                return entry
        return None

    def search(self, query: str) -> Tuple[Dict[str, Any], str]:
        """Best match for `query` plus its direct audio URL."""
        info = self._first_entry(self._extract(f"ytsearch1:{query}", format=AUDIO_FORMAT))
        if not info:
            raise ExtractionError("No results found")
        return info, audio_url_from_info(info)

    def search_list(self, query: str, count: int) -> List[Dict[str, Any]]:
        """Up to `count` flat search entries (metadata only, no media URLs)."""
        info = self._extract(f"ytsearch{count}:{query}", extract_flat="in_playlist")
        entries = info.get("entries")
        if entries is None:
            return [info]
        return [e for e in entries if e]

    def resolve_video(self, video_id: str) -> Tuple[Dict[str, Any], str]:
        info = self._extract(watch_url(video_id), format=AUDIO_FORMAT)
        return info, audio_url_from_info(info)
