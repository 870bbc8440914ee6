import re
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote, urlparse

_VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def proxy_path(stream_id: str) -> str:
    return f"/proxy/{stream_id}"


def thumbnail_path(url: str) -> str:
    """Route an upstream image through /thumbnail (one fully encoded segment)."""
    return f"/thumbnail/{quote(url, safe='')}" if url else ""


def best_thumbnail(info: Dict[str, Any]) -> Optional[str]:
    """yt-dlp's chosen `thumbnail`, else the last (largest) of `thumbnails`."""
    if info.get("thumbnail"):
        return info["thumbnail"]
    thumbs = info.get("thumbnails") or []
    if thumbs:
        return thumbs[-1].get("url")
    return None


def is_valid_video_id(video_id: str) -> bool:
    return bool(_VIDEO_ID.match(video_id or ""))


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def thumbnail_allowed(url: str, hosts: Iterable[str]) -> bool:
    """http(s) only, and the host must be one of `hosts` or a subdomain of one."""
    try:
        parts = urlparse(url)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return False
    host = parts.hostname.lower()
    return any(host == h or host.endswith("." + h) for h in hosts)
