"""
Shared fixtures: a controllable clock, a fake media CDN served through
httpx.MockTransport, and a stand-in for the yt-dlp extractor.
"""

import re

import httpx
import pytest
from fastapi.testclient import TestClient

from clashstream_api.config import Settings
from clashstream_api.extractor import ExtractionError
from clashstream_api.main import create_app
from clashstream_api.registry import StreamRegistry

MEDIA_URL = "https://media.example/videoplayback?id=abc&expire=1"
_RANGE = re.compile(r"^bytes=(\d+)-(\d*)$")


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FlakyStream(httpx.AsyncByteStream):
    """Upstream body that sends `good` chunks, then the connection resets."""

    def __init__(self, good):
        self.good = good

    async def __aiter__(self):
        for chunk in self.good:
            yield chunk
        raise httpx.ReadError("connection reset by peer")


class ChunkedBody(httpx.AsyncByteStream):
    """Upstream body delivered in pieces, the way a socket would."""

    def __init__(self, data: bytes, piece: int = 128):
        self.data = data
        self.piece = piece

    async def __aiter__(self):
        for i in range(0, len(self.data), self.piece):
            yield self.data[i:i + self.piece]


def media_response(status: int, data: bytes = b"", headers=None) -> httpx.Response:
    # content= would be buffered up front and could not be streamed again
    headers = dict(headers or {})
    headers["Content-Length"] = str(len(data))
    return httpx.Response(status, headers=headers, stream=ChunkedBody(data))


class MediaServer:
    """Minimal range-aware media host. Records every request it sees."""

    def __init__(self, payload: bytes = bytes(i % 251 for i in range(500)), content_type: str = "audio/mp4"):
        self.payload = payload
        self.content_type = content_type
        self.requests = []
        self.fail_with = None
        self.respond_with = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if self.respond_with is not None:
            return self.respond_with(request)

        total = len(self.payload)
        m = _RANGE.match(request.headers.get("range", ""))
        if not m or (m.group(1) == "0" and not m.group(2)):
            return media_response(200, self.payload, {"Content-Type": self.content_type})

        start = int(m.group(1))
        end = min(int(m.group(2)) if m.group(2) else total - 1, total - 1)
        if start >= total:
            return media_response(416, headers={"Content-Range": f"bytes */{total}"})
        return media_response(
            206,
            self.payload[start:end + 1],
            {
                "Content-Type": self.content_type,
                "Content-Range": f"bytes {start}-{end}/{total}",
            },
        )


class FakeExtractor:
    def __init__(self):
        self.calls = []
        self.error = None
        self.audio_url = MEDIA_URL
        self.info = {
            "id": "dQw4w9WgXcQ",
            "title": "Never Gonna Give You Up",
            "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
            "duration": 212,
            "channel": "Rick Astley",
            "view_count": 1_500_000_000,
        }
        self.entries = [
            {"id": "a1", "title": "First", "duration": 100, "uploader": "Someone",
             "thumbnails": [{"url": "https://i.ytimg.com/vi/a1/default.jpg"},
                            {"url": "https://i.ytimg.com/vi/a1/hqdefault.jpg"}]},
            {"id": "b2", "title": None, "duration": None},
        ]

    def _check(self):
        if self.error is not None:
            raise ExtractionError(self.error)

    def search(self, query):
        self.calls.append(("search", query))
        self._check()
        return self.info, self.audio_url

    def search_list(self, query, count):
        self.calls.append(("search_list", query, count))
        self._check()
        return self.entries

    def resolve_video(self, video_id):
        self.calls.append(("resolve_video", video_id))
        self._check()
        return self.info, self.audio_url


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return StreamRegistry(ttl=3600, clock=clock)


@pytest.fixture
def media():
    return MediaServer()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def settings():
    return Settings(relay_chunk_size=1024, relay_buffer_chunks=4)


@pytest.fixture
def app(settings, registry, extractor, media):
    return create_app(
        settings,
        registry=registry,
        extractor=extractor,
        transport=httpx.MockTransport(media.handler),
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
