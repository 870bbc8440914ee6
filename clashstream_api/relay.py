"""
Byte-range relay between an upstream media URL and a client response.

A pump task owns the upstream response: it reports status and headers once,
then copies raw body chunks into a bounded queue. The client side drains the
queue in order. A full queue stalls the pump, so upstream is never read more
than `buffer_chunks` ahead of the client. Cancelling the pump closes the
upstream connection; RelayResponse does that whenever the client side ends,
whether the body completed, failed, or the client went away.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Mapping, Optional

import httpx
from fastapi.responses import StreamingResponse

logger = logging.getLogger(__name__)

FORWARDED_HEADERS = ("Content-Type", "Content-Length", "Content-Range")
DEFAULT_MEDIA_TYPE = "audio/webm"

_EOF = object()


class UpstreamTransportError(Exception):
    """Upstream could not be reached or dropped before sending headers."""


@dataclass
class UpstreamHead:
    status_code: int
    headers: httpx.Headers


def upstream_headers(user_agent: str, client_range: Optional[str]) -> Dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Range": client_range or "bytes=0-",
        # relayed bytes must match the forwarded Content-Length
        "Accept-Encoding": "identity",
    }


class StreamRelay:
    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        headers: Mapping[str, str],
        buffer_chunks: int = 8,
        chunk_size: int = 64 * 1024,
    ):
        self._client = client
        self._url = url
        self._headers = dict(headers)
        self._chunk_size = chunk_size
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, buffer_chunks))
        self._head: Optional[asyncio.Future] = None
        self._task: Optional[asyncio.Task] = None
        self.bytes_relayed = 0
        self.drained = False

    async def start(self) -> UpstreamHead:
        """Open the upstream request; returns once its headers arrived."""
        self._head = asyncio.get_running_loop().create_future()
        self._task = asyncio.create_task(self._pump())
        try:
            return await self._head
        except BaseException:
            self.cancel()
            raise

    async def _pump(self) -> None:
        try:
            async with self._client.stream("GET", self._url, headers=self._headers) as resp:
                if not self._head.done():
                    self._head.set_result(UpstreamHead(resp.status_code, resp.headers))
                async for chunk in resp.aiter_raw(self._chunk_size):
                    if chunk:
                        await self._queue.put(chunk)
        except Exception as e:
            if not self._head.done():
                self._head.set_exception(UpstreamTransportError(str(e) or type(e).__name__))
                return
            # status is already committed; ending the body is all that is left
            logger.warning("Upstream dropped mid-stream after %d bytes: %r", self.bytes_relayed, e)
        await self._queue.put(_EOF)

    async def body(self) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await self._queue.get()
                if chunk is _EOF:
                    self.drained = True
                    break
                self.bytes_relayed += len(chunk)
                yield chunk
        finally:
            self.cancel()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    @property
    def closed(self) -> bool:
        return self._task is None or self._task.done()


class RelayResponse(StreamingResponse):
    """StreamingResponse that mirrors the upstream head and always stops the pump."""

    def __init__(self, relay: StreamRelay, head: UpstreamHead):
        headers = {}
        for k in FORWARDED_HEADERS:
            v = head.headers.get(k)
            if v:
                headers[k] = v
        headers.setdefault("Content-Type", DEFAULT_MEDIA_TYPE)
        headers["Accept-Ranges"] = "bytes"
        headers["Cache-Control"] = "no-cache"
        super().__init__(relay.body(), status_code=head.status_code, headers=headers)
        self.relay = relay

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.relay.cancel()
            if not self.relay.drained:
                logger.debug("Client went away after %d bytes", self.relay.bytes_relayed)
