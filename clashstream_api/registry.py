import heapq
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .tokens import TokenGenerator

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600.0  # extracted media URLs stay valid for a few hours; 1h is safe


class StreamNotFound(LookupError):
    """Unknown or expired stream id. The two cases are never told apart."""


@dataclass(frozen=True)
class StreamEntry:
    id: str
    upstream_url: str
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


class StreamRegistry:
    """
    In-memory map of stream id -> upstream media URL with a fixed TTL.

    Entries are immutable; the map only ever gains new entries or loses
    expired ones. Expired entries are masked on lookup straight away and
    physically dropped by sweep(), which register() runs after each insert.
    An expiry heap keeps each sweep proportional to what actually expired.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        tokens: Optional[TokenGenerator] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self._tokens = tokens or TokenGenerator(clock=clock)
        self._clock = clock
        self._entries: Dict[str, StreamEntry] = {}
        self._expiry: List[Tuple[float, str]] = []
        self._lock = threading.Lock()

    def register(self, url: str, ttl: Optional[float] = None) -> str:
        now = self._clock()
        with self._lock:
            stream_id = self._tokens.new_token()
            while stream_id in self._entries:
                stream_id = self._tokens.new_token()
            entry = StreamEntry(
                id=stream_id,
                upstream_url=url,
                expires_at=now + (self.ttl if ttl is None else ttl),
            )
            self._entries[stream_id] = entry
            heapq.heappush(self._expiry, (entry.expires_at, stream_id))
            removed = self._sweep_locked(now)
        if removed:
            logger.debug("Evicted %d expired stream(s)", removed)
        return stream_id

    def resolve(self, stream_id: str) -> str:
        with self._lock:
            entry = self._entries.get(stream_id)
        if entry is None or entry.expired(self._clock()):
            raise StreamNotFound(stream_id)
        return entry.upstream_url

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            return self._sweep_locked(now)

    def _sweep_locked(self, now: float) -> int:
        removed = 0
        while self._expiry and self._expiry[0][0] <= now:
            _, stream_id = heapq.heappop(self._expiry)
            if self._entries.pop(stream_id, None) is not None:
                removed += 1
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, stream_id: object) -> bool:
        with self._lock:
            return stream_id in self._entries
