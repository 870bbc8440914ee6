import secrets
import time
from typing import Callable

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(n: int) -> str:
    if n < 0:
        raise ValueError("base36 needs a non-negative integer")
    if n == 0:
        return "0"
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_BASE36[r])
    return "".join(reversed(digits))


class TokenGenerator:
    """
    Stream id source: base-36 millisecond clock + url-safe random bytes.
    The clock prefix keeps ids roughly sortable; uniqueness comes from the
    random part (random_bytes * 8 bits from the OS CSPRNG).
    """

    def __init__(self, random_bytes: int = 12, clock: Callable[[], float] = time.time):
        if random_bytes < 8:
            raise ValueError("random_bytes must be >= 8")
        self.random_bytes = random_bytes
        self._clock = clock

    @property
    def entropy_bits(self) -> int:
        return self.random_bytes * 8

    def new_token(self) -> str:
        stamp = to_base36(int(self._clock() * 1000))
        return f"{stamp}{secrets.token_urlsafe(self.random_bytes)}"
