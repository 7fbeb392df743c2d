"""Id generators - a strong UUID default and a time-based fallback."""

import itertools
import logging
import os
import random
import string
import time
import uuid

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


class UUIDGenerator:
    """
    Random UUID4 ids.

    Implements IdGenerator protocol. Needs the OS random source.
    """

    def new_id(self) -> str:
        return str(uuid.uuid4())


class TimeRandomGenerator:
    """
    Fallback ids: base-36 epoch milliseconds, a per-session counter and a
    random fragment, e.g. ``lq2k3m1a-1-x8f3k2p9``.

    Implements IdGenerator protocol. Not cryptographically unique, but two
    ids from the same instance never collide.
    """

    def __init__(self, rng: random.Random | None = None, clock=time.time):
        self._rng = rng or random.Random()
        self._clock = clock
        self._counter = itertools.count(1)

    def new_id(self) -> str:
        stamp = _base36(int(self._clock() * 1000))
        fragment = "".join(self._rng.choice(_BASE36) for _ in range(8))
        return f"{stamp}-{_base36(next(self._counter))}-{fragment}"


def has_secure_random() -> bool:
    """Whether the platform can supply OS-level randomness."""
    try:
        os.urandom(16)
    except NotImplementedError:
        return False
    return True


def default_id_generator() -> UUIDGenerator | TimeRandomGenerator:
    """UUIDs when secure randomness is available, time-based ids otherwise."""
    if has_secure_random():
        return UUIDGenerator()
    logger.warning("No secure random source; falling back to time-based ids")
    return TimeRandomGenerator()
