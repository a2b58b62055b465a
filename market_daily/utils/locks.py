from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from django.core.cache import cache

logger = logging.getLogger(__name__)

LOCK_PREFIX = "market_daily:lock:"


@contextmanager
def single_flight(name: str, timeout: int) -> Iterator[bool]:
    """
    Yields True when the caller owns the lock, False when another run holds it.

    ``cache.add`` is atomic on Redis and on the local-memory backend, so two
    workers cannot both acquire the same name.  The timeout bounds a lock
    left behind by a crashed worker.
    """
    key = LOCK_PREFIX + name
    acquired = cache.add(key, "1", timeout)
    if not acquired:
        logger.warning("%s already running, skipping this invocation", name)
    try:
        yield acquired
    finally:
        if acquired:
            cache.delete(key)
