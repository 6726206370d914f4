# backend/app/services/locks.py
"""
Per-(user, symbol) write serialization.

Holdings checks read the ledger and then write to it. Two sells of the same
position running side by side would both see the pre-sale quantity and both
pass. Every mutation of a (user, symbol) pair therefore runs inside
`SymbolLockRegistry.hold(user_id, symbol)`.

The registry is process-local: run a single writer process when several
API workers share one database.

Usage:
    locks = SymbolLockRegistry()

    with locks.hold(user_id, "AAPL"):
        check_holdings()
        persist_trade()
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from app.services.exceptions import TradeLockTimeoutError

logger = logging.getLogger(__name__)

LockKey = tuple[int, str]


class _KeyedLock:
    """A lock plus the number of threads holding or waiting for it."""

    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class SymbolLockRegistry:
    """
    Thread-safe registry of one mutex per (user_id, stock_symbol).

    Entries are created on first use and dropped once no thread holds or
    waits for them, so the registry does not grow with the number of
    symbols ever traded.
    """

    def __init__(self, timeout: float | None = None) -> None:
        """
        Args:
            timeout: Seconds to wait for a busy pair (None waits forever)
        """
        self._timeout = timeout
        self._locks: dict[LockKey, _KeyedLock] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, user_id: int, stock_symbol: str) -> Iterator[None]:
        """
        Hold the lock for one (user, symbol) pair for the duration of the block.

        Raises:
            TradeLockTimeoutError: If the pair stays busy longer than the timeout
        """
        key = (user_id, stock_symbol)
        entry = self._checkout(key)
        try:
            acquired = entry.lock.acquire(timeout=-1 if self._timeout is None else self._timeout)
            if not acquired:
                logger.warning(f"Timed out waiting for trade lock on {key}")
                raise TradeLockTimeoutError(user_id, stock_symbol, self._timeout)
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(key, entry)

    def _checkout(self, key: LockKey) -> _KeyedLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _KeyedLock()
                self._locks[key] = entry
            entry.users += 1
            return entry

    def _checkin(self, key: LockKey, entry: _KeyedLock) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    def __len__(self) -> int:
        """Number of pairs currently held or waited on."""
        with self._guard:
            return len(self._locks)
