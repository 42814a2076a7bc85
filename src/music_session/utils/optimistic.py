"""
Optimistic state updates with commit/rollback.

apply() snapshots the current value and installs a speculative one right
away; the returned transaction later either commits the authoritative value
or rolls back. A rollback restores the snapshot only while nothing else has
changed the value since; otherwise the transaction's revert function undoes
just its own change on top of the current value.
"""

import threading
from typing import Callable, Generic, List, Optional, TypeVar

from loguru import logger

T = TypeVar("T")


class OptimisticTransaction(Generic[T]):
    """A pending speculative change to an OptimisticValue."""

    def __init__(
        self,
        owner: "OptimisticValue[T]",
        snapshot: T,
        epoch: int,
        revision: int,
        revert: Optional[Callable[[T, T], T]] = None,
    ) -> None:
        self._owner = owner
        self.snapshot = snapshot
        self.epoch = epoch
        self.revision = revision  # Owner revision right after this change was applied
        self.revert = revert
        self.settled = False

    def commit(self, value: T) -> bool:
        """Install the authoritative value. Returns False if the owner was reset."""
        return self._owner._settle(self, lambda current: value)

    def rollback(self) -> bool:
        """Undo this change. Returns False if the owner was reset."""
        return self._owner._settle(self, self._rolled_back)

    def _rolled_back(self, current: T) -> T:
        if self.revert is None or self._owner._revision == self.revision:
            return self.snapshot
        return self.revert(current, self.snapshot)


class OptimisticValue(Generic[T]):
    """Holds a value that is mutated speculatively ahead of a remote call."""

    def __init__(self, initial: T) -> None:
        self._initial = initial
        self._value = initial
        self._epoch = 0
        self._revision = 0
        self._lock = threading.RLock()
        self._listeners: List[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def add_listener(self, callback: Callable[[T], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[T], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def apply(
        self,
        mutate: Callable[[T], T],
        revert: Optional[Callable[[T, T], T]] = None,
    ) -> OptimisticTransaction[T]:
        """Snapshot the value and install mutate(value) immediately.

        Args:
            mutate: Computes the speculative value from the current one
            revert: revert(current, snapshot) undoes only this change; used on
                rollback when the value moved on after apply()
        """
        with self._lock:
            snapshot = self._value
            self._value = mutate(snapshot)
            self._revision += 1
            transaction = OptimisticTransaction(
                self, snapshot, self._epoch, self._revision, revert
            )
            value = self._value
        self._notify(value)
        return transaction

    def set(self, value: T) -> None:
        """Replace the value outside any transaction (e.g. server reconciliation)."""
        with self._lock:
            self._value = value
            self._revision += 1
        self._notify(value)

    def reset(self, value: Optional[T] = None) -> None:
        """Drop the value and invalidate every pending transaction."""
        with self._lock:
            self._epoch += 1
            self._revision += 1
            self._value = self._initial if value is None else value
            value = self._value
        self._notify(value)

    def _settle(
        self, transaction: OptimisticTransaction[T], resolve: Callable[[T], T]
    ) -> bool:
        with self._lock:
            if transaction.settled:
                return False
            transaction.settled = True
            if transaction.epoch != self._epoch:
                logger.debug("Ignoring transaction result from before reset")
                return False
            self._value = resolve(self._value)
            self._revision += 1
            value = self._value
        self._notify(value)
        return True

    def _notify(self, value: T) -> None:
        for callback in list(self._listeners):
            try:
                callback(value)
            except Exception as exc:
                logger.error(f"Listener error: {exc}")
