"""Per-folder and per-name mutual exclusion within one process."""

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from typing import final


@final
class FolderLockRegistry:
    """Hands out one lock per key.

    Keys are folder ids, or ``name_lock_key`` tuples for a folder name
    that is about to be taken. Operations on the same key wait for each
    other; operations on different keys never do. Entries are dropped
    once nobody holds or waits for them, so the registry does not grow
    with the catalog.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock of ``key`` for the duration of the block.

        Args:
            key: Folder id or name key to serialize on.

        Yields:
            Nothing; the lock is held inside the block.
        """
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1

        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]

    def is_locked(self, key: Hashable) -> bool:
        """Check whether an operation currently holds a key.

        Args:
            key: Folder id or name key to check.

        Returns:
            True if the lock is taken.
        """
        with self._guard:
            lock = self._locks.get(key)
            return lock is not None and lock.locked()


#: Registry shared by every lifecycle manager in the process.
folder_locks = FolderLockRegistry()


def name_lock_key(owner_id: int, name: str) -> tuple[str, int, str]:
    """Lock key for an owner's folder name.

    Args:
        owner_id: Folder owner.
        name: Validated folder name.

    Returns:
        Key that never collides with a folder id.
    """
    return ('name', owner_id, name)
