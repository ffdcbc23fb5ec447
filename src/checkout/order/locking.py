"""Per-order serialization.

Every write to an order (load, transition, commit) runs while holding that
order's lock, so a provider callback and a seller action on the same order
are applied one after the other. Orders with different ids never contend.
The registry is process-local and only keeps locks somebody is using: an
entry disappears once the last holder or waiter lets go of it.
"""

import threading
import weakref
from contextlib import contextmanager

_registry_lock = threading.Lock()
_order_locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()


def _lock_for(order_id) -> threading.RLock:
    key = str(order_id)
    with _registry_lock:
        lock = _order_locks.get(key)
        if lock is None:
            lock = _order_locks[key] = threading.RLock()
        return lock


@contextmanager
def order_lock(order_id):
    lock = _lock_for(order_id)
    with lock:
        yield


def held_lock_count() -> int:
    """Number of orders whose lock is currently held or awaited."""
    with _registry_lock:
        return len(_order_locks)


def reset_locks() -> None:
    with _registry_lock:
        _order_locks.clear()
