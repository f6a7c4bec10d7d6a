"""Per-basket exclusive scopes.

Operations on the same basket id are serialized; operations on different
basket ids never wait on each other. Lock slots are reference counted and
dropped once no thread holds or waits for them.
"""

import threading
from contextlib import contextmanager


class _Slot:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0


class BasketLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._slots: dict[str, _Slot] = {}

    @contextmanager
    def hold(self, basket_id: str):
        with self._guard:
            slot = self._slots.get(basket_id)
            if slot is None:
                slot = self._slots[basket_id] = _Slot()
            slot.holders += 1

        slot.lock.acquire()
        try:
            yield
        finally:
            slot.lock.release()
            with self._guard:
                slot.holders -= 1
                if slot.holders == 0:
                    del self._slots[basket_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._slots)
