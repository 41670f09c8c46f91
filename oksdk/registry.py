from __future__ import annotations

import threading
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from .delivery import DeliveryContext

ErrorCallback = Callable[[Exception], Any]


@dataclass(frozen=True)
class Callback:
    on_success: Callable[..., Any] | None
    on_error: ErrorCallback | None
    context: DeliveryContext | None


class PendingCallRegistry:
    """Maps in-flight request handles to their callbacks.

    A single lock serializes every operation; completions may arrive on any
    thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: dict[Hashable, Callback] = {}

    def add(self, handle: Hashable, callback: Callback) -> None:
        with self._lock:
            if handle in self._calls:
                raise KeyError(f"Request handle already registered: {handle!r}")
            self._calls[handle] = callback

    def get(self, handle: Hashable) -> Callback:
        with self._lock:
            return self._calls[handle]

    def remove(self, handle: Hashable) -> bool:
        with self._lock:
            return self._calls.pop(handle, None) is not None

    def pop(self, handle: Hashable) -> Callback:
        with self._lock:
            return self._calls.pop(handle)

    def __len__(self) -> int:
        with self._lock:
            return len(self._calls)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._calls
