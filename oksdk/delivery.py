"""
Delivery contexts: where continuations run.

The SDK never calls a success continuation on the network completion path
directly; it hands it to the caller's delivery context, which decides which
thread or loop runs it.
"""

from __future__ import annotations

import asyncio
import queue
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from .constants import LOGGER


class DeliveryContext(ABC):
    @abstractmethod
    def deliver(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule ``fn(*args)`` on this context. Must not block."""
        raise NotImplementedError


class InlineDelivery(DeliveryContext):
    """Runs continuations immediately on the completing thread."""

    def deliver(self, fn: Callable[..., Any], *args: Any) -> None:
        fn(*args)


class EventLoopDelivery(DeliveryContext):
    """Posts continuations to an asyncio event loop, from any thread."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def deliver(self, fn: Callable[..., Any], *args: Any) -> None:
        self._loop.call_soon_threadsafe(fn, *args)


class QueueDelivery(DeliveryContext):
    """Channel to an owning thread that drains it with ``run_pending``."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[tuple[Callable[..., Any], tuple[Any, ...]]] = (
            queue.SimpleQueue()
        )

    def deliver(self, fn: Callable[..., Any], *args: Any) -> None:
        self._queue.put((fn, args))

    def run_pending(self, *, block: bool = False, timeout: float | None = None) -> int:
        """Run queued continuations on the calling thread; returns how many ran."""
        ran = 0
        while True:
            try:
                fn, args = self._queue.get(block=block and ran == 0, timeout=timeout)
            except queue.Empty:
                return ran
            fn(*args)
            ran += 1


def invoke(fn: Callable[..., Any], *args: Any) -> None:
    """Call a continuation from SDK-owned code; a raising continuation is logged."""
    try:
        fn(*args)
    except Exception:
        LOGGER.exception("Continuation %s raised", _name(fn))


def deliver(context: DeliveryContext, fn: Callable[..., Any], *args: Any) -> None:
    """Hand a continuation to ``context``; failures raised while doing so are logged."""
    try:
        context.deliver(fn, *args)
    except Exception:
        LOGGER.exception("Continuation %s raised", _name(fn))


def _name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", repr(fn))
