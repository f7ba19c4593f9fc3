"""Cancellation tokens -- one-shot, externally triggerable abort signals.

WHY
───
A delayed run has timers in flight. Cancelling it must stop every future
``ELEMENT_COMPLETED`` / ``COMPLETED`` emission without retracting what
already happened. The strategy observes the token at every scheduling
boundary: before scheduling, inside each timer callback, and through an
``on_trip`` listener that fires the moment the token is tripped.

ARCHITECTURE
────────────
::

    CancellationToken
      ├── .trip(reason)       ─ False -> True exactly once (idempotent)
      ├── .is_tripped()       ─ never reverts once True
      ├── .reason             ─ reason given to the first trip
      └── .on_trip(callback)  ─ returns an unsubscribe callable;
                                fires immediately if already tripped

    cancel_after(token, seconds)  ─ caller-side timeout-then-cancel

BEST PRACTICES
──────────────
- Listeners run synchronously inside ``trip()``; an exception raised by a
  listener propagates to the caller of ``trip()``.
- The token is not thread-safe. From another thread use
  ``loop.call_soon_threadsafe(token.trip)``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from delay_spine.core.logging import get_logger

logger = get_logger(__name__)

TripCallback = Callable[[str], None]


class CancellationToken:
    """Shared abort flag plus listener list.

    Example:
        >>> token = CancellationToken()
        >>> token.trip("user")
        True
        >>> token.trip("again")
        False
        >>> token.reason
        'user'
    """

    def __init__(self) -> None:
        self._aborted = False
        self._reason: str | None = None
        self._listeners: dict[int, TripCallback] = {}
        self._next_listener_id = 0

    def trip(self, reason: str = "cancelled") -> bool:
        """Trip the token and notify listeners.

        Returns:
            True for the call that tripped the token, False for every later
            call (which has no further effect).
        """
        if self._aborted:
            return False
        self._aborted = True
        self._reason = reason

        listeners = list(self._listeners.values())
        self._listeners.clear()
        logger.debug("cancellation.tripped", reason=reason, listeners=len(listeners))
        for callback in listeners:
            callback(reason)
        return True

    def is_tripped(self) -> bool:
        return self._aborted

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> str | None:
        return self._reason

    def on_trip(self, callback: TripCallback) -> Callable[[], None]:
        """Register ``callback`` to be called once with the trip reason.

        Returns:
            A callable that removes the registration; calling it after the
            callback fired is a no-op.
        """
        if self._aborted:
            callback(self._reason or "cancelled")
            return _noop

        listener_id = self._next_listener_id
        self._next_listener_id += 1
        self._listeners[listener_id] = callback

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"CancellationToken(aborted={self._aborted}, reason={self._reason!r})"


def _noop() -> None:
    return None


def cancel_after(
    token: CancellationToken,
    seconds: float,
    reason: str = "timeout",
) -> asyncio.TimerHandle:
    """Trip ``token`` after ``seconds`` on the running event loop.

    Raises:
        ValueError: If ``seconds`` is negative.
    """
    if seconds < 0:
        raise ValueError(f"Timeout must be non-negative, got {seconds}")
    loop = asyncio.get_running_loop()
    return loop.call_later(seconds, token.trip, reason)


__all__ = ["CancellationToken", "TripCallback", "cancel_after"]
