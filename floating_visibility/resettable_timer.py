from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

AfterFn = Callable[[int, Callable[[], None]], object]
ActionFn = Callable[[], None]


class InvalidDelayError(ValueError):
    """Raised when a timeout is scheduled with a negative or non-integer delay."""


class ResettableTimer:
    """Delayed action where only the most recent schedule() call may take effect.

    Every call waits its own full delay. A call whose delay elapses after a newer
    call was issued is superseded and does nothing. This is not a shared
    countdown: two calls that do not overlap both fire.
    """

    def __init__(
        self,
        action: ActionFn,
        *,
        after: AfterFn,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._action = action
        self._after = after
        self._logger = logger or logging.getLogger("FloatingVisibility.Timer")
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._generation

    def schedule(self, delay_ms: int) -> int:
        delay = self._validate_delay(delay_ms)
        with self._lock:
            self._generation += 1
            token = self._generation
        self._logger.debug("Timeout #%d scheduled in %dms", token, delay)
        self._after(delay, lambda: self._on_elapsed(token))
        return token

    def _on_elapsed(self, token: int) -> None:
        if not self.is_current(token):
            self._logger.debug("Timeout #%d superseded; skipping", token)
            return
        # The action runs outside the lock: a schedule() landing after the check
        # above does not stop it. Only calls issued before the delay elapsed do.
        try:
            self._action()
        except Exception:
            self._logger.warning("Timeout #%d action failed; dropping", token, exc_info=True)

    @staticmethod
    def _validate_delay(delay_ms: object) -> int:
        if isinstance(delay_ms, bool) or not isinstance(delay_ms, int):
            raise InvalidDelayError(f"delay_ms must be an integer, got {delay_ms!r}")
        if delay_ms < 0:
            raise InvalidDelayError(f"delay_ms must be >= 0, got {delay_ms}")
        return delay_ms
