from __future__ import annotations

import logging
import threading
from typing import Callable

_LOGGER = logging.getLogger("FloatingVisibility.Override")

ActionFn = Callable[[], None]


class OverrideController:
    """Persistent pinned-visibility intent with a one-time reset on first use.

    The window system's prior state is unknown when the controller takes over,
    so the first mutating call always hides once before honouring the request.
    Nothing happens at construction time.
    """

    def __init__(self, action_enable: ActionFn, action_disable: ActionFn) -> None:
        self._action_enable = action_enable
        self._action_disable = action_disable
        self._active = False
        self._initialized = False
        # Reentrant: toggle() holds it while delegating to set().
        self._lock = threading.RLock()

    @property
    def active(self) -> bool:
        return self._active

    @property
    def initialized(self) -> bool:
        return self._initialized

    def get(self) -> bool:
        with self._lock:
            return self._active

    def set(self, value: bool) -> None:
        value = bool(value)
        with self._lock:
            self._reset_once()
            self._active = value
            _LOGGER.debug("Floating override set to %s", "on" if value else "off")
            if value:
                self._action_enable()
            else:
                self._action_disable()

    def toggle(self) -> bool:
        with self._lock:
            self.set(not self._active)
            return self._active

    def _reset_once(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        self._active = False
        _LOGGER.debug("First override change; forcing floating hidden baseline")
        self._action_disable()
