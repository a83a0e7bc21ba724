"""Single entry point for floating visibility.

Hotkey handlers bind to the operations on ``FloatingVisibility``:

* ``show``/``hide`` act once and leave the override alone.
* ``override_on``/``override_off``/``override_toggle`` pin the floating state.
* ``hide_after_timeout`` hides later unless the override is on at that moment;
  a newer call supersedes any pending one.
"""
from __future__ import annotations

import logging

from floating_visibility.backends import FloatingBackend
from floating_visibility.override import OverrideController
from floating_visibility.resettable_timer import ResettableTimer

_LOGGER = logging.getLogger("FloatingVisibility.Facade")


class FloatingVisibility:
    def __init__(self, backend: FloatingBackend) -> None:
        self._backend = backend
        self._override = OverrideController(self._show_once, self._hide_once)
        self._timeout = ResettableTimer(
            self._hide_unless_overridden,
            after=backend.after,
            logger=logging.getLogger("FloatingVisibility.Timer"),
        )

    @property
    def override(self) -> OverrideController:
        return self._override

    @property
    def timeout(self) -> ResettableTimer:
        return self._timeout

    # Immediate show/hide (do not touch the override).

    def show(self) -> None:
        self._show_once()

    def hide(self) -> None:
        self._hide_once()

    # Override API.

    def override_on(self) -> None:
        self._override.set(True)

    def override_off(self) -> None:
        self._override.set(False)

    def override_toggle(self) -> bool:
        """Flip the override; returns the new pinned state."""
        return self._override.toggle()

    def is_overridden(self) -> bool:
        return self._override.get()

    # Timeout helper.

    def hide_after_timeout(self, delay_ms: int) -> int:
        """Hide after ``delay_ms`` unless the override is on when the delay elapses.

        Returns the generation token of this request. Raises ``InvalidDelayError``
        for negative delays.
        """
        return self._timeout.schedule(delay_ms)

    def _hide_unless_overridden(self) -> None:
        if self._override.get():
            _LOGGER.debug("Timeout elapsed while override is on; keeping floating visible")
            return
        self._hide_once()

    def _show_once(self) -> None:
        self._backend.set_visible(True)

    def _hide_once(self) -> None:
        self._backend.set_visible(False)


def create_floating(backend: FloatingBackend) -> FloatingVisibility:
    """Build an independent floating visibility controller for ``backend``."""
    return FloatingVisibility(backend)
