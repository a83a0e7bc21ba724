"""Injected capabilities for the floating visibility core.

The core only needs two things from the outside world: a way to show or hide
the floating surface, and a way to run a callback later. Backends keep Qt and
threading details out of the state machine; callers pick one that matches the
event model of their host application.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable, Optional, Protocol, Set

_LOGGER = logging.getLogger("FloatingVisibility.Backend")

SetVisibleFn = Callable[[bool], None]
SleepFn = Callable[[float], None]

BACKEND_KINDS = ("blocking", "thread", "qt")


class FloatingBackend(Protocol):
    def set_visible(self, visible: bool) -> None:
        """Show (True) or hide (False) the floating surface. Must be idempotent."""

    def after(self, delay_ms: int, callback: Callable[[], None]) -> object:
        """Run ``callback`` roughly ``delay_ms`` milliseconds from now."""


class BlockingBackend:
    """Suspends the calling flow for the delay, then runs the callback inline."""

    def __init__(self, set_visible_fn: SetVisibleFn, *, sleep: SleepFn = time.sleep) -> None:
        self._set_visible = set_visible_fn
        self._sleep = sleep

    def set_visible(self, visible: bool) -> None:
        self._set_visible(visible)

    def after(self, delay_ms: int, callback: Callable[[], None]) -> object:
        # sleep(0) still yields, so a zero delay is a real suspension point.
        self._sleep(max(0, delay_ms) / 1000.0)
        callback()
        return None


class ThreadedBackend:
    """Runs delayed callbacks on daemon ``threading.Timer`` threads."""

    def __init__(self, set_visible_fn: SetVisibleFn) -> None:
        self._set_visible = set_visible_fn
        self._timers: Set[threading.Timer] = set()
        self._timer_lock = threading.Lock()

    def set_visible(self, visible: bool) -> None:
        self._set_visible(visible)

    def after(self, delay_ms: int, callback: Callable[[], None]) -> threading.Timer:
        timer_ref: Optional[threading.Timer] = None

        def _callback() -> None:
            try:
                callback()
            finally:
                if timer_ref is not None:
                    with self._timer_lock:
                        self._timers.discard(timer_ref)

        timer_ref = threading.Timer(max(0, delay_ms) / 1000.0, _callback)
        timer_ref.daemon = True
        with self._timer_lock:
            self._timers.add(timer_ref)
        try:
            timer_ref.start()
        except Exception:
            with self._timer_lock:
                self._timers.discard(timer_ref)
            raise
        return timer_ref

    @property
    def pending(self) -> int:
        with self._timer_lock:
            return len(self._timers)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for every timer started so far to finish."""
        with self._timer_lock:
            active = list(self._timers)
        for timer in active:
            timer.join(timeout)

    def shutdown(self) -> None:
        with self._timer_lock:
            active = list(self._timers)
            self._timers.clear()
        for timer in active:
            try:
                timer.cancel()
            except Exception as exc:
                _LOGGER.warning("Failed to cancel floating timeout timer: %s", exc)


class QtWidgetBackend:
    """Drives PyQt6 widgets and schedules callbacks on the Qt event loop.

    Must be used from the GUI thread; QTimer callbacks run there too, so no
    locking is needed around the timer bookkeeping.
    """

    def __init__(self, widgets: Iterable[object]) -> None:
        from PyQt6.QtCore import QTimer

        self._timer_cls = QTimer
        self._widgets = list(widgets)
        self._timers: Set[object] = set()
        self._last_state: Optional[bool] = None

    def set_visible(self, visible: bool) -> None:
        for widget in self._widgets:
            if visible:
                if not widget.isVisible():
                    widget.show()
                widget.raise_()
            elif widget.isVisible():
                widget.hide()
        if self._last_state != visible:
            _LOGGER.debug(
                "Floating widgets set to %s (%d widget(s))",
                "visible" if visible else "hidden",
                len(self._widgets),
            )
            self._last_state = visible

    def after(self, delay_ms: int, callback: Callable[[], None]) -> object:
        timer = self._timer_cls()
        timer.setSingleShot(True)

        def _fire() -> None:
            self._timers.discard(timer)
            callback()

        timer.timeout.connect(_fire)
        self._timers.add(timer)
        timer.start(max(0, delay_ms))
        return timer

    def shutdown(self) -> None:
        for timer in list(self._timers):
            timer.stop()
        self._timers.clear()


def build_backend(
    kind: str,
    *,
    set_visible_fn: Optional[SetVisibleFn] = None,
    widgets: Optional[Iterable[object]] = None,
) -> FloatingBackend:
    token = (kind or "").strip().lower()
    if token == "qt":
        if widgets is None:
            raise ValueError("Qt backend requires widgets")
        return QtWidgetBackend(widgets)
    if token in {"blocking", "thread"}:
        if set_visible_fn is None:
            raise ValueError(f"{token} backend requires set_visible_fn")
        if token == "blocking":
            return BlockingBackend(set_visible_fn)
        return ThreadedBackend(set_visible_fn)
    raise ValueError(f"Unknown floating backend '{kind}' (expected one of {', '.join(BACKEND_KINDS)})")
