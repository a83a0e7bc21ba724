from __future__ import annotations

import os
import threading

import pytest

from floating_visibility import backends
from floating_visibility.backends import BlockingBackend, ThreadedBackend, build_backend
from floating_visibility.floating import create_floating


def test_blocking_backend_sleeps_then_runs_callback() -> None:
    sleeps: list[float] = []
    order: list[str] = []
    backend = BlockingBackend(lambda visible: None, sleep=lambda seconds: (sleeps.append(seconds), order.append("sleep")))
    backend.after(250, lambda: order.append("callback"))
    assert sleeps == [0.25]
    assert order == ["sleep", "callback"]


def test_blocking_backend_zero_delay_still_sleeps() -> None:
    sleeps: list[float] = []
    backend = BlockingBackend(lambda visible: None, sleep=sleeps.append)
    backend.after(0, lambda: None)
    assert sleeps == [0.0]


def test_blocking_backend_drives_facade_inline() -> None:
    visibility: list[bool] = []
    floating = create_floating(BlockingBackend(visibility.append, sleep=lambda _s: None))
    floating.override_on()
    floating.hide_after_timeout(50)
    floating.override_off()
    floating.hide_after_timeout(50)
    assert visibility == [False, True, False, False]


class DummyTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.cancelled = False

    def start(self):
        self.callback()

    def cancel(self):
        self.cancelled = True

    def join(self, timeout=None):
        return None


def test_threaded_backend_runs_and_clears(monkeypatch) -> None:
    monkeypatch.setattr(backends.threading, "Timer", DummyTimer)
    calls: list[str] = []
    backend = ThreadedBackend(lambda visible: None)
    timer = backend.after(1500, lambda: calls.append("fired"))
    assert isinstance(timer, DummyTimer)
    assert timer.delay == 1.5
    assert timer.daemon is True
    assert calls == ["fired"]
    assert backend.pending == 0


class UnstartableTimer(DummyTimer):
    def start(self):
        raise RuntimeError("can't start new thread")


def test_threaded_backend_forgets_timer_that_failed_to_start(monkeypatch) -> None:
    monkeypatch.setattr(backends.threading, "Timer", UnstartableTimer)
    backend = ThreadedBackend(lambda visible: None)
    with pytest.raises(RuntimeError):
        backend.after(10, lambda: None)
    assert backend.pending == 0


def test_failed_start_propagates_from_hide_after_timeout(monkeypatch) -> None:
    monkeypatch.setattr(backends.threading, "Timer", UnstartableTimer)
    backend = ThreadedBackend(lambda visible: None)
    floating = create_floating(backend)
    with pytest.raises(RuntimeError):
        floating.hide_after_timeout(10)
    assert backend.pending == 0
    assert floating.timeout.generation == 1


def test_threaded_backend_shutdown_cancels_pending() -> None:
    backend = ThreadedBackend(lambda visible: None)
    fired = threading.Event()
    backend.after(60_000, fired.set)
    assert backend.pending == 1
    backend.shutdown()
    assert backend.pending == 0
    assert not fired.is_set()


def test_threaded_backend_supersedes_with_real_timers() -> None:
    visibility: list[bool] = []
    lock = threading.Lock()

    def record(visible: bool) -> None:
        with lock:
            visibility.append(visible)

    backend = ThreadedBackend(record)
    floating = create_floating(backend)
    floating.hide_after_timeout(300)
    floating.hide_after_timeout(10)
    backend.join(timeout=5.0)
    assert visibility == [False]


def test_build_backend_selects_by_name() -> None:
    assert isinstance(build_backend("blocking", set_visible_fn=lambda v: None), BlockingBackend)
    assert isinstance(build_backend(" Thread ", set_visible_fn=lambda v: None), ThreadedBackend)


def test_build_backend_rejects_unknown_or_incomplete() -> None:
    with pytest.raises(ValueError):
        build_backend("wayland", set_visible_fn=lambda v: None)
    with pytest.raises(ValueError):
        build_backend("thread")
    with pytest.raises(ValueError):
        build_backend("qt")


@pytest.fixture
def qt_app(monkeypatch):
    monkeypatch.setenv("QT_QPA_PLATFORM", os.getenv("QT_QPA_PLATFORM", "offscreen"))
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.mark.pyqt_required
def test_qt_backend_toggles_widgets_and_fires_timeout(qt_app) -> None:
    from PyQt6.QtCore import QEventLoop, QTimer
    from PyQt6.QtWidgets import QLabel

    label = QLabel("floating")
    backend = build_backend("qt", widgets=[label])
    floating = create_floating(backend)

    floating.override_toggle()
    assert label.isVisible() is True

    floating.override_off()
    floating.show()
    floating.hide_after_timeout(20)
    assert label.isVisible() is True

    loop = QEventLoop()
    QTimer.singleShot(100, loop.quit)
    loop.exec()
    assert label.isVisible() is False
    label.deleteLater()
