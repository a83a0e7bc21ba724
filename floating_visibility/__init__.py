from .backends import BlockingBackend, FloatingBackend, QtWidgetBackend, ThreadedBackend, build_backend
from .floating import FloatingVisibility, create_floating
from .override import OverrideController
from .resettable_timer import InvalidDelayError, ResettableTimer

__all__ = [
    "BlockingBackend",
    "FloatingBackend",
    "FloatingVisibility",
    "InvalidDelayError",
    "OverrideController",
    "QtWidgetBackend",
    "ResettableTimer",
    "ThreadedBackend",
    "build_backend",
    "create_floating",
]
