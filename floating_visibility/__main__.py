"""Drive a floating label from the command line to exercise the visibility controller."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from floating_visibility.backends import BACKEND_KINDS, ThreadedBackend, build_backend
from floating_visibility.config import FloatingConfig, load_config
from floating_visibility.floating import FloatingVisibility, create_floating
from floating_visibility.logging_utils import configure_logging

_LOGGER = logging.getLogger("FloatingVisibility.CLI")
GRACE_MS = 250


def _print_step(message: str) -> None:
    print(f"[floating] {message}")


def _parse_args(argv: Optional[Sequence[str]], config: FloatingConfig) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="floating_visibility", description=__doc__)
    parser.add_argument("--backend", choices=BACKEND_KINDS, default=config.backend)
    parser.add_argument(
        "--timeout",
        type=int,
        default=config.hide_timeout_ms,
        help="Auto-hide delay in milliseconds (default: %(default)s)",
    )
    parser.add_argument(
        "--override",
        choices=("on", "off", "toggle"),
        help="Apply an override change before scheduling the auto-hide",
    )
    parser.add_argument("--text", default="Floating overlay", help="Label text for the Qt backend")
    parser.add_argument(
        "--env-overrides",
        type=Path,
        help="JSON file with an \"env\" block merged under the process environment",
    )
    return parser.parse_args(argv)


def _apply_override(floating: FloatingVisibility, choice: Optional[str]) -> None:
    if choice == "on":
        floating.override_on()
    elif choice == "off":
        floating.override_off()
    elif choice == "toggle":
        floating.override_toggle()
    if choice:
        _print_step(f"override is now {'on' if floating.is_overridden() else 'off'}")


def _run_qt(args: argparse.Namespace) -> int:
    from PyQt6.QtCore import Qt, QTimer
    from PyQt6.QtWidgets import QApplication, QLabel

    app = QApplication.instance() or QApplication(sys.argv[:1])
    label = QLabel(args.text)
    label.setWindowFlags(
        Qt.WindowType.FramelessWindowHint | Qt.WindowType.WindowStaysOnTopHint | Qt.WindowType.Tool
    )
    label.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating, True)
    label.setStyleSheet("background: rgba(0, 0, 0, 160); color: white; padding: 8px;")

    floating = create_floating(build_backend("qt", widgets=[label]))
    floating.show()
    _apply_override(floating, args.override)
    floating.hide_after_timeout(args.timeout)
    QTimer.singleShot(args.timeout + GRACE_MS, app.quit)
    app.exec()
    _print_step(f"label visible at exit: {label.isVisible()}")
    return 0


def _run_headless(args: argparse.Namespace) -> int:
    def _report(visible: bool) -> None:
        _print_step("show" if visible else "hide")

    backend = build_backend(args.backend, set_visible_fn=_report)
    floating = create_floating(backend)
    floating.show()
    _apply_override(floating, args.override)
    floating.hide_after_timeout(args.timeout)
    if isinstance(backend, ThreadedBackend):
        backend.join()
    return 0


def _overrides_path(argv: Optional[Sequence[str]]) -> Optional[Path]:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--env-overrides", type=Path)
    known, _rest = pre.parse_known_args(argv)
    return known.env_overrides


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = load_config(_overrides_path(argv))
    args = _parse_args(argv, config)
    if args.timeout < 0:
        _print_step("ERROR: --timeout must be >= 0")
        return 2
    try:
        configure_logging(config)
    except OSError as exc:
        _print_step(f"WARNING: file logging unavailable ({exc})")
    _LOGGER.info("Starting floating demo: backend=%s timeout=%dms", args.backend, args.timeout)
    if args.backend == "qt":
        return _run_qt(args)
    return _run_headless(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
