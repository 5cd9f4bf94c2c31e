"""Qt application."""

from __future__ import annotations

import sys
import time

# Timeless UI title (versions belong in release tags/changelog, not runtime code).
APP_TITLE = "Sandfall Studio"

try:
    from PySide6 import QtCore, QtGui, QtWidgets  # type: ignore
    _BINDING = "PySide6"
except ImportError:  # pragma: no cover
    from PyQt6 import QtCore, QtGui, QtWidgets  # type: ignore
    _BINDING = "PyQt6"

from app.log_buffer import log
from qt.params_panel import ParamsPanel

# Host frame interval; the engine only ever sees the measured dt.
FRAME_INTERVAL_MS = 16
# Clamp for dt after stalls (window drag, debugger) so one tick can't teleport grains.
MAX_DT_MS = 100.0


def _install_global_excepthook(app_name: str = "Sandfall"):
    """Show a fatal error dialog instead of silently closing on uncaught exceptions."""
    prev = sys.excepthook

    def _hook(exctype, value, tb):
        import traceback as _tb
        msg = "".join(_tb.format_exception(exctype, value, tb))
        # prev writes the crash report (if installed) and prints to stderr
        prev(exctype, value, tb)
        if QtWidgets.QApplication.instance() is not None:
            QtWidgets.QMessageBox.critical(
                None,
                f"{app_name}: Fatal Error",
                "An unexpected error occurred.\n\n" + msg[-4000:],
            )

    sys.excepthook = _hook


class SandCanvas(QtWidgets.QWidget):
    """Drawing surface + frame scheduler.

    - A QTimer drives ticks; dt is measured with perf_counter.
    - Mouse (left button) and the first touch point feed the pointer state.
    - paintEvent fills one rect per snapshot cell.
    """

    def __init__(self, app_core):
        super().__init__()
        self.app_core = app_core
        self.setMinimumSize(320, 240)
        self.setMouseTracking(True)
        self.setAttribute(QtCore.Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setAttribute(QtCore.Qt.WidgetAttribute.WA_OpaquePaintEvent, True)

        self._snapshot = ()
        self._color_cache = {}
        self._last_t = None

        self._timer = QtCore.QTimer(self)
        self._timer.timeout.connect(self._on_frame)
        self._timer.start(FRAME_INTERVAL_MS)

    # ---- frame loop

    def _on_frame(self):
        now = time.perf_counter()
        dt_ms = 0.0 if self._last_t is None else (now - self._last_t) * 1000.0
        self._last_t = now
        self._snapshot = self.app_core.tick(min(dt_ms, MAX_DT_MS))
        self.update()

    def _qcolor(self, rgb):
        c = self._color_cache.get(rgb)
        if c is None:
            if len(self._color_cache) > 4096:
                self._color_cache.clear()
            c = QtGui.QColor(rgb[0], rgb[1], rgb[2])
            self._color_cache[rgb] = c
        return c

    def paintEvent(self, e):  # noqa: N802
        p = QtGui.QPainter(self)
        p.setRenderHint(QtGui.QPainter.RenderHint.Antialiasing, False)
        p.fillRect(self.rect(), QtGui.QColor(0, 0, 0))
        for cell in self._snapshot:
            p.fillRect(cell.x, cell.y, cell.size, cell.size, self._qcolor(cell.color))
        p.end()

    def resizeEvent(self, e):  # noqa: N802
        self.app_core.resize(max(1, self.width()), max(1, self.height()))
        super().resizeEvent(e)

    # ---- pointer

    def mousePressEvent(self, e):  # noqa: N802
        if e.button() != QtCore.Qt.MouseButton.LeftButton:
            return
        pos = e.position()
        self.app_core.set_pointer(pos.x(), pos.y(), True)

    def mouseMoveEvent(self, e):  # noqa: N802
        pos = e.position()
        held = bool(e.buttons() & QtCore.Qt.MouseButton.LeftButton)
        self.app_core.set_pointer(pos.x(), pos.y(), held)

    def mouseReleaseEvent(self, e):  # noqa: N802
        if e.button() == QtCore.Qt.MouseButton.LeftButton:
            self.app_core.release_pointer()

    def leaveEvent(self, e):  # noqa: N802
        self.app_core.release_pointer()
        super().leaveEvent(e)

    def event(self, e):
        et = e.type()
        if et in (QtCore.QEvent.Type.TouchBegin, QtCore.QEvent.Type.TouchUpdate):
            pts = e.points()
            if pts:
                pos = pts[0].position()
                self.app_core.set_pointer(pos.x(), pos.y(), True)
            e.accept()
            return True
        if et in (QtCore.QEvent.Type.TouchEnd, QtCore.QEvent.Type.TouchCancel):
            self.app_core.release_pointer()
            e.accept()
            return True
        return super().event(e)


class QtMainWindow(QtWidgets.QMainWindow):
    def __init__(self, app_core):
        super().__init__()
        self.app_core = app_core
        self.setWindowTitle(APP_TITLE)

        self.canvas = SandCanvas(app_core)
        self.setCentralWidget(self.canvas)

        self.params_panel = ParamsPanel(app_core)
        dock = QtWidgets.QDockWidget("Parameters", self)
        dock.setWidget(self.params_panel)
        dock.setFeatures(
            QtWidgets.QDockWidget.DockWidgetFeature.DockWidgetMovable
            | QtWidgets.QDockWidget.DockWidgetFeature.DockWidgetFloatable
        )
        self.addDockWidget(QtCore.Qt.DockWidgetArea.RightDockWidgetArea, dock)


def run_qt(app_core) -> None:
    app = QtWidgets.QApplication(sys.argv)
    _install_global_excepthook("Sandfall")
    log("qt", f"starting ({_BINDING})")
    win = QtMainWindow(app_core)
    win.resize(1180, 720)
    win.show()
    app.exec()
