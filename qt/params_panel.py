from __future__ import annotations

"""Params Panel

Auto-built controls for every knob in params.registry.PARAMS:
  float -> QDoubleSpinBox, int -> QSpinBox, enum -> QComboBox

Edits go straight through CoreBridge.set_param (which clamps); the control is
then re-synced with the stored value.
"""

try:
    from PySide6 import QtCore, QtWidgets  # type: ignore
except ImportError:  # pragma: no cover
    from PyQt6 import QtCore, QtWidgets  # type: ignore

from params.registry import PARAMS, PANEL_KEYS


class ParamsPanel(QtWidgets.QWidget):
    def __init__(self, app_core):
        super().__init__()
        self.app_core = app_core
        self._controls = {}
        self._suspend = False

        outer = QtWidgets.QVBoxLayout(self)
        outer.setContentsMargins(10, 10, 10, 10)
        outer.setSpacing(8)

        form = QtWidgets.QFormLayout()
        for key in PANEL_KEYS:
            spec = PARAMS[key]
            w = self._make_control(key, spec)
            self._controls[key] = w
            form.addRow(spec.get("label", key), w)
        outer.addLayout(form)

        row = QtWidgets.QHBoxLayout()
        self.btn_clear = QtWidgets.QPushButton("Clear")
        self.btn_clear.clicked.connect(self._clear)
        row.addWidget(self.btn_clear)
        row.addStretch(1)
        outer.addLayout(row)

        self.status = QtWidgets.QLabel("")
        self.status.setWordWrap(True)
        outer.addWidget(self.status)
        outer.addStretch(1)

        self._timer = QtCore.QTimer(self)
        self._timer.setInterval(500)
        self._timer.timeout.connect(self._refresh_status)
        self._timer.start()

        self.refresh()

    def _make_control(self, key: str, spec: dict):
        t = spec.get("type")
        if t == "enum":
            w = QtWidgets.QComboBox()
            for c in spec.get("choices", []):
                w.addItem(str(c))
            w.currentTextChanged.connect(lambda text, k=key: self._on_changed(k, text))
            return w
        if t == "int":
            w = QtWidgets.QSpinBox()
            w.setRange(int(spec.get("min", 0)), int(spec.get("max", 1000000)))
            w.setSingleStep(int(spec.get("step", 1)))
            w.valueChanged.connect(lambda v, k=key: self._on_changed(k, v))
            return w
        w = QtWidgets.QDoubleSpinBox()
        w.setDecimals(int(spec.get("decimals", 2)))
        w.setRange(float(spec.get("min", 0.0)), float(spec.get("max", 1.0)))
        w.setSingleStep(float(spec.get("step", 0.1)))
        w.valueChanged.connect(lambda v, k=key: self._on_changed(k, v))
        return w

    def _on_changed(self, key: str, value):
        if self._suspend:
            return
        self.app_core.set_param(key, value)
        self.refresh()

    def _clear(self):
        self.app_core.clear()

    def refresh(self):
        params = self.app_core.params
        self._suspend = True
        try:
            for key, w in self._controls.items():
                v = params.get(key)
                if isinstance(w, QtWidgets.QComboBox):
                    w.setCurrentText(str(v))
                elif isinstance(w, QtWidgets.QSpinBox):
                    w.setValue(int(v))
                else:
                    w.setValue(float(v))
        finally:
            self._suspend = False

    def _refresh_status(self):
        st = self.app_core.stats()
        gov = st.get("governor") or {}
        fps = gov.get("fps")
        fps_txt = "--" if fps is None else f"{fps:.0f}"
        self.status.setText(
            f"grains: {st['particles']} (settled {st['settled']}, falling {st['falling']})\n"
            f"fps: {fps_txt}  batch: {gov.get('batch')}  interval: {gov.get('interval_ms')} ms"
        )
