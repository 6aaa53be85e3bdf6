# widgets.py
from __future__ import annotations

from typing import Mapping

from PySide6.QtCore import Qt, QRectF, QEasingCurve, QPropertyAnimation, Property, QSize
from PySide6.QtGui import QPainter, QColor, QFontMetrics, QPen
from PySide6.QtWidgets import QAbstractButton, QComboBox, QStyle, QStyleOptionComboBox, QLabel


class ToggleSwitch(QAbstractButton):
    """
    Sliding on/off switch for boolean settings.
    """

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setCheckable(True)
        self.setCursor(Qt.PointingHandCursor)
        self._offset = 0.0  # 0..1
        self._anim = QPropertyAnimation(self, b"offset", self)
        self._anim.setDuration(140)
        self._anim.setEasingCurve(QEasingCurve.InOutCubic)

        self._on_bg = QColor("#7fd6a6")
        self._off_bg = QColor("#3a3a42")
        self._knob = QColor("#f2f2f2")
        self._border = QColor("#2a2a30")

        self.toggled.connect(self._on_toggled)
        self.setFixedSize(46, 24)

    def sizeHint(self) -> QSize:
        return QSize(46, 24)

    def setChecked(self, checked: bool) -> None:
        super().setChecked(checked)
        self._anim.stop()
        self._offset = 1.0 if checked else 0.0
        self.update()

    def _on_toggled(self, checked: bool) -> None:
        self._anim.stop()
        self._anim.setStartValue(self._offset)
        self._anim.setEndValue(1.0 if checked else 0.0)
        self._anim.start()

    def get_offset(self) -> float:
        return self._offset

    def set_offset(self, v: float) -> None:
        self._offset = float(v)
        self.update()

    offset = Property(float, get_offset, set_offset)

    def paintEvent(self, _event) -> None:
        p = QPainter(self)
        p.setRenderHint(QPainter.Antialiasing, True)

        r = QRectF(0.5, 0.5, self.width() - 1.0, self.height() - 1.0)
        radius = r.height() / 2.0

        p.setPen(QPen(self._border, 1.0))
        p.setBrush(self._on_bg if self.isChecked() else self._off_bg)
        p.drawRoundedRect(r, radius, radius)

        margin = 3.0
        d = r.height() - 2 * margin
        x = r.x() + margin + self._offset * (r.width() - 2 * margin - d)

        p.setPen(Qt.NoPen)
        p.setBrush(self._knob)
        p.drawEllipse(QRectF(x, r.y() + margin, d, d))

        p.end()


class DeviceComboBox(QComboBox):
    """
    Device picker. Long sink labels are elided in the closed box; the popup
    shows them in full. Item data is the stored device reference.
    """

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setSizeAdjustPolicy(QComboBox.AdjustToMinimumContentsLengthWithIcon)
        self.setMinimumContentsLength(24)

    def set_options(self, options: Mapping[str, str], selected: str) -> None:
        self.blockSignals(True)
        self.clear()
        for label, value in options.items():
            self.addItem(label, value)
        idx = self.findData(selected)
        self.setCurrentIndex(idx if idx >= 0 else 0)
        self.blockSignals(False)

    def selected_reference(self) -> str:
        v = self.currentData()
        return v if isinstance(v, str) else ""

    def paintEvent(self, event) -> None:
        opt = QStyleOptionComboBox()
        self.initStyleOption(opt)

        fm = QFontMetrics(opt.fontMetrics)
        elide_width = max(10, self.rect().width() - 38)
        opt.currentText = fm.elidedText(opt.currentText, Qt.ElideRight, elide_width)

        p = QPainter(self)
        self.style().drawComplexControl(QStyle.CC_ComboBox, opt, p, self)
        self.style().drawControl(QStyle.CE_ComboBoxLabel, opt, p, self)
        p.end()


class StatusPill(QLabel):
    """
    Slot availability badge. Details go in the tooltip.
    """

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setAlignment(Qt.AlignCenter)
        self.setFixedWidth(104)
        self.set_state("unset")

    def set_state(self, state: str) -> None:
        # state: active | ready | unavailable | unset
        if state == "active":
            text, bg, bd, fg = "Active", "#233a2c", "#2f6b45", "#cfeedd"
        elif state == "ready":
            text, bg, bd, fg = "Ready", "#24303a", "#31597a", "#c8e0f3"
        elif state == "unavailable":
            text, bg, bd, fg = "Unavailable", "#3a2424", "#7a3131", "#f3c8c8"
        else:
            text, bg, bd, fg = "Unset", "#2a2a30", "#3a3a42", "#d6d6d6"

        self.setText(text)
        self.setStyleSheet(
            f"""
            QLabel {{
                background: {bg};
                border: 1px solid {bd};
                border-radius: 10px;
                padding: 4px 8px;
                color: {fg};
                font-weight: 600;
            }}
            """
        )
