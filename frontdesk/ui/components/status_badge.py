from __future__ import annotations

from PySide6.QtWidgets import QLabel

TONES = ("success", "info", "warning", "error", "neutral")


class StatusBadge(QLabel):
    """Upper-case pill label; the QSS picks colours from the ``tone`` property."""

    def __init__(self, text: str = "", variant: str = "neutral", parent=None) -> None:
        super().__init__(text.upper(), parent)
        self.setProperty("role", "badge")
        self.set_variant(variant)

    def setText(self, text: str) -> None:  # noqa: N802
        super().setText(text.upper())

    def variant(self) -> str:
        return str(self.property("tone") or "neutral")

    def set_variant(self, variant: str) -> None:
        tone = variant if variant in TONES else "neutral"
        if tone == self.property("tone"):
            return
        self.setProperty("tone", tone)
        style = self.style()
        if style is not None:
            style.unpolish(self)
            style.polish(self)
        self.update()

    def set_state(self, text: str, variant: str) -> None:
        self.setText(text)
        self.set_variant(variant)
        self.setToolTip(f"{text} ({self.variant()})")
