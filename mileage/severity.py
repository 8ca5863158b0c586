"""Severity enum for gap diagnostics and audit deviations."""

from enum import Enum


class Severity(Enum):
    """Deviation severity. Lower value = more urgent."""

    URGENT = 1
    HIGH = 2
    MEDIUM = 3
    NORMAL = 4
    LOW = 5  # Only used by the compliance audit

    @property
    def label(self) -> str:
        return self.name.lower()
