from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...shifts.model import ShiftDefinition


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class ClockInStrategy(ABC):
    """Strategy Pattern: encapsulate how the clock-in status is decided."""

    @abstractmethod
    def decide_clock_in(self, *, now: datetime, shift: ShiftDefinition) -> StatusDecision:
        raise NotImplementedError
