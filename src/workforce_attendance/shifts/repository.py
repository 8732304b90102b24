from __future__ import annotations

from typing import Optional, Protocol

from .model import ShiftDefinition


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: int) -> Optional[ShiftDefinition]:
        raise NotImplementedError

    def get_default_shift(self, workspace_id: int) -> Optional[ShiftDefinition]:
        """Active shift flagged as default for the workspace, if any."""

        raise NotImplementedError
