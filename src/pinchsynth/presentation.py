from __future__ import annotations

import enum
from typing import Dict, Iterable, List, Optional, Tuple

from .types import ButtonHit, Region


class StatusKind(enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    DRAWING = "drawing"
    ERROR = "error"


# Status texts
SHOW_HAND = "Show your hand to the camera"
READY = "Ready to draw"
DRAWING = "Drawing..."
OCTAVE_UP = "Octave up"
OCTAVE_DOWN = "Octave down"

EMPTY = "-"

DEBUG_FIELDS = ("index", "thumb", "distance", "depth", "pinch", "frequency", "octave", "key", "melody_key")


class StatusBoard:
    """
    Status line plus named debug fields for whatever UI is attached.

    A UI registers only the fields it can show; writes to any other field
    are dropped, so the core never has to know what is on screen.
    """

    def __init__(self, fields: Iterable[str] = DEBUG_FIELDS) -> None:
        self.status = SHOW_HAND
        self.kind = StatusKind.IDLE
        self.error_detail: Optional[str] = None
        self._fields: Dict[str, str] = {name: EMPTY for name in fields}

    def set_status(self, text: str, kind: StatusKind = StatusKind.ACTIVE) -> None:
        self.status = text
        self.kind = kind
        if kind is not StatusKind.ERROR:
            self.error_detail = None

    def show_error(self, message: str, exc: Optional[BaseException] = None) -> None:
        self.status = message
        self.kind = StatusKind.ERROR
        self.error_detail = str(exc) if exc is not None else None

    def write(self, name: str, text: str) -> None:
        if name not in self._fields:
            return
        self._fields[name] = text

    def read(self, name: str) -> Optional[str]:
        return self._fields.get(name)

    def clear_debug(self) -> None:
        for name in self._fields:
            if name != "octave":
                self._fields[name] = EMPTY

    def lines(self) -> List[Tuple[str, str]]:
        return list(self._fields.items())


BUTTON_MARGIN_PX = 16


def octave_regions(width: int, height: int) -> Dict[ButtonHit, Region]:
    """
    Circular octave buttons stacked at the right edge of a ``width`` x ``height`` view.

    Called every frame so the buttons follow window resizes.
    """
    radius = max(24.0, 0.07 * min(width, height))
    cx = width - radius - BUTTON_MARGIN_PX
    cy = height / 2.0
    gap = radius + BUTTON_MARGIN_PX / 2.0
    return {
        ButtonHit.OCTAVE_UP: Region(cx, cy - gap, radius),
        ButtonHit.OCTAVE_DOWN: Region(cx, cy + gap, radius),
    }
