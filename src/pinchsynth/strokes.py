from __future__ import annotations

import enum
from typing import Optional

from .types import GestureState, Point2, Segment


class DrawState(enum.Enum):
    IDLE = "idle"
    DRAWING = "drawing"


class DrawingStateMachine:
    """
    Turns pinch continuity into line segments.

    Only the previous point is kept; the renderer owns the drawing. Any
    frame that does not draw (release, button hit, no hand) drops
    ``last_point`` so the next pinch starts a new stroke.
    """

    def __init__(self) -> None:
        self.state = DrawState.IDLE
        self.last_point: Optional[Point2] = None

    def update(self, gesture: GestureState) -> Optional[Segment]:
        if not gesture.draws or gesture.screen_point is None:
            self.reset()
            return None

        point = gesture.screen_point
        segment = None
        if self.state is DrawState.DRAWING and self.last_point is not None:
            segment = Segment(self.last_point, point)
        self.last_point = point
        self.state = DrawState.DRAWING
        return segment

    def reset(self) -> None:
        self.state = DrawState.IDLE
        self.last_point = None
