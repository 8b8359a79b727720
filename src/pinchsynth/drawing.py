from __future__ import annotations

from typing import Iterable, Mapping, Optional, Tuple

import cv2
import numpy as np

from .detector import HAND_CONNECTIONS
from .presentation import StatusBoard, StatusKind
from .types import ButtonHit, GestureState, LandmarkFrame, Region, Segment

# BGR
PINCH_COLOR = (128, 222, 74)
OPEN_COLOR = (255, 255, 255)
SKELETON_COLOR = (0, 200, 0)
BUTTON_COLOR = (200, 200, 200)
BUTTON_ACTIVE_COLOR = (0, 215, 255)
STATUS_COLORS = {
    StatusKind.IDLE: (255, 255, 255),
    StatusKind.ACTIVE: (128, 222, 74),
    StatusKind.DRAWING: (0, 215, 255),
    StatusKind.ERROR: (60, 60, 255),
}


def _pt(p: Tuple[float, float]) -> Tuple[int, int]:
    return (int(round(p[0])), int(round(p[1])))


class StrokeCanvas:
    """Persistent drawing layer; cleared only on request."""

    def __init__(self, width: int, height: int) -> None:
        self.layer = np.zeros((height, width, 3), dtype=np.uint8)
        self.mask = np.zeros((height, width), dtype=np.uint8)

    @property
    def size(self) -> Tuple[int, int]:
        h, w = self.mask.shape
        return w, h

    def resize(self, width: int, height: int) -> None:
        if (width, height) == self.size:
            return
        self.layer = cv2.resize(self.layer, (width, height), interpolation=cv2.INTER_NEAREST)
        self.mask = cv2.resize(self.mask, (width, height), interpolation=cv2.INTER_NEAREST)

    def draw_segment(self, segment: Segment, color_bgr: Tuple[int, int, int], thickness: int = 1) -> None:
        p0, p1 = _pt(segment.start), _pt(segment.end)
        cv2.line(self.layer, p0, p1, color_bgr, thickness, cv2.LINE_AA)
        cv2.line(self.mask, p0, p1, 255, thickness, cv2.LINE_AA)

    def clear(self) -> None:
        self.layer[:] = 0
        self.mask[:] = 0

    def composite(self, frame_bgr):
        idx = self.mask > 0
        frame_bgr[idx] = self.layer[idx]
        return frame_bgr


def draw_text(frame, text: str, org: Tuple[int, int], color=(255, 255, 255), scale=0.6, thickness=2):
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, (0, 0, 0), thickness + 2, cv2.LINE_AA)
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness, cv2.LINE_AA)
    return frame


def draw_hand(frame, landmarks: Optional[LandmarkFrame], gesture: GestureState):
    """Transient overlay: mirrored skeleton plus thumb and index markers."""
    if landmarks is None or not gesture.hand_present:
        return frame
    h, w = frame.shape[:2]
    pts = [(int(round(w - lm.x_norm * w)), int(round(lm.y_norm * h))) for lm in landmarks.landmarks]
    for a, b in HAND_CONNECTIONS:
        cv2.line(frame, pts[a], pts[b], SKELETON_COLOR, 2, cv2.LINE_AA)
    for p in pts:
        cv2.circle(frame, p, 3, (255, 255, 255), -1, lineType=cv2.LINE_AA)

    if gesture.index_px is None or gesture.thumb_px is None:
        return frame
    color = PINCH_COLOR if gesture.is_pinching else OPEN_COLOR
    index = (int(round(w - gesture.index_px[0])), int(round(gesture.index_px[1])))
    thumb = (int(round(w - gesture.thumb_px[0])), int(round(gesture.thumb_px[1])))
    cv2.line(frame, index, thumb, color, 2, cv2.LINE_AA)
    cv2.circle(frame, index, 10, color, 2, lineType=cv2.LINE_AA)
    cv2.circle(frame, thumb, 10, color, 2, lineType=cv2.LINE_AA)
    return frame


def draw_regions(frame, regions: Mapping[ButtonHit, Region], active: ButtonHit = ButtonHit.NONE):
    labels = {ButtonHit.OCTAVE_UP: "+", ButtonHit.OCTAVE_DOWN: "-"}
    for button, region in regions.items():
        color = BUTTON_ACTIVE_COLOR if button is active else BUTTON_COLOR
        center = _pt((region.center_x, region.center_y))
        cv2.circle(frame, center, int(region.radius), color, 2, lineType=cv2.LINE_AA)
        draw_text(frame, labels.get(button, "?"), (center[0] - 8, center[1] + 8), color, scale=0.9)
    return frame


def draw_hud(frame, board: StatusBoard, extra: Iterable[str] = ()):
    draw_text(frame, board.status, (12, 28), STATUS_COLORS[board.kind], scale=0.8)
    y = 56
    for name, value in board.lines():
        draw_text(frame, f"{name}: {value}", (12, y), scale=0.5, thickness=1)
        y += 20
    for line in extra:
        draw_text(frame, line, (12, y), scale=0.5, thickness=1)
        y += 20
    return frame
