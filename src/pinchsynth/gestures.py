"""Per-frame pinch classification."""

from __future__ import annotations

from typing import Mapping, Optional

from .config import PINCH_THRESHOLD_PX
from .types import ButtonHit, GestureState, Landmark, LandmarkFrame, Region
from .utils import clamp, distance

# Down is tested first, so overlapping regions resolve to OCTAVE_DOWN.
_BUTTON_ORDER = (ButtonHit.OCTAVE_DOWN, ButtonHit.OCTAVE_UP)


class GestureClassifier:
    """
    Turns one LandmarkFrame into a GestureState.

    Landmark pixel positions are computed in the mirrored canvas space the
    detector reports (``x * width``); the on-screen point flips X back so a
    hand moving left moves the pen left.
    """

    def __init__(self, width: int, height: int, pinch_threshold_px: float = PINCH_THRESHOLD_PX) -> None:
        self.width = width
        self.height = height
        self.pinch_threshold_px = pinch_threshold_px

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def _px(self, frame: LandmarkFrame, idx: int):
        lm = frame[idx]
        return (lm.x_norm * self.width, lm.y_norm * self.height)

    def classify(self, frame: Optional[LandmarkFrame], regions: Optional[Mapping[ButtonHit, Region]] = None) -> GestureState:
        if frame is None:
            return GestureState.no_hand()

        wrist = self._px(frame, Landmark.WRIST)
        thumb = self._px(frame, Landmark.THUMB_TIP)
        index = self._px(frame, Landmark.INDEX_FINGER_TIP)
        middle = self._px(frame, Landmark.MIDDLE_FINGER_TIP)

        pinch_distance = distance(thumb, index)
        hand_depth = distance(wrist, middle)

        tip = frame[Landmark.INDEX_FINGER_TIP]
        screen_point = (self.width - index[0], index[1])

        return GestureState(
            hand_present=True,
            pinch_distance=pinch_distance,
            hand_depth=hand_depth,
            normalized_x=clamp(1.0 - tip.x_norm, 0.0, 1.0),
            normalized_y=clamp(1.0 - tip.y_norm, 0.0, 1.0),
            is_pinching=pinch_distance < self.pinch_threshold_px,
            screen_point=screen_point,
            button_hit=hit_test(screen_point, regions or {}),
            index_px=index,
            thumb_px=thumb,
        )


def hit_test(point, regions: Mapping[ButtonHit, Region]) -> ButtonHit:
    for button in _BUTTON_ORDER:
        region = regions.get(button)
        if region is not None and region.contains(point[0], point[1]):
            return button
    return ButtonHit.NONE
