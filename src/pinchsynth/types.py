from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union


Point2 = Tuple[float, float]

NUM_LANDMARKS = 21


class Landmark(enum.IntEnum):
    WRIST = 0
    THUMB_TIP = 4
    INDEX_FINGER_TIP = 8
    MIDDLE_FINGER_TIP = 12


@dataclass(frozen=True)
class HandLandmark:
    """A single hand landmark in normalized image coordinates."""

    idx: int
    x_norm: float
    y_norm: float
    z_norm: float = 0.0


@dataclass(frozen=True)
class LandmarkFrame:
    """The 21 landmarks of the one tracked hand for a single camera frame."""

    landmarks: Tuple[HandLandmark, ...]
    handedness_label: Optional[str] = None  # "Left" / "Right" (may be None)
    handedness_score: Optional[float] = None

    def __post_init__(self) -> None:
        if len(self.landmarks) != NUM_LANDMARKS:
            raise ValueError(f"expected {NUM_LANDMARKS} landmarks, got {len(self.landmarks)}")

    @classmethod
    def from_points(cls, points, handedness_label: Optional[str] = None) -> "LandmarkFrame":
        """Build a frame from (x, y) or (x, y, z) tuples."""
        lms = []
        for idx, p in enumerate(points):
            z = float(p[2]) if len(p) > 2 else 0.0
            lms.append(HandLandmark(idx=idx, x_norm=float(p[0]), y_norm=float(p[1]), z_norm=z))
        return cls(landmarks=tuple(lms), handedness_label=handedness_label)

    def __getitem__(self, idx: int) -> HandLandmark:
        return self.landmarks[idx]


class ButtonHit(enum.Enum):
    NONE = "none"
    OCTAVE_UP = "octave_up"
    OCTAVE_DOWN = "octave_down"


@dataclass(frozen=True)
class Region:
    """Circular hit region in screen pixels."""

    center_x: float
    center_y: float
    radius: float

    def contains(self, x: float, y: float) -> bool:
        return math.hypot(x - self.center_x, y - self.center_y) <= self.radius


@dataclass(frozen=True)
class GestureState:
    hand_present: bool
    pinch_distance: float
    hand_depth: float
    normalized_x: float
    normalized_y: float
    is_pinching: bool
    screen_point: Optional[Point2]
    button_hit: ButtonHit = ButtonHit.NONE
    index_px: Optional[Point2] = None
    thumb_px: Optional[Point2] = None

    @classmethod
    def no_hand(cls) -> "GestureState":
        return cls(
            hand_present=False,
            pinch_distance=0.0,
            hand_depth=0.0,
            normalized_x=0.0,
            normalized_y=0.0,
            is_pinching=False,
            screen_point=None,
        )

    @property
    def draws(self) -> bool:
        """True when this frame should extend the stroke and sound the voice."""
        return self.hand_present and self.is_pinching and self.button_hit is ButtonHit.NONE


@dataclass(frozen=True)
class Segment:
    start: Point2
    end: Point2


Duration = Union[str, float]


@dataclass(frozen=True)
class Note:
    pitch_class: str
    octave: int
    duration: Duration = "q"


@dataclass(frozen=True)
class Melody:
    name: str
    tempo_bpm: float
    notes: Tuple[Note, ...]
