from __future__ import annotations

import enum
from dataclasses import dataclass, field


# --- Tuning knobs ---
PINCH_THRESHOLD_PX = 50.0  # tuned for a full-screen canvas
OCTAVE_COOLDOWN_S = 0.5
OCTAVE_MIN = -2
OCTAVE_MAX = 2
MELODY_GAP_MS = 50.0
MASTER_LEVEL = 0.3
SAMPLE_RATE = 44100
DEFAULT_INSTRUMENT = "flute1"
DEFAULT_MELODY = "scale"
DEFAULT_DRAW_COLOR = "#ff0000"


class OverlapPolicy(enum.Enum):
    """How the live pinch voice behaves while a melody is playing."""

    LAYER = "layer"  # both play at once
    EXCLUSIVE = "exclusive"  # live voice is silenced until the melody ends


@dataclass(frozen=True)
class DetectorProfile:
    model_complexity: int
    min_detection_confidence: float
    min_tracking_confidence: float
    width: int
    height: int
    facing: str  # "user" / "environment"
    max_num_hands: int = 1


DESKTOP_PROFILE = DetectorProfile(
    model_complexity=1,
    min_detection_confidence=0.5,
    min_tracking_confidence=0.5,
    width=640,
    height=480,
    facing="user",
)

# Lighter model and stricter confidences for low-power devices.
CONSTRAINED_PROFILE = DetectorProfile(
    model_complexity=0,
    min_detection_confidence=0.6,
    min_tracking_confidence=0.6,
    width=480,
    height=360,
    facing="environment",
)

PROFILES = {"desktop": DESKTOP_PROFILE, "constrained": CONSTRAINED_PROFILE}


@dataclass(frozen=True)
class AppConfig:
    instrument: str = DEFAULT_INSTRUMENT
    melody: str = DEFAULT_MELODY
    draw_color: str = DEFAULT_DRAW_COLOR
    line_width: int = 1
    sound_enabled: bool = True
    pinch_threshold_px: float = PINCH_THRESHOLD_PX
    octave_cooldown_s: float = OCTAVE_COOLDOWN_S
    overlap: OverlapPolicy = OverlapPolicy.LAYER
    sample_rate: int = SAMPLE_RATE
    master_level: float = MASTER_LEVEL
    profile: DetectorProfile = field(default=DESKTOP_PROFILE)
