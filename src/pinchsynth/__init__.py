from .audio import AudioSession
from .gestures import GestureClassifier
from .mapping import map_pitch_volume
from .melody import MELODIES, MelodyScheduler
from .octave import OctaveController
from .pipeline import FrameProcessor, FrameResult
from .strokes import DrawingStateMachine
from .types import GestureState, LandmarkFrame, Segment
from .voices import InstrumentVoiceEngine

__all__ = [
    "AudioSession",
    "DrawingStateMachine",
    "FrameProcessor",
    "FrameResult",
    "GestureClassifier",
    "GestureState",
    "InstrumentVoiceEngine",
    "LandmarkFrame",
    "MELODIES",
    "MelodyScheduler",
    "OctaveController",
    "Segment",
    "map_pitch_volume",
]
