"""One camera frame in, sound and strokes out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from . import presentation as msg
from .config import AppConfig, OverlapPolicy
from .gestures import GestureClassifier
from .mapping import PitchVolume, map_pitch_volume
from .melody import MelodyScheduler
from .notes import nearest_key
from .octave import OctaveController
from .presentation import StatusBoard, StatusKind
from .strokes import DrawingStateMachine
from .types import ButtonHit, GestureState, LandmarkFrame, Region, Segment
from .voices import InstrumentVoiceEngine

logger = logging.getLogger(__name__)

_OCTAVE_DELTA = {ButtonHit.OCTAVE_UP: 1, ButtonHit.OCTAVE_DOWN: -1}


@dataclass
class FrameResult:
    gesture: GestureState
    pitch: Optional[PitchVolume] = None
    segment: Optional[Segment] = None
    octave_changed: bool = False
    error: Optional[BaseException] = None
    landmarks: Optional[LandmarkFrame] = None


class FrameProcessor:
    """
    Runs classification, octave control, mapping, drawing and the sustain
    voice for each frame, in that order.

    ``process`` and ``process_image`` never raise: a failing frame is logged
    and shown as an error status and the next frame starts clean.
    """

    def __init__(
        self,
        classifier: GestureClassifier,
        octave: OctaveController,
        strokes: DrawingStateMachine,
        engine: InstrumentVoiceEngine,
        board: Optional[StatusBoard] = None,
        config: AppConfig = AppConfig(),
        scheduler: Optional[MelodyScheduler] = None,
        on_segment: Optional[Callable[[Segment], None]] = None,
    ) -> None:
        self.classifier = classifier
        self.octave = octave
        self.strokes = strokes
        self.engine = engine
        self.board = board if board is not None else StatusBoard()
        self.scheduler = scheduler
        self.on_segment = on_segment
        self.instrument = config.instrument
        self.overlap = config.overlap
        self.board.write("octave", self.octave.label)

    # --- controls ---

    def set_instrument(self, instrument_id: str) -> None:
        if instrument_id != self.instrument:
            self.engine.stop()
            self.instrument = instrument_id

    def set_sound_enabled(self, enabled: bool) -> None:
        if not enabled:
            self.engine.stop()
        self.engine.session.set_enabled(enabled)

    def step_octave(self, delta: int) -> int:
        shift = self.octave.step(delta)
        self.board.write("octave", self.octave.label)
        return shift

    def clear_strokes(self) -> None:
        self.strokes.reset()

    # --- per frame ---

    def process_image(self, detector, image, regions: Optional[Mapping[ButtonHit, Region]] = None) -> FrameResult:
        """
        Detect the hand in a camera image with ``detector`` (anything with
        ``detect(image) -> Optional[LandmarkFrame]``) and process the result.

        A detection failure is handled like a lost hand, so the voice and
        the current stroke are released, and then reported as an error.
        """
        try:
            frame = detector.detect(image)
        except Exception as e:
            logger.exception("hand detection failed")
            result = self.process(None, regions)
            self.board.show_error(f"Hand detection error: {e}", e)
            result.error = e
            return result
        result = self.process(frame, regions)
        result.landmarks = frame
        return result

    def process(self, frame: Optional[LandmarkFrame], regions: Optional[Mapping[ButtonHit, Region]] = None) -> FrameResult:
        try:
            return self._process(frame, regions or {})
        except Exception as e:
            logger.exception("frame processing failed")
            self.board.show_error(f"Frame processing error: {e}", e)
            try:
                self.strokes.reset()
                self.engine.stop()
            except Exception:
                logger.exception("cleanup after failed frame also failed")
            return FrameResult(gesture=GestureState.no_hand(), error=e)

    def _process(self, frame: Optional[LandmarkFrame], regions: Mapping[ButtonHit, Region]) -> FrameResult:
        gesture = self.classifier.classify(frame, regions)

        if not gesture.hand_present:
            self.strokes.update(gesture)
            self.engine.stop()
            self.board.set_status(msg.SHOW_HAND, StatusKind.IDLE)
            self.board.clear_debug()
            return FrameResult(gesture=gesture)

        octave_changed = False
        if gesture.is_pinching and gesture.button_hit is not ButtonHit.NONE:
            delta = _OCTAVE_DELTA[gesture.button_hit]
            if self.octave.try_change(delta):
                octave_changed = True
                self.board.set_status(msg.OCTAVE_UP if delta > 0 else msg.OCTAVE_DOWN, StatusKind.ACTIVE)
                self.board.write("octave", self.octave.label)

        pitch = map_pitch_volume(gesture.normalized_x, gesture.normalized_y, self.octave.shift)

        segment = self.strokes.update(gesture)
        if segment is not None and self.on_segment is not None:
            self.on_segment(segment)

        if gesture.draws:
            if self._melody_has_priority():
                self.engine.stop()
            else:
                self.engine.start_or_update(self.instrument, pitch.frequency, pitch.volume)
            self.board.set_status(msg.DRAWING, StatusKind.DRAWING)
            self.board.write("frequency", f"{round(pitch.frequency)} Hz ({round(pitch.volume * 100)}%)")
        else:
            self.engine.stop()
            if gesture.button_hit is ButtonHit.NONE or not gesture.is_pinching:
                self.board.set_status(msg.READY, StatusKind.ACTIVE)
            self.board.write("frequency", f"{round(pitch.frequency)} Hz (without sound)")

        self._write_debug(gesture, pitch)
        return FrameResult(gesture=gesture, pitch=pitch, segment=segment, octave_changed=octave_changed)

    def _melody_has_priority(self) -> bool:
        return (
            self.overlap is OverlapPolicy.EXCLUSIVE
            and self.scheduler is not None
            and self.scheduler.is_playing
        )

    def _write_debug(self, gesture: GestureState, pitch: PitchVolume) -> None:
        board = self.board
        if gesture.index_px is not None:
            board.write("index", f"({round(gesture.index_px[0])}, {round(gesture.index_px[1])})")
        if gesture.thumb_px is not None:
            board.write("thumb", f"({round(gesture.thumb_px[0])}, {round(gesture.thumb_px[1])})")
        board.write("distance", f"{round(gesture.pinch_distance)} px")
        board.write("depth", f"{round(gesture.hand_depth)} px (larger = closer)")
        board.write("pinch", "closed" if gesture.is_pinching else "open")
        board.write("key", nearest_key(pitch.frequency) or msg.EMPTY)
