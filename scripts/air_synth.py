#!/usr/bin/env python3
"""
Draw in the air and play what you draw.

Pinch thumb and index finger to draw; the pen position sets pitch
(left to right) and volume (bottom to top). Pinch over the round
buttons on the right to shift the octave.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from pinchsynth.audio import AudioSession  # noqa: E402
from pinchsynth.capture import describe_capture_error, open_camera  # noqa: E402
from pinchsynth.config import PROFILES, AppConfig, OverlapPolicy  # noqa: E402
from pinchsynth.detector import HandLandmarkDetector  # noqa: E402
from pinchsynth.drawing import StrokeCanvas, draw_hand, draw_hud, draw_regions  # noqa: E402
from pinchsynth.errors import CaptureError  # noqa: E402
from pinchsynth.gestures import GestureClassifier  # noqa: E402
from pinchsynth.melody import MELODIES, MelodyScheduler  # noqa: E402
from pinchsynth.notes import nearest_key  # noqa: E402
from pinchsynth.octave import OctaveController  # noqa: E402
from pinchsynth.pipeline import FrameProcessor  # noqa: E402
from pinchsynth.presentation import EMPTY, StatusBoard, octave_regions  # noqa: E402
from pinchsynth.recipes import instrument_ids  # noqa: E402
from pinchsynth.strokes import DrawingStateMachine  # noqa: E402
from pinchsynth.types import ButtonHit  # noqa: E402
from pinchsynth.utils import hex_to_bgr  # noqa: E402
from pinchsynth.voices import InstrumentVoiceEngine  # noqa: E402

PALETTE = ("#ff0000", "#4ade80", "#3b82f6", "#facc15", "#d946ef", "#ffffff")
WINDOW = "pinchsynth - air synth"


class App:
    """Key bindings and the state they touch."""

    def __init__(self, config: AppConfig, processor: FrameProcessor, scheduler: MelodyScheduler, canvas: StrokeCanvas):
        self.processor = processor
        self.scheduler = scheduler
        self.canvas = canvas
        self.instruments = instrument_ids()
        self.melodies = list(MELODIES.keys())
        self.instrument = config.instrument
        self.melody = config.melody
        self.color = hex_to_bgr(config.draw_color)
        self.line_width = config.line_width
        self.sound = config.sound_enabled

    def draw_segment(self, segment) -> None:
        self.canvas.draw_segment(segment, self.color, self.line_width)

    def _cycle(self, items, current, step):
        idx = items.index(current) if current in items else 0
        return items[(idx + step) % len(items)]

    def handle_key(self, key: int) -> bool:
        """Apply one key press. Returns False to quit."""
        if key in (ord("q"), 27):
            return False
        if key == ord("c"):
            self.canvas.clear()
            self.processor.clear_strokes()
        elif key == ord("s"):
            self.sound = not self.sound
            self.processor.set_sound_enabled(self.sound)
            print(f"Sound: {'on' if self.sound else 'off'}")
        elif key == ord("p"):
            self.scheduler.play(MELODIES[self.melody], self.instrument)
        elif key == ord("x"):
            self.scheduler.cancel()
        elif key in (ord("["), ord("]")):
            self.instrument = self._cycle(self.instruments, self.instrument, 1 if key == ord("]") else -1)
            self.processor.set_instrument(self.instrument)
            print(f"Instrument: {self.instrument}")
        elif key == ord("m"):
            self.melody = self._cycle(self.melodies, self.melody, 1)
            print(f"Melody: {MELODIES[self.melody].name}")
        elif key in (ord("+"), ord("=")):
            self.processor.step_octave(1)
        elif key in (ord("-"), ord("_")):
            self.processor.step_octave(-1)
        elif ord("1") <= key < ord("1") + len(PALETTE):
            self.color = hex_to_bgr(PALETTE[key - ord("1")])
        return True


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Hand-gesture air drawing synthesizer.")
    ap.add_argument("--camera", type=str, default="0", help="Camera index, video file or stream URL (default: 0)")
    ap.add_argument("--profile", choices=list(PROFILES.keys()), default="desktop", help="Detector profile")
    ap.add_argument("--instrument", choices=instrument_ids(), default=AppConfig.instrument)
    ap.add_argument("--melody", choices=list(MELODIES.keys()), default=AppConfig.melody)
    ap.add_argument("--color", default=AppConfig.draw_color, help="Pen colour as #rrggbb")
    ap.add_argument("--line-width", type=int, default=AppConfig.line_width)
    ap.add_argument("--no-sound", action="store_true", help="Start with sound off")
    ap.add_argument("--pinch-threshold", type=float, default=AppConfig.pinch_threshold_px, help="Pinch distance in px")
    ap.add_argument("--overlap", choices=[p.value for p in OverlapPolicy], default=AppConfig.overlap.value,
                    help="Live voice while a melody plays: layer both, or silence the live voice")
    ap.add_argument("--sample-rate", type=int, default=AppConfig.sample_rate)
    ap.add_argument("--volume", type=float, default=AppConfig.master_level, help="Master level (default: 0.3)")
    ap.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return ap.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    config = AppConfig(
        instrument=args.instrument,
        melody=args.melody,
        draw_color=args.color,
        line_width=args.line_width,
        sound_enabled=not args.no_sound,
        pinch_threshold_px=args.pinch_threshold,
        overlap=OverlapPolicy(args.overlap),
        sample_rate=args.sample_rate,
        master_level=args.volume,
        profile=PROFILES[args.profile],
    )
    profile = config.profile

    try:
        cap = open_camera(args.camera, profile.width, profile.height)
    except CaptureError as e:
        print(describe_capture_error(e))
        return 1

    board = StatusBoard()
    session = AudioSession(sample_rate=config.sample_rate, master_level=config.master_level)
    session.set_enabled(config.sound_enabled)
    engine = InstrumentVoiceEngine(session, on_error=lambda message, exc: board.show_error(message, exc))

    def on_note(note, frequency):
        board.write("melody_key", nearest_key(frequency) or EMPTY)

    scheduler = MelodyScheduler(engine, on_note=on_note, on_finish=lambda: board.write("melody_key", EMPTY))
    canvas = StrokeCanvas(profile.width, profile.height)
    processor = FrameProcessor(
        GestureClassifier(profile.width, profile.height, config.pinch_threshold_px),
        OctaveController(config.octave_cooldown_s),
        DrawingStateMachine(),
        engine,
        board=board,
        config=config,
        scheduler=scheduler,
    )
    app = App(config, processor, scheduler, canvas)
    processor.on_segment = app.draw_segment

    print(f"Instrument: {config.instrument} | melody: {MELODIES[config.melody].name}")
    print("Pinch to draw and play. Keys: c clear, s sound, p/x play/stop melody,")
    print("[ ] instrument, m melody, +/- octave, 1-6 colour, q or ESC to quit")

    try:
        with session, HandLandmarkDetector(profile) as detector:
            while True:
                ok, frame = await asyncio.to_thread(cap.read)
                if not ok:
                    break

                h, w = frame.shape[:2]
                processor.classifier.resize(w, h)
                canvas.resize(w, h)
                regions = octave_regions(w, h)
                # Detection runs off the event loop; failures come back as result.error.
                result = await asyncio.to_thread(processor.process_image, detector, frame, regions)

                view = cv2.flip(frame, 1)
                canvas.composite(view)
                draw_regions(view, regions, result.gesture.button_hit if result.gesture.is_pinching else ButtonHit.NONE)
                draw_hand(view, result.landmarks, result.gesture)
                draw_hud(view, board, [f"instrument: {app.instrument}", f"sound: {'on' if app.sound else 'off'}"])
                cv2.imshow(WINDOW, view)

                key = cv2.waitKey(1) & 0xFF
                if key != 255 and not app.handle_key(key):
                    break
                # Let the melody task run between frames.
                await asyncio.sleep(0)
    finally:
        scheduler.cancel()
        engine.stop()
        cap.release()
        cv2.destroyAllWindows()
    return 0


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="[%(levelname)s] %(name)s: %(message)s")
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
