from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2

from .config import DESKTOP_PROFILE, DetectorProfile
from .model_assets import ensure_hand_landmarker_task
from .types import HandLandmark, LandmarkFrame

logger = logging.getLogger(__name__)


HAND_CONNECTIONS: List[Tuple[int, int]] = [
    # thumb
    (0, 1), (1, 2), (2, 3), (3, 4),
    # index
    (0, 5), (5, 6), (6, 7), (7, 8),
    # middle
    (5, 9), (9, 10), (10, 11), (11, 12),
    # ring
    (9, 13), (13, 14), (14, 15), (15, 16),
    # pinky
    (13, 17), (17, 18), (18, 19), (19, 20),
    # palm base
    (0, 17),
]


@dataclass(frozen=True)
class _SolutionsBackend:
    hands: object


@dataclass(frozen=True)
class _TasksBackend:
    mp: object
    landmarker: object


def _create_solutions_backend(profile: DetectorProfile) -> Optional[_SolutionsBackend]:
    import mediapipe as mp  # type: ignore

    if not hasattr(mp, "solutions"):
        return None
    hands = mp.solutions.hands.Hands(
        static_image_mode=False,
        max_num_hands=profile.max_num_hands,
        model_complexity=profile.model_complexity,
        min_detection_confidence=profile.min_detection_confidence,
        min_tracking_confidence=profile.min_tracking_confidence,
    )
    return _SolutionsBackend(hands=hands)


def _create_tasks_backend(profile: DetectorProfile, model_path: str) -> _TasksBackend:
    """
    Fallback for mediapipe builds without `mp.solutions`.

    The Tasks HandLandmarker needs a `.task` model on disk; it is fetched on
    first use. Model complexity has no Tasks equivalent and is ignored.
    """
    import mediapipe as mp  # type: ignore
    from mediapipe.tasks.python import BaseOptions  # type: ignore
    from mediapipe.tasks.python.vision import HandLandmarker, HandLandmarkerOptions, RunningMode  # type: ignore

    model_path = ensure_hand_landmarker_task(model_path)
    options = HandLandmarkerOptions(
        base_options=BaseOptions(model_asset_path=model_path),
        running_mode=RunningMode.VIDEO,
        num_hands=profile.max_num_hands,
        min_hand_detection_confidence=profile.min_detection_confidence,
        min_tracking_confidence=profile.min_tracking_confidence,
    )
    return _TasksBackend(mp=mp, landmarker=HandLandmarker.create_from_options(options))


class HandLandmarkDetector:
    """
    Single-hand landmark detector on top of MediaPipe Hands.

    Input frames are **BGR** (OpenCV default) and are not mirrored; the
    gesture classifier does the mirroring. Returns None when no hand is seen.
    """

    def __init__(
        self,
        profile: DetectorProfile = DESKTOP_PROFILE,
        tasks_model_path: str = "models/hand_landmarker.task",
        frame_interval_ms: int = 33,
    ) -> None:
        self.profile = profile
        self._frame_interval_ms = frame_interval_ms
        self._timestamp_ms = 0
        self._tasks: Optional[_TasksBackend] = None
        self._solutions = _create_solutions_backend(profile)
        if self._solutions is None:
            logger.info("mediapipe has no solutions API, using the Tasks HandLandmarker")
            try:
                self._tasks = _create_tasks_backend(profile, tasks_model_path)
            except FileNotFoundError as e:
                raise RuntimeError(
                    "MediaPipe Tasks HandLandmarker needs a model file on disk:\n"
                    f"  {tasks_model_path}\n"
                    "Download it and try again."
                ) from e

    def close(self) -> None:
        if self._solutions is not None:
            self._solutions.hands.close()
        if self._tasks is not None:
            self._tasks.landmarker.close()

    def __enter__(self) -> "HandLandmarkDetector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def detect(self, frame_bgr) -> Optional[LandmarkFrame]:
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        if self._solutions is not None:
            results = self._solutions.hands.process(frame_rgb)
            if not results.multi_hand_landmarks:
                return None
            label, score = None, None
            handedness = results.multi_handedness or []
            if handedness and handedness[0].classification:
                c = handedness[0].classification[0]
                label = getattr(c, "label", None)
                score = float(getattr(c, "score", 0.0))
            return _to_frame(results.multi_hand_landmarks[0].landmark, label, score)

        mp = self._tasks.mp
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        # VIDEO mode needs strictly increasing timestamps.
        self._timestamp_ms += self._frame_interval_ms
        result = self._tasks.landmarker.detect_for_video(mp_image, self._timestamp_ms)

        hands = getattr(result, "hand_landmarks", None) or []
        if not hands:
            return None
        label, score = None, None
        handedness = getattr(result, "handedness", None) or []
        if handedness and handedness[0]:
            cat = handedness[0][0]
            label = getattr(cat, "category_name", None) or getattr(cat, "display_name", None)
            score = float(getattr(cat, "score", 0.0))
        return _to_frame(hands[0], label, score)


def _to_frame(landmarks, label: Optional[str], score: Optional[float]) -> LandmarkFrame:
    lms = tuple(
        HandLandmark(idx=idx, x_norm=float(lm.x), y_norm=float(lm.y), z_norm=float(getattr(lm, "z", 0.0)))
        for idx, lm in enumerate(landmarks)
    )
    return LandmarkFrame(landmarks=lms, handedness_label=label, handedness_score=score)
