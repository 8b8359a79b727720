"""Camera opening with user-facing failure reasons."""

from __future__ import annotations

import logging
import os
import platform
from typing import Union
from urllib.parse import urlparse

import cv2

from .errors import (
    CameraNotFoundError,
    CameraOverconstrainedError,
    CameraPermissionError,
    CaptureError,
    InsecureSourceError,
)

logger = logging.getLogger(__name__)

LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")

# Accept the camera's nearest mode up to this far from the request.
SIZE_TOLERANCE = 0.5


def check_source(source: Union[int, str]) -> None:
    """Reject plain-HTTP streams from anywhere but this machine."""
    if not isinstance(source, str):
        return
    url = urlparse(source)
    if url.scheme == "http" and url.hostname not in LOCAL_HOSTS:
        raise InsecureSourceError(source)


def _index_failure_is_permission() -> bool:
    """
    Whether an unopened device index should be reported as a permission error.

    OpenCV only says "not opened" and cannot tell a missing camera grant from
    a missing device. On macOS the grant is by far the common cause, so the
    failure is reported as a permission error whose text also names the
    missing-device case. Elsewhere it is reported as "not found".
    """
    return platform.system() == "Darwin"


def open_camera(source: Union[int, str] = 0, width: int = 640, height: int = 480):
    """
    Open ``source`` (device index, file path or stream URL) at roughly ``width`` x ``height``.

    Raises a CaptureError subclass when the camera is unusable.
    """
    check_source(source)
    if isinstance(source, str) and source.isdigit():
        source = int(source)

    if isinstance(source, int) and platform.system() == "Darwin":
        cap = cv2.VideoCapture(source, cv2.CAP_AVFOUNDATION)
    else:
        cap = cv2.VideoCapture(source)

    if not cap.isOpened():
        cap.release()
        if isinstance(source, str) and "://" not in source and not os.path.exists(source):
            raise CameraNotFoundError(source)
        if isinstance(source, int) and _index_failure_is_permission():
            raise CameraPermissionError(f"camera index {source} could not be opened (access denied or no camera attached)")
        raise CameraNotFoundError(str(source))

    cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    got_w = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
    got_h = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
    if got_w and got_h and (
        abs(got_w - width) > width * SIZE_TOLERANCE or abs(got_h - height) > height * SIZE_TOLERANCE
    ):
        cap.release()
        raise CameraOverconstrainedError(f"asked for {width}x{height}, camera offers {int(got_w)}x{int(got_h)}")

    logger.info("camera %s opened at %dx%d", source, int(got_w or width), int(got_h or height))
    return cap


def describe_capture_error(exc: BaseException) -> str:
    if isinstance(exc, CaptureError):
        return exc.user_message
    return f"Camera error: {exc}"
