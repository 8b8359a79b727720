from __future__ import annotations


class PinchSynthError(Exception):
    """Base class for errors raised by pinchsynth."""


class CaptureError(PinchSynthError):
    """The camera could not be opened. ``user_message`` is meant for the status line."""

    user_message = "Camera error."

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.user_message)
        self.detail = detail


class CameraPermissionError(CaptureError):
    # Also raised when no camera is attached on systems that cannot tell the two apart.
    user_message = (
        "Camera access denied or no camera attached. Allow camera access for this terminal/app "
        "in the system privacy settings and check that a camera is connected."
    )


class CameraNotFoundError(CaptureError):
    user_message = "No camera found. Connect a camera and restart."


class CameraOverconstrainedError(CaptureError):
    user_message = "The camera does not support the requested settings. Try another camera or resolution."


class InsecureSourceError(CaptureError):
    user_message = "Insecure camera stream. Remote streams need HTTPS (plain HTTP only works for localhost)."


class NodeStateError(PinchSynthError):
    """An audio node was started or stopped twice."""
