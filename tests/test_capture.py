import unittest
from unittest import mock

import pytest

pytest.importorskip("cv2")

from pinchsynth.capture import check_source, describe_capture_error, open_camera  # noqa: E402
from pinchsynth.errors import (  # noqa: E402
    CameraNotFoundError,
    CameraOverconstrainedError,
    CameraPermissionError,
    CaptureError,
    InsecureSourceError,
)


class TestCheckSource(unittest.TestCase):

    def test_remote_http_is_rejected(self):
        with self.assertRaises(InsecureSourceError):
            check_source("http://192.168.1.20:8080/video")

    def test_allowed_sources(self):
        check_source(0)
        check_source("https://cam.example.com/stream")
        check_source("http://localhost:8080/video")
        check_source("http://127.0.0.1/video")
        check_source("rtsp://camera.local/stream")
        check_source("/tmp/recording.mp4")

    def test_open_camera_rejects_before_opening(self):
        with self.assertRaises(InsecureSourceError):
            open_camera("http://example.com/stream.mjpg")

    def test_missing_file(self):
        with self.assertRaises(CameraNotFoundError):
            open_camera("/nonexistent/pinchsynth/clip.mp4")


class TestUnopenedIndex(unittest.TestCase):

    def _open_on(self, system):
        closed = mock.Mock()
        closed.isOpened.return_value = False
        with mock.patch("pinchsynth.capture.platform.system", return_value=system), \
                mock.patch("pinchsynth.capture.cv2.VideoCapture", return_value=closed):
            open_camera(3)

    def test_macos_names_both_causes(self):
        with self.assertRaises(CameraPermissionError) as ctx:
            self._open_on("Darwin")
        self.assertIn("camera index 3", ctx.exception.detail)
        self.assertIn("no camera attached", ctx.exception.detail)
        self.assertIn("no camera attached", describe_capture_error(ctx.exception))

    def test_linux_reports_not_found(self):
        with self.assertRaises(CameraNotFoundError):
            self._open_on("Linux")


class TestCaptureMessages(unittest.TestCase):

    def test_each_error_has_its_own_message(self):
        classes = (CameraPermissionError, CameraNotFoundError, CameraOverconstrainedError, InsecureSourceError)
        messages = {describe_capture_error(cls("detail")) for cls in classes}
        self.assertEqual(len(messages), len(classes))
        self.assertNotIn(CaptureError.user_message, messages)

    def test_detail_is_kept(self):
        err = CameraNotFoundError("camera index 3")
        self.assertEqual(err.detail, "camera index 3")
        self.assertEqual(str(err), "camera index 3")

    def test_other_errors(self):
        self.assertEqual(describe_capture_error(OSError("busy")), "Camera error: busy")


if __name__ == "__main__":
    unittest.main()
