"""
Test cases for pinch classification with synthetic landmark frames.
"""
import unittest

from pinchsynth.gestures import GestureClassifier, hit_test
from pinchsynth.types import ButtonHit, Landmark, LandmarkFrame, Region


def make_hand(index=(0.5, 0.5), thumb=(0.6, 0.6), wrist=(0.5, 0.9), middle=(0.5, 0.5)):
    points = [(0.5, 0.5)] * 21
    points[Landmark.WRIST] = wrist
    points[Landmark.THUMB_TIP] = thumb
    points[Landmark.INDEX_FINGER_TIP] = index
    points[Landmark.MIDDLE_FINGER_TIP] = middle
    return LandmarkFrame.from_points(points)


class TestLandmarkFrame(unittest.TestCase):

    def test_requires_21_landmarks(self):
        with self.assertRaises(ValueError):
            LandmarkFrame.from_points([(0.5, 0.5)] * 20)

    def test_optional_depth(self):
        frame = LandmarkFrame.from_points([(0.1, 0.2, -0.3)] * 21)
        self.assertEqual(frame[Landmark.INDEX_FINGER_TIP].z_norm, -0.3)


class TestGestureClassifier(unittest.TestCase):
    """Classifier on a 640x480 canvas with the default 50 px threshold."""

    def setUp(self):
        self.classifier = GestureClassifier(640, 480, pinch_threshold_px=50.0)

    def test_no_hand(self):
        state = self.classifier.classify(None)
        self.assertFalse(state.hand_present)
        self.assertFalse(state.is_pinching)
        self.assertIsNone(state.screen_point)
        self.assertFalse(state.draws)

    def test_pinch_detected(self):
        state = self.classifier.classify(make_hand(index=(0.5, 0.5), thumb=(0.52, 0.5)))
        self.assertTrue(state.hand_present)
        self.assertTrue(state.is_pinching)
        self.assertAlmostEqual(state.pinch_distance, 12.8)
        self.assertTrue(state.draws)

    def test_open_hand(self):
        state = self.classifier.classify(make_hand(index=(0.5, 0.5), thumb=(0.5, 0.7)))
        self.assertFalse(state.is_pinching)
        self.assertAlmostEqual(state.pinch_distance, 96.0)
        self.assertFalse(state.draws)

    def test_threshold_is_strict(self):
        # 5/64 of 640 px is exactly 50 px.
        state = self.classifier.classify(make_hand(index=(0.5, 0.5), thumb=(0.578125, 0.5)))
        self.assertEqual(state.pinch_distance, 50.0)
        self.assertFalse(state.is_pinching)

    def test_mirrored_coordinates(self):
        state = self.classifier.classify(make_hand(index=(0.25, 0.25), thumb=(0.25, 0.26)))
        self.assertAlmostEqual(state.normalized_x, 0.75)
        self.assertAlmostEqual(state.normalized_y, 0.75)
        self.assertEqual(state.screen_point, (480.0, 120.0))
        self.assertEqual(state.index_px, (160.0, 120.0))

    def test_normalized_values_are_clamped(self):
        left = self.classifier.classify(make_hand(index=(-0.1, 1.2)))
        right = self.classifier.classify(make_hand(index=(1.2, -0.1)))
        self.assertEqual((left.normalized_x, left.normalized_y), (1.0, 0.0))
        self.assertEqual((right.normalized_x, right.normalized_y), (0.0, 1.0))

    def test_hand_depth(self):
        state = self.classifier.classify(make_hand(wrist=(0.5, 0.9), middle=(0.5, 0.5)))
        self.assertAlmostEqual(state.hand_depth, 192.0)

    def test_resize_changes_pixel_space(self):
        self.classifier.resize(1280, 960)
        state = self.classifier.classify(make_hand(index=(0.5, 0.5), thumb=(0.52, 0.5)))
        self.assertAlmostEqual(state.pinch_distance, 25.6)
        self.assertEqual(state.screen_point, (640.0, 480.0))

    def test_button_hit_blocks_drawing(self):
        regions = {ButtonHit.OCTAVE_UP: Region(320, 240, 30)}
        state = self.classifier.classify(make_hand(index=(0.5, 0.5), thumb=(0.51, 0.5)), regions)
        self.assertIs(state.button_hit, ButtonHit.OCTAVE_UP)
        self.assertTrue(state.is_pinching)
        self.assertFalse(state.draws)


class TestHitTest(unittest.TestCase):

    def test_region_boundary_is_inside(self):
        self.assertTrue(Region(0, 0, 5).contains(3, 4))
        self.assertFalse(Region(0, 0, 5).contains(3, 4.1))

    def test_overlap_prefers_octave_down(self):
        regions = {
            ButtonHit.OCTAVE_UP: Region(100, 100, 50),
            ButtonHit.OCTAVE_DOWN: Region(120, 100, 50),
        }
        self.assertIs(hit_test((110, 100), regions), ButtonHit.OCTAVE_DOWN)

    def test_miss(self):
        regions = {ButtonHit.OCTAVE_UP: Region(100, 100, 10)}
        self.assertIs(hit_test((300, 300), regions), ButtonHit.NONE)
        self.assertIs(hit_test((300, 300), {}), ButtonHit.NONE)


if __name__ == "__main__":
    unittest.main()
