import unittest

from pinchsynth.utils import clamp, distance, format_signed, hex_to_bgr


class TestUtils(unittest.TestCase):

    def test_clamp(self):
        self.assertEqual(clamp(1.5, 0.0, 1.0), 1.0)
        self.assertEqual(clamp(-0.5, 0.0, 1.0), 0.0)
        self.assertEqual(clamp(0.25, 0.0, 1.0), 0.25)

    def test_distance(self):
        self.assertEqual(distance((0, 0), (3, 4)), 5.0)

    def test_hex_to_bgr(self):
        self.assertEqual(hex_to_bgr("#4ade80"), (128, 222, 74))
        self.assertEqual(hex_to_bgr("00ff00"), (0, 255, 0))
        with self.assertRaises(ValueError):
            hex_to_bgr("#fff")
        with self.assertRaises(ValueError):
            hex_to_bgr("#gggggg")

    def test_format_signed(self):
        self.assertEqual([format_signed(v) for v in (-2, -1, 0, 1, 2)], ["-2", "-1", "0", "+1", "+2"])


if __name__ == "__main__":
    unittest.main()
