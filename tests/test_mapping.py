import unittest

from pinchsynth.mapping import map_pitch_volume


class TestPitchVolumeMapping(unittest.TestCase):

    def test_frequency_endpoints(self):
        self.assertAlmostEqual(map_pitch_volume(0.0, 0.5).frequency, 110.0)
        self.assertAlmostEqual(map_pitch_volume(1.0, 0.5).frequency, 880.0)

    def test_one_octave_per_third(self):
        self.assertAlmostEqual(map_pitch_volume(1 / 3, 0.0).frequency, 220.0, places=6)
        self.assertAlmostEqual(map_pitch_volume(2 / 3, 0.0).frequency, 440.0, places=6)

    def test_octave_shift(self):
        self.assertAlmostEqual(map_pitch_volume(1.0, 0.0, octave_shift=1).frequency, 1760.0)
        self.assertAlmostEqual(map_pitch_volume(0.0, 0.0, octave_shift=-2).frequency, 27.5)

    def test_frequency_is_monotonic(self):
        freqs = [map_pitch_volume(i / 20.0, 0.5).frequency for i in range(21)]
        for lo, hi in zip(freqs, freqs[1:]):
            self.assertLess(lo, hi)

    def test_volume_range(self):
        self.assertAlmostEqual(map_pitch_volume(0.5, 0.0).volume, 0.05)
        self.assertAlmostEqual(map_pitch_volume(0.5, 1.0).volume, 0.5)
        for i in range(11):
            v = map_pitch_volume(0.5, i / 10.0).volume
            self.assertGreaterEqual(v, 0.05 - 1e-12)
            self.assertLessEqual(v, 0.5 + 1e-12)

    def test_volume_ignores_octave(self):
        self.assertEqual(map_pitch_volume(0.3, 0.7, 2).volume, map_pitch_volume(0.3, 0.7, -2).volume)


if __name__ == "__main__":
    unittest.main()
