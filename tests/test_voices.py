import unittest
from unittest import mock

import numpy as np

from pinchsynth import recipes
from pinchsynth.audio import AudioSession
from pinchsynth.recipes import DEFAULT_RECIPE, OscillatorSpec, Topology, VoiceRecipe, get_recipe, instrument_ids
from pinchsynth.voices import FADE_OUT_S, InstrumentVoiceEngine, build_graph

SR = 8000


def seconds(s):
    return int(SR * s)


class TestSustainVoice(unittest.TestCase):

    def setUp(self):
        self.errors = []
        self.session = AudioSession(sample_rate=SR)
        self.engine = InstrumentVoiceEngine(self.session, on_error=lambda msg, exc: self.errors.append((msg, exc)))

    def test_start_and_glide_keeps_the_same_voice(self):
        voice = self.engine.start_or_update("flute1", 110.0, 0.3)
        self.assertIsNotNone(voice)
        self.assertTrue(self.engine.is_playing)
        osc = voice.graph.partials[0].osc
        self.assertAlmostEqual(osc.frequency.value, 110.0)

        self.session.render(seconds(0.1))
        again = self.engine.start_or_update("flute1", 880.0, 0.4)
        self.assertIs(again, voice)
        self.assertIs(again.graph.partials[0].osc, osc)
        self.assertEqual(voice.frequency, 880.0)

        self.session.render(seconds(0.5))
        self.assertAlmostEqual(osc.frequency.value, 880.0, places=3)
        self.assertAlmostEqual(voice.graph.output.gain.value, 0.4, places=3)
        self.assertAlmostEqual(self.session.master_gain.gain.value, self.session.master_level)
        self.assertEqual(self.errors, [])

    def test_voice_is_audible(self):
        self.engine.start_or_update("flute1", 440.0, 0.5)
        out = self.session.render(seconds(0.2))
        self.assertGreater(float(np.max(np.abs(out))), 0.1)

    def test_smooth_glide_reaches_target(self):
        voice = self.engine.start_or_update("theremin", 220.0, 0.3)
        self.engine.start_or_update("theremin", 440.0, 0.3)
        osc = voice.graph.partials[0].osc
        self.session.render(seconds(0.1))
        self.assertAlmostEqual(osc.frequency.value_at(self.session.current_time), 440.0, places=3)

    def test_stop_fades_out_and_is_idempotent(self):
        voice = self.engine.start_or_update("organ", 220.0, 0.5)
        self.session.render(seconds(0.1))
        self.engine.stop()
        self.engine.stop()
        self.assertIsNone(self.engine.active_voice)
        self.assertFalse(voice.playing)
        self.assertFalse(self.engine.is_playing)

        self.session.render(seconds(0.1))
        tail = self.session.render(seconds(0.1))
        self.assertLess(float(np.max(np.abs(tail))), 1e-3)

    def test_stop_without_voice(self):
        self.engine.stop()
        self.assertIsNone(self.engine.active_voice)

    def test_restart_after_stop(self):
        self.engine.start_or_update("flute1", 220.0, 0.3)
        self.engine.stop()
        voice = self.engine.start_or_update("flute1", 330.0, 0.3)
        self.assertTrue(voice.playing)
        self.session.render(seconds(0.2))
        self.assertAlmostEqual(voice.graph.output.gain.value, 0.3, places=3)
        self.assertAlmostEqual(self.session.master_gain.gain.value, self.session.master_level)

    def test_restart_inside_fade_keeps_old_fade(self):
        old = self.engine.start_or_update("flute1", 220.0, 0.3)
        self.session.render(seconds(0.1))
        self.engine.stop()
        fade_end = self.session.current_time + FADE_OUT_S
        self.session.render(seconds(0.02))

        new = self.engine.start_or_update("flute1", 330.0, 0.3)
        self.assertIsNot(new, old)
        self.session.render(seconds(0.1))
        self.assertLess(old.graph.output.gain.value_at(fade_end), 1e-3)
        # The faded graph is dropped from the master once its sources stop.
        self.assertNotIn(old.graph.output, self.session.master_gain._inputs)
        self.assertAlmostEqual(new.graph.output.gain.value, 0.3, places=3)

    def test_instrument_change_replaces_voice(self):
        old = self.engine.start_or_update("flute1", 220.0, 0.3)
        new = self.engine.start_or_update("violin", 220.0, 0.3)
        self.assertIsNot(old, new)
        self.assertFalse(old.playing)
        self.assertEqual(self.engine.active_voice.instrument_id, "violin")

    def test_unknown_instrument_uses_default(self):
        voice = self.engine.start_or_update("kazoo", 220.0, 0.3)
        self.assertIs(voice.graph.recipe, DEFAULT_RECIPE)

    def test_disabled_session_is_silent(self):
        self.session.set_enabled(False)
        self.assertIsNone(self.engine.start_or_update("flute1", 220.0, 0.3))
        self.assertIsNone(self.engine.play_note("flute1", 220.0, 200))
        self.assertEqual(self.session.bus_size, 0)

    def test_build_failure_is_reported(self):
        bad = VoiceRecipe("bad", Topology.PURE, (OscillatorSpec("organ-pipe"),))
        with mock.patch.dict(recipes.INSTRUMENTS, {"bad": bad}):
            self.assertIsNone(self.engine.start_or_update("bad", 220.0, 0.3))
        self.assertIsNone(self.engine.active_voice)
        self.assertEqual(len(self.errors), 1)
        self.assertIsInstance(self.errors[0][1], ValueError)


class TestOneShot(unittest.TestCase):

    def setUp(self):
        self.session = AudioSession(sample_rate=SR)
        self.engine = InstrumentVoiceEngine(self.session)

    def test_note_drops_off_the_bus(self):
        graph = self.engine.play_note("piano", 440.0, 200)
        self.assertIsNotNone(graph)
        self.assertEqual(self.session.bus_size, 1)
        self.session.render(seconds(0.1))
        self.assertEqual(self.session.bus_size, 1)
        self.session.render(seconds(0.2))
        self.assertEqual(self.session.bus_size, 0)

    def test_note_does_not_touch_the_live_voice(self):
        voice = self.engine.start_or_update("flute1", 220.0, 0.3)
        self.engine.play_note("bells", 880.0, 300)
        self.assertIs(self.engine.active_voice, voice)
        self.assertTrue(voice.playing)

    def test_every_instrument_renders(self):
        for instrument_id in instrument_ids():
            with self.subTest(instrument=instrument_id):
                session = AudioSession(sample_rate=SR)
                engine = InstrumentVoiceEngine(session)
                self.assertIsNotNone(engine.play_note(instrument_id, 440.0, 100))
                out = session.render(seconds(0.3))
                self.assertTrue(np.all(np.isfinite(out)))
                self.assertGreater(float(np.max(np.abs(out))), 0.0)
                self.assertEqual(session.bus_size, 0)


class TestMasterLevel(unittest.TestCase):

    def _peaks(self, master_level):
        session = AudioSession(sample_rate=SR, master_level=master_level)
        engine = InstrumentVoiceEngine(session)
        engine.start_or_update("flute1", 440.0, 0.5)
        sustain = session.render(seconds(0.5))[-seconds(0.1):]
        engine.stop()
        session.render(seconds(0.1))
        engine.play_note("piano", 440.0, 200)
        note = session.render(seconds(0.1))
        return float(np.max(np.abs(sustain))), float(np.max(np.abs(note)))

    def test_master_level_scales_live_voice_and_notes(self):
        quiet_sustain, quiet_note = self._peaks(0.1)
        loud_sustain, loud_note = self._peaks(0.9)
        self.assertAlmostEqual(quiet_sustain, 0.05, places=2)
        self.assertAlmostEqual(loud_sustain, 9 * quiet_sustain, places=4)
        self.assertGreater(quiet_note, 0.0)
        self.assertAlmostEqual(loud_note, 9 * quiet_note, places=4)


class TestBuildGraph(unittest.TestCase):

    def test_topologies(self):
        session = AudioSession(sample_rate=SR)
        flute2 = build_graph(session, get_recipe("flute2"), 440.0)
        self.assertEqual(len(flute2.vibratos), 1)
        flute3 = build_graph(session, get_recipe("flute3"), 440.0)
        self.assertIsNotNone(flute3.noise)
        self.assertAlmostEqual(flute3.noise_filter.frequency.value, 440.0)
        recorder = build_graph(session, get_recipe("recorder"), 440.0)
        self.assertAlmostEqual(recorder.filter.frequency.value, 1320.0)
        piano = build_graph(session, get_recipe("piano"), 440.0)
        self.assertEqual([p.ratio for p in piano.partials], [1, 2, 3, 4, 5])


if __name__ == "__main__":
    unittest.main()
