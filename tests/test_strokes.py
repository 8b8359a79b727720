import unittest

from pinchsynth.strokes import DrawingStateMachine, DrawState
from pinchsynth.types import ButtonHit, GestureState, Segment


def gesture(point, pinching=True, button=ButtonHit.NONE):
    return GestureState(
        hand_present=True,
        pinch_distance=10.0 if pinching else 100.0,
        hand_depth=150.0,
        normalized_x=0.5,
        normalized_y=0.5,
        is_pinching=pinching,
        screen_point=point,
        button_hit=button,
    )


class TestDrawingStateMachine(unittest.TestCase):

    def setUp(self):
        self.strokes = DrawingStateMachine()

    def test_first_pinch_frame_has_no_segment(self):
        self.assertIsNone(self.strokes.update(gesture((10, 10))))
        self.assertIs(self.strokes.state, DrawState.DRAWING)
        self.assertEqual(self.strokes.last_point, (10, 10))

    def test_continuous_pinch_emits_segments(self):
        self.strokes.update(gesture((10, 10)))
        self.assertEqual(self.strokes.update(gesture((20, 15))), Segment((10, 10), (20, 15)))
        self.assertEqual(self.strokes.update(gesture((30, 20))), Segment((20, 15), (30, 20)))

    def test_release_breaks_the_stroke(self):
        self.strokes.update(gesture((10, 10)))
        self.strokes.update(gesture((20, 20)))
        self.assertIsNone(self.strokes.update(gesture((25, 25), pinching=False)))
        self.assertIs(self.strokes.state, DrawState.IDLE)
        self.assertIsNone(self.strokes.last_point)
        # No segment bridges the gap.
        self.assertIsNone(self.strokes.update(gesture((100, 100))))
        self.assertEqual(self.strokes.update(gesture((110, 100))), Segment((100, 100), (110, 100)))

    def test_button_hit_breaks_the_stroke(self):
        self.strokes.update(gesture((10, 10)))
        self.assertIsNone(self.strokes.update(gesture((20, 20), button=ButtonHit.OCTAVE_UP)))
        self.assertIsNone(self.strokes.last_point)
        self.assertIsNone(self.strokes.update(gesture((30, 30))))

    def test_hand_loss_breaks_the_stroke(self):
        self.strokes.update(gesture((10, 10)))
        self.assertIsNone(self.strokes.update(GestureState.no_hand()))
        self.assertIs(self.strokes.state, DrawState.IDLE)

    def test_reset(self):
        self.strokes.update(gesture((10, 10)))
        self.strokes.reset()
        self.assertIsNone(self.strokes.update(gesture((20, 20))))


if __name__ == "__main__":
    unittest.main()
