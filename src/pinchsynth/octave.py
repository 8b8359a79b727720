from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from .config import OCTAVE_COOLDOWN_S, OCTAVE_MAX, OCTAVE_MIN
from .utils import clamp_int, format_signed

logger = logging.getLogger(__name__)


@dataclass
class OctaveState:
    shift: int = 0
    last_change: float = float("-inf")


class OctaveController:
    """
    Debounced octave offset in [OCTAVE_MIN, OCTAVE_MAX].

    ``try_change`` is the gesture path: it refuses changes closer together
    than the cooldown so that holding a pinch over a button moves one octave,
    not five. ``step`` is the manual-button path and only clamps.
    """

    def __init__(
        self,
        cooldown_s: float = OCTAVE_COOLDOWN_S,
        clock: Callable[[], float] = time.monotonic,
        lo: int = OCTAVE_MIN,
        hi: int = OCTAVE_MAX,
    ) -> None:
        self.cooldown_s = cooldown_s
        self.lo = lo
        self.hi = hi
        self._clock = clock
        self._state = OctaveState()

    @property
    def shift(self) -> int:
        return self._state.shift

    @property
    def label(self) -> str:
        return format_signed(self._state.shift)

    def try_change(self, delta: int) -> bool:
        now = self._clock()
        if now - self._state.last_change < self.cooldown_s:
            return False
        new_shift = self._state.shift + delta
        if not (self.lo <= new_shift <= self.hi):
            return False
        self._state.shift = new_shift
        self._state.last_change = now
        logger.debug("octave shift -> %s", self.label)
        return True

    def step(self, delta: int) -> int:
        self._state.shift = clamp_int(self._state.shift + delta, self.lo, self.hi)
        return self._state.shift
