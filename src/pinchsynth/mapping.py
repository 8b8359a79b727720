from __future__ import annotations

from typing import NamedTuple

BASE_FREQUENCY = 110.0  # A2
OCTAVE_SPAN = 3
MIN_VOLUME = 0.05
VOLUME_RANGE = 0.45


class PitchVolume(NamedTuple):
    frequency: float
    volume: float


def map_pitch_volume(normalized_x: float, normalized_y: float, octave_shift: int = 0) -> PitchVolume:
    """
    Map a hand position to (frequency Hz, volume).

    X sweeps three octaves up from A2 exponentially, so equal hand movements
    give equal musical intervals. Y is linear volume, loudest at the top.

    >>> map_pitch_volume(0.0, 0.0)
    PitchVolume(frequency=110.0, volume=0.05)
    >>> map_pitch_volume(1.0, 0.0, octave_shift=-1)
    PitchVolume(frequency=440.0, volume=0.05)
    """
    frequency = BASE_FREQUENCY * 2.0 ** (normalized_x * OCTAVE_SPAN) * 2.0 ** octave_shift
    volume = MIN_VOLUME + normalized_y * VOLUME_RANGE
    return PitchVolume(frequency, volume)
