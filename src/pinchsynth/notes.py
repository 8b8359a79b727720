"""Pitch and rhythm arithmetic."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple, Union

PITCH_CLASSES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

A4_FREQUENCY = 440.0
A_INDEX = 9  # position of A in PITCH_CLASSES

DEFAULT_TEMPO = 120.0

# Duration tokens in beats (a beat is a quarter note).
DURATION_BEATS: Dict[str, float] = {
    "w": 4.0,  # whole
    "h": 2.0,  # half
    "h.": 3.0,  # dotted half
    "q": 1.0,  # quarter
    "q.": 1.5,  # dotted quarter
    "e": 0.5,  # eighth
    "e.": 0.75,  # dotted eighth
    "s": 0.25,  # sixteenth
    "s.": 0.375,  # dotted sixteenth
}

# Keyboard shown alongside the canvas: three octaves starting at C2.
KEYBOARD_OCTAVES = (2, 3, 4)
KEY_HIGHLIGHT_TOLERANCE_HZ = 20.0


def note_frequency(pitch_class: str, octave: int) -> float:
    """
    Equal-tempered frequency relative to A4 = 440 Hz.

    >>> note_frequency("A", 4)
    440.0
    >>> round(note_frequency("C", 4), 2)
    261.63
    """
    try:
        idx = PITCH_CLASSES.index(pitch_class)
    except ValueError:
        raise ValueError(f"Unknown pitch class '{pitch_class}'. Available: {list(PITCH_CLASSES)}") from None
    return A4_FREQUENCY * 2.0 ** ((idx - A_INDEX) / 12.0 + (octave - 4))


def beat_ms(tempo_bpm: float = DEFAULT_TEMPO) -> float:
    return 60000.0 / float(tempo_bpm)


def note_duration_ms(duration: Union[str, float], tempo_bpm: float = DEFAULT_TEMPO) -> float:
    """
    Milliseconds for a duration token, or a literal millisecond value.

    Unknown tokens count as one beat.

    >>> note_duration_ms("q", 120), note_duration_ms("s.", 120), note_duration_ms(300)
    (500.0, 187.5, 300.0)
    """
    if not isinstance(duration, str):
        return float(duration)
    return beat_ms(tempo_bpm) * DURATION_BEATS.get(duration, 1.0)


def keyboard_keys() -> List[Tuple[str, float]]:
    """(name, frequency) for every key on the on-screen keyboard, low to high."""
    return [(f"{pc}{octave}", note_frequency(pc, octave)) for octave in KEYBOARD_OCTAVES for pc in PITCH_CLASSES]


def nearest_key(frequency: float, tolerance_hz: float = KEY_HIGHLIGHT_TOLERANCE_HZ) -> Optional[str]:
    """
    Name of the keyboard key closest to ``frequency`` if within ``tolerance_hz``.

    >>> nearest_key(111.0)
    'A2'
    >>> nearest_key(5000.0) is None
    True
    """
    best_name, best_diff = None, float("inf")
    for name, freq in keyboard_keys():
        diff = abs(frequency - freq)
        if diff < best_diff:
            best_name, best_diff = name, diff
    if best_diff < tolerance_hz:
        return best_name
    return None
