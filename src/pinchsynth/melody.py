from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Iterable, Optional, Tuple

from .config import MELODY_GAP_MS
from .notes import DEFAULT_TEMPO, note_duration_ms, note_frequency
from .types import Melody, Note
from .voices import InstrumentVoiceEngine

logger = logging.getLogger(__name__)


def _notes(rows: Iterable[Tuple[str, int, str]]) -> Tuple[Note, ...]:
    return tuple(Note(pc, octave, dur) for pc, octave, dur in rows)


_MELODY1_PHRASE = [
    ("E", 4, "q"), ("G", 4, "e"), ("F", 4, "e"), ("E", 4, "q"), ("D", 4, "q"),
    ("C", 4, "q"), ("D", 4, "q"), ("E", 4, "q"),
]
_MELODY2_RIFF = [
    ("E", 4, "e"), ("A", 4, "e"), ("C", 5, "e"), ("B", 4, "e"), ("A", 4, "e"),
    ("E", 4, "e"), ("D", 4, "e"), ("B", 4, "e"), ("A", 4, "e"),
]
_MELODY2_TAIL = [("C", 5, "e"), ("B", 4, "e"), ("G", 4, "e"), ("B", 4, "e"), ("E", 4, "e"), ("A", 4, "e")]
_MELODY3_PHRASE = [
    ("A", 3, "q."), ("E", 4, "e"), ("F", 4, "e"), ("E", 4, "e"), ("A", 3, "q"),
    ("C", 4, "e."), ("D", 4, "e."), ("C", 4, "e."), ("A", 3, "e"), ("D", 4, "q"),
]

MELODIES: Dict[str, Melody] = {
    "scale": Melody(
        "Scale",
        120,
        _notes(
            [(pc, 3, "q") for pc in ("C", "D", "E", "F", "G", "A", "B")]
            + [("C", 4, "q")]
            + [(pc, 3, "q") for pc in ("B", "A", "G", "F", "E", "D", "C")]
        ),
    ),
    "melody1": Melody(
        "Melody 1",
        120,
        _notes(
            _MELODY1_PHRASE
            + [("E", 4, "e."), ("D", 4, "s"), ("D", 4, "h")]
            + _MELODY1_PHRASE
            + [("D", 4, "e."), ("C", 4, "s"), ("C", 4, "h")]
        ),
    ),
    "melody2": Melody(
        "Melody 2",
        140,
        _notes(
            _MELODY2_RIFF
            + _MELODY2_TAIL * 2
            + [("C", 5, "e"), ("B", 4, "e"), ("G", 4, "e"), ("B", 4, "e"), ("A", 4, "e"), ("E", 4, "q")]
        ),
    ),
    "melody3": Melody("Melody 3", 100, _notes(_MELODY3_PHRASE * 2)),
}


def melody_schedule(melody: Melody):
    """Yield (note, frequency Hz, duration ms) for each note of ``melody``."""
    tempo = melody.tempo_bpm or DEFAULT_TEMPO
    for note in melody.notes:
        yield note, note_frequency(note.pitch_class, note.octave), note_duration_ms(note.duration, tempo)


class MelodyScheduler:
    """
    Plays a Melody as one-shot notes, one at a time, as an asyncio task.

    Only one melody plays at a time; ``play`` while busy is ignored. The
    running task can be cancelled with ``cancel``, which takes effect at the
    next await (between notes). ``on_note`` receives (note, frequency) before
    each note sounds; ``on_finish`` runs when the melody ends for any reason.
    """

    def __init__(
        self,
        engine: InstrumentVoiceEngine,
        gap_ms: float = MELODY_GAP_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_note: Optional[Callable[[Note, float], None]] = None,
        on_finish: Optional[Callable[[], None]] = None,
    ) -> None:
        self.engine = engine
        self.gap_ms = gap_ms
        self._sleep = sleep
        self._on_note = on_note
        self._on_finish = on_finish
        self._task: Optional[asyncio.Task] = None
        self._playing = False

    @property
    def is_playing(self) -> bool:
        return self._playing

    def play(self, melody: Melody, instrument_id: str) -> Optional[asyncio.Task]:
        """Start ``melody``; returns the task, or None if a melody is already playing."""
        if self._playing:
            logger.warning("melody '%s' ignored: another melody is playing", melody.name)
            return None
        self._playing = True
        self._task = asyncio.get_running_loop().create_task(self._run(melody, instrument_id))
        return self._task

    def cancel(self) -> bool:
        if self._task is None or self._task.done():
            return False
        return self._task.cancel()

    async def _run(self, melody: Melody, instrument_id: str) -> None:
        logger.info("playing melody '%s' (%d notes at %s BPM)", melody.name, len(melody.notes), melody.tempo_bpm)
        try:
            for note, freq, duration_ms in melody_schedule(melody):
                if self._on_note is not None:
                    self._on_note(note, freq)
                self.engine.play_note(instrument_id, freq, duration_ms)
                await self._sleep((duration_ms + self.gap_ms) / 1000.0)
        except asyncio.CancelledError:
            logger.info("melody '%s' cancelled", melody.name)
            raise
        finally:
            self._playing = False
            self._task = None
            if self._on_finish is not None:
                self._on_finish()
        logger.info("melody '%s' finished", melody.name)
