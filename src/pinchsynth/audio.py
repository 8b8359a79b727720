"""
Block-rendered audio graph.

A small node graph in the spirit of the browser's audio API: sources
(oscillators, noise), processors (gain, biquad filter) and automatable
parameters, pulled once per output block by ``AudioSession.render``. The
session owns the sample clock, the master gain the live voice feeds, the mix
bus that one-shot notes attach to, and the sounddevice output stream. Both
the master gain and the bus are scaled by ``master_level``.
"""

from __future__ import annotations

import bisect
import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from scipy import signal

from .config import MASTER_LEVEL, SAMPLE_RATE
from .errors import NodeStateError

logger = logging.getLogger(__name__)

# Exponential ramps cannot reach zero; this is "silent".
SILENT_GAIN = 1e-4

WAVEFORMS = ("sine", "square", "sawtooth", "triangle")
FILTER_TYPES = ("lowpass", "bandpass")

_RAMPS = ("linear", "exp")


# -------------------------------------------------------------------------------
# Parameters
# -------------------------------------------------------------------------------


@dataclass
class _Event:
    kind: str  # "set" | "linear" | "exp" | "target"
    time: float  # set/target: start time; ramps: time the ramp was scheduled
    value: float
    end: float = 0.0  # ramps only
    tau: float = 0.0  # target only
    # resolved lazily: effective start time and value at that time
    t0: Optional[float] = None
    v0: Optional[float] = None

    @property
    def key(self) -> float:
        return self.end if self.kind in _RAMPS else self.time


class AudioParam:
    """
    An automatable value (frequency, gain, cutoff).

    Events form a timeline; each one governs the curve from its start until
    the next event starts. A ramp starts where the previous event ends (or
    when it was scheduled, whichever is later). Signals connected with
    ``AudioNode.connect_param`` are added on top, which is how vibrato LFOs
    modulate oscillator frequency.
    """

    def __init__(self, session: "AudioSession", value: float) -> None:
        self._session = session
        self._initial = float(value)
        self._events: List[_Event] = []
        self._inputs: List["AudioNode"] = []

    # --- scheduling ---

    def set_value_at_time(self, value: float, time: float) -> None:
        self._insert(_Event("set", float(time), float(value)))

    def linear_ramp_to_value_at_time(self, value: float, end_time: float) -> None:
        self._insert(_Event("linear", self._session.current_time, float(value), end=float(end_time)))

    def exponential_ramp_to_value_at_time(self, value: float, end_time: float) -> None:
        self._insert(_Event("exp", self._session.current_time, float(value), end=float(end_time)))

    def set_target_at_time(self, target: float, start_time: float, time_constant: float) -> None:
        if time_constant <= 0:
            self.set_value_at_time(target, start_time)
            return
        self._insert(_Event("target", float(start_time), float(target), tau=float(time_constant)))

    def cancel_scheduled_values(self, time: float) -> None:
        self._events = [ev for ev in self._events if ev.key < time]

    def _insert(self, ev: _Event) -> None:
        keys = [e.key for e in self._events]
        pos = bisect.bisect_right(keys, ev.key)
        self._events.insert(pos, ev)
        for later in self._events[pos:]:
            later.t0 = None
            later.v0 = None

    # --- evaluation ---

    @property
    def value(self) -> float:
        return self.value_at(self._session.current_time)

    @property
    def pending_events(self) -> int:
        return len(self._events)

    def value_at(self, time: float) -> float:
        return float(self.values(np.array([time], dtype=np.float64))[0])

    def _resolve(self) -> None:
        prev: Optional[_Event] = None
        for ev in self._events:
            if ev.t0 is None:
                if ev.kind in _RAMPS:
                    ev.t0 = max(prev.key, ev.time) if prev is not None else ev.time
                else:
                    ev.t0 = ev.time
            if ev.v0 is None:
                if prev is None:
                    ev.v0 = self._initial
                else:
                    ev.v0 = float(_curve(prev, np.array([ev.t0]))[0])
            prev = ev

    def values(self, times: np.ndarray) -> np.ndarray:
        self._resolve()
        out = np.full(times.shape, self._initial, dtype=np.float64)
        n = len(self._events)
        for i, ev in enumerate(self._events):
            seg_end = self._events[i + 1].t0 if i + 1 < n else np.inf
            mask = (times >= ev.t0) & (times < seg_end)
            if mask.any():
                out[mask] = _curve(ev, times[mask])
        return out

    def _prune(self, now: float) -> None:
        self._resolve()
        while len(self._events) >= 2 and self._events[1].t0 <= now:
            self._events.pop(0)
            self._initial = self._events[0].v0
        if len(self._events) == 1:
            ev = self._events[0]
            if ev.kind == "set":
                done = ev.time <= now
            elif ev.kind in _RAMPS:
                done = ev.end <= now
            else:
                done = now - ev.time > 10.0 * ev.tau
            if done:
                self._initial = ev.value
                self._events.clear()

    def render(self, start: int, frames: int) -> np.ndarray:
        sr = float(self._session.sample_rate)
        times = (start + np.arange(frames, dtype=np.float64)) / sr
        self._prune(times[0])
        vals = self.values(times)
        if self._inputs:
            end = start + frames
            for node in self._inputs:
                vals = vals + node.render(start, frames)
            self._inputs = [n for n in self._inputs if not n.is_finished(end)]
        return vals


def _curve(ev: _Event, t: np.ndarray) -> np.ndarray:
    if ev.kind == "set":
        return np.full(t.shape, ev.value, dtype=np.float64)
    if ev.kind == "target":
        return ev.value + (ev.v0 - ev.value) * np.exp(-(t - ev.t0) / ev.tau)

    span = ev.end - ev.t0
    if span <= 0:
        frac = np.ones(t.shape, dtype=np.float64)
    else:
        frac = np.clip((t - ev.t0) / span, 0.0, 1.0)
    if ev.kind == "linear":
        return ev.v0 + (ev.value - ev.v0) * frac
    v0 = max(ev.v0, SILENT_GAIN)
    v1 = max(ev.value, SILENT_GAIN)
    return v0 * (v1 / v0) ** frac


# -------------------------------------------------------------------------------
# Nodes
# -------------------------------------------------------------------------------


class AudioNode:
    def __init__(self, session: "AudioSession") -> None:
        self.session = session
        self._inputs: List[AudioNode] = []
        self._outputs: list = []  # nodes or params this node feeds
        self._had_input = False
        self._block_start: Optional[int] = None
        self._block: Optional[np.ndarray] = None

    def connect(self, dest: "AudioNode") -> "AudioNode":
        dest._inputs.append(self)
        dest._had_input = True
        self._outputs.append(dest)
        return dest

    def connect_param(self, param: AudioParam) -> AudioParam:
        param._inputs.append(self)
        self._outputs.append(param)
        return param

    def disconnect(self) -> None:
        for dest in self._outputs:
            if self in dest._inputs:
                dest._inputs.remove(self)
        self._outputs = []

    def render(self, start: int, frames: int) -> np.ndarray:
        # A node feeding several destinations renders once per block.
        if self._block_start != start or self._block is None or self._block.size != frames:
            self._block = self._process(start, frames)
            self._block_start = start
        return self._block

    def _mix_inputs(self, start: int, frames: int) -> np.ndarray:
        acc = np.zeros(frames, dtype=np.float64)
        for node in self._inputs:
            acc += node.render(start, frames)
        end = start + frames
        for node in [n for n in self._inputs if n.is_finished(end)]:
            node.disconnect()
        return acc

    def _process(self, start: int, frames: int) -> np.ndarray:
        raise NotImplementedError

    def is_finished(self, sample: int) -> bool:
        return self._had_input and not self._inputs


class AudioSourceNode(AudioNode):
    """A node that produces signal between ``start`` and ``stop``."""

    def __init__(self, session: "AudioSession") -> None:
        super().__init__(session)
        self.start_sample: Optional[int] = None
        self.stop_sample: Optional[int] = None

    def start(self, when: Optional[float] = None) -> None:
        if self.start_sample is not None:
            raise NodeStateError("source already started")
        self.start_sample = self.session.to_sample(when)

    def stop(self, when: Optional[float] = None) -> None:
        if self.start_sample is None:
            raise NodeStateError("source was never started")
        if self.stop_sample is not None:
            raise NodeStateError("source already stopped")
        self.stop_sample = max(self.start_sample, self.session.to_sample(when))

    @property
    def stopped(self) -> bool:
        return self.stop_sample is not None

    def is_finished(self, sample: int) -> bool:
        return self.stop_sample is not None and sample >= self.stop_sample

    def _active(self, start: int, frames: int) -> np.ndarray:
        idx = start + np.arange(frames)
        if self.start_sample is None:
            return np.zeros(frames, dtype=bool)
        mask = idx >= self.start_sample
        if self.stop_sample is not None:
            mask &= idx < self.stop_sample
        return mask


class Oscillator(AudioSourceNode):
    def __init__(self, session: "AudioSession", waveform: str = "sine", frequency: float = 440.0) -> None:
        if waveform not in WAVEFORMS:
            raise ValueError(f"Unknown waveform '{waveform}'. Available: {list(WAVEFORMS)}")
        super().__init__(session)
        self.waveform = waveform
        self.frequency = AudioParam(session, frequency)
        self._phase = 0.0  # in cycles

    def _process(self, start: int, frames: int) -> np.ndarray:
        active = self._active(start, frames)
        freq = self.frequency.render(start, frames)
        if not active.any():
            return np.zeros(frames, dtype=np.float64)

        inc = np.where(active, freq / float(self.session.sample_rate), 0.0)
        phase = self._phase + np.cumsum(inc) - inc
        self._phase = float((self._phase + inc.sum()) % 1.0)
        return waveform_samples(self.waveform, phase % 1.0) * active


def waveform_samples(waveform: str, phase: np.ndarray) -> np.ndarray:
    """Naive (non band-limited) waveforms for phase in cycles [0, 1)."""
    if waveform == "sine":
        return np.sin(2.0 * np.pi * phase)
    if waveform == "square":
        return np.where(phase < 0.5, 1.0, -1.0)
    if waveform == "sawtooth":
        return 2.0 * phase - 1.0
    if waveform == "triangle":
        return 1.0 - 4.0 * np.abs(((phase + 0.25) % 1.0) - 0.5)
    raise ValueError(f"Unknown waveform '{waveform}'")


class NoiseSource(AudioSourceNode):
    def __init__(self, session: "AudioSession", seed: Optional[int] = None) -> None:
        super().__init__(session)
        self._rng = np.random.default_rng(seed)

    def _process(self, start: int, frames: int) -> np.ndarray:
        active = self._active(start, frames)
        if not active.any():
            return np.zeros(frames, dtype=np.float64)
        return self._rng.uniform(-1.0, 1.0, frames) * active


class Gain(AudioNode):
    def __init__(self, session: "AudioSession", gain: float = 1.0) -> None:
        super().__init__(session)
        self.gain = AudioParam(session, gain)

    def _process(self, start: int, frames: int) -> np.ndarray:
        x = self._mix_inputs(start, frames)
        return x * self.gain.render(start, frames)


class BiquadFilter(AudioNode):
    """
    Second-order filter (RBJ cookbook coefficients) run through scipy.

    The cutoff is read once per block, which is fine for the slow glides the
    voices produce.
    """

    def __init__(self, session: "AudioSession", kind: str = "lowpass", frequency: float = 350.0, q: float = 1.0) -> None:
        if kind not in FILTER_TYPES:
            raise ValueError(f"Unknown filter type '{kind}'. Available: {list(FILTER_TYPES)}")
        super().__init__(session)
        self.kind = kind
        self.frequency = AudioParam(session, frequency)
        self.q = float(q)
        self._zi = np.zeros(2, dtype=np.float64)

    def _process(self, start: int, frames: int) -> np.ndarray:
        x = self._mix_inputs(start, frames)
        cutoff = float(self.frequency.render(start, frames)[0])
        b, a = biquad_coefficients(self.kind, cutoff, self.q, self.session.sample_rate)
        y, self._zi = signal.lfilter(b, a, x, zi=self._zi)
        return y


def biquad_coefficients(kind: str, cutoff: float, q: float, sample_rate: int):
    nyq = 0.5 * float(sample_rate)
    f = min(max(cutoff, 10.0), 0.98 * nyq)
    q = max(q, 1e-3)
    w0 = 2.0 * np.pi * f / float(sample_rate)
    cos_w0 = np.cos(w0)
    alpha = np.sin(w0) / (2.0 * q)
    if kind == "lowpass":
        b = np.array([(1.0 - cos_w0) / 2.0, 1.0 - cos_w0, (1.0 - cos_w0) / 2.0])
    elif kind == "bandpass":
        b = np.array([alpha, 0.0, -alpha])
    else:
        raise ValueError(f"Unknown filter type '{kind}'")
    a = np.array([1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha])
    return b / a[0], a / a[0]


# -------------------------------------------------------------------------------
# Session
# -------------------------------------------------------------------------------


class AudioSession:
    """
    Owns everything audio for one run of the app.

    ``render`` may be called directly (offline) or from the sounddevice
    callback once ``start`` has opened the stream. Graph mutations from
    other threads must hold ``lock``.

    ``master_gain`` stays at ``master_level``; voices set their own loudness
    on their output gain and must not automate the master.
    """

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        channels: int = 1,
        master_level: float = MASTER_LEVEL,
        blocksize: int = 0,
    ) -> None:
        self.sample_rate = int(sample_rate)
        self.channels = int(channels)
        self.master_level = float(master_level)
        self.blocksize = int(blocksize)
        self.lock = threading.RLock()
        self.enabled = True
        self.active_voice = None  # set by InstrumentVoiceEngine
        self.master_gain = Gain(self, self.master_level)
        self._bus: List[AudioNode] = []
        self._sample_index = 0
        self._stream = None

    @property
    def current_time(self) -> float:
        return self._sample_index / float(self.sample_rate)

    @property
    def bus_size(self) -> int:
        """Number of independent graphs (one-shot notes) still attached."""
        with self.lock:
            return len(self._bus)

    def to_sample(self, when: Optional[float]) -> int:
        if when is None:
            return self._sample_index
        return max(0, int(round(float(when) * self.sample_rate)))

    def connect_to_destination(self, node: AudioNode) -> None:
        with self.lock:
            self._bus.append(node)

    def set_enabled(self, enabled: bool) -> None:
        with self.lock:
            self.enabled = bool(enabled)

    def render(self, frames: int) -> np.ndarray:
        if frames <= 0:
            return np.zeros((0, self.channels), dtype=np.float32)
        with self.lock:
            start = self._sample_index
            mix = self.master_gain.render(start, frames).copy()
            if self._bus:
                notes = np.zeros(frames, dtype=np.float64)
                for node in self._bus:
                    notes += node.render(start, frames)
                mix += notes * self.master_level
            end = start + frames
            self._bus = [n for n in self._bus if not n.is_finished(end)]
            self._sample_index = end

        out = np.clip(mix, -1.0, 1.0).astype(np.float32)
        return np.repeat(out[:, None], self.channels, axis=1)

    def _callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug("output stream status: %s", status)
        outdata[:] = self.render(frames)

    def start(self) -> None:
        """Open the output stream."""
        if self._stream is not None:
            return
        import sounddevice as sd

        self._stream = sd.OutputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32",
            callback=self._callback,
            blocksize=self.blocksize,
        )
        self._stream.start()
        logger.info("audio stream started (%d Hz, %d ch)", self.sample_rate, self.channels)

    def close(self) -> None:
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        finally:
            self._stream = None
            logger.info("audio stream closed")

    def __enter__(self) -> "AudioSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
