"""Instrument voice recipes: every instrument is data over a few topologies."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple


class Topology(enum.Enum):
    PURE = "pure"  # one plain oscillator
    VIBRATO = "vibrato"  # oscillator(s) with frequency LFO
    HARMONIC_STACK = "harmonic_stack"  # additive partials, possibly inharmonic
    NOISE_BLEND = "noise_blend"  # tone plus band-passed breath noise
    FILTERED_WAVE = "filtered_wave"  # bright wave through a low-pass


@dataclass(frozen=True)
class Vibrato:
    rate_hz: float
    depth_hz: float


@dataclass(frozen=True)
class OscillatorSpec:
    waveform: str = "sine"
    frequency_ratio: float = 1.0
    gain_ratio: float = 1.0
    vibrato: Optional[Vibrato] = None


@dataclass(frozen=True)
class NoiseBlend:
    gain: float
    q: float = 5.0  # band-pass centred on the played frequency


@dataclass(frozen=True)
class FilterSpec:
    cutoff_ratio: float  # cutoff = frequency * cutoff_ratio
    q: float = 1.0
    kind: str = "lowpass"


@dataclass(frozen=True)
class OneShotEnvelope:
    attack_s: float = 0.01
    peak: float = 0.3
    sustain: float = 0.25


@dataclass(frozen=True)
class VoiceRecipe:
    name: str
    topology: Topology
    oscillators: Tuple[OscillatorSpec, ...]
    noise: Optional[NoiseBlend] = None
    filter: Optional[FilterSpec] = None
    smooth_glide: bool = False
    envelope: OneShotEnvelope = field(default_factory=OneShotEnvelope)


def _stack(
    name: str,
    partials: Sequence[Tuple[float, float]],
    *,
    waveform: str = "sine",
    scale: float = 1.0,
    vibrato: Optional[Vibrato] = None,
    topology: Topology = Topology.HARMONIC_STACK,
    filter: Optional[FilterSpec] = None,
) -> VoiceRecipe:
    oscs = tuple(
        OscillatorSpec(waveform=waveform, frequency_ratio=ratio, gain_ratio=gain * scale, vibrato=vibrato)
        for ratio, gain in partials
    )
    return VoiceRecipe(name=name, topology=topology, oscillators=oscs, filter=filter)


# Non-integer partial ratios of a struck bar (wood and metal).
BAR_RATIOS = (1.0, 2.76, 5.40, 8.93, 13.34)

DEFAULT_RECIPE = VoiceRecipe(name="default", topology=Topology.PURE, oscillators=(OscillatorSpec(),))


INSTRUMENTS: Dict[str, VoiceRecipe] = {
    # Flutes and air
    "flute1": VoiceRecipe("flute1", Topology.PURE, (OscillatorSpec("sine"),)),
    "flute2": VoiceRecipe("flute2", Topology.VIBRATO, (OscillatorSpec("sine", vibrato=Vibrato(5.0, 10.0)),)),
    "flute3": VoiceRecipe(
        "flute3",
        Topology.NOISE_BLEND,
        (OscillatorSpec("sine", gain_ratio=0.7),),
        noise=NoiseBlend(gain=0.05, q=5.0),
    ),
    "theremin": VoiceRecipe(
        "theremin",
        Topology.VIBRATO,
        (OscillatorSpec("sine", vibrato=Vibrato(5.5, 15.0)),),
        smooth_glide=True,
        envelope=OneShotEnvelope(attack_s=0.02, peak=0.3, sustain=0.28),
    ),
    "panflute": VoiceRecipe(
        "panflute",
        Topology.HARMONIC_STACK,
        (OscillatorSpec("sine", 1.0, 0.6), OscillatorSpec("sine", 2.01, 0.2)),
    ),
    "recorder": VoiceRecipe(
        "recorder", Topology.FILTERED_WAVE, (OscillatorSpec("triangle"),), filter=FilterSpec(cutoff_ratio=3.0, q=1.0)
    ),
    "saxophone": VoiceRecipe(
        "saxophone",
        Topology.NOISE_BLEND,
        (OscillatorSpec("sawtooth", gain_ratio=0.5, vibrato=Vibrato(5.0, 4.0)),),
        noise=NoiseBlend(gain=0.03, q=3.0),
        filter=FilterSpec(cutoff_ratio=3.0, q=1.2),
    ),
    # Keys
    "piano": _stack("piano", [(1, 1.0), (2, 0.5), (3, 0.25), (4, 0.15), (5, 0.1)], scale=0.15),
    "epiano": _stack("epiano", [(1, 1.0), (3, 0.35), (4, 0.12), (7, 0.05)], scale=0.25),
    "organ": _stack(
        "organ",
        [(1.0, 0.5), (1.0116, 0.35), (0.9885, 0.35)],  # three saws spread ~20 cents
        waveform="sawtooth",
        scale=0.4,
        filter=FilterSpec(cutoff_ratio=8.0, q=0.7),
    ),
    # Strings
    "violin": VoiceRecipe(
        "violin",
        Topology.FILTERED_WAVE,
        (OscillatorSpec("sawtooth", vibrato=Vibrato(6.0, 8.0)),),
        filter=FilterSpec(cutoff_ratio=4.0, q=1.0),
    ),
    "cello": _stack("cello", [(1, 1.0), (2, 0.7), (3, 0.4), (4, 0.2)], waveform="sawtooth", scale=0.2),
    "guitar": VoiceRecipe(
        "guitar",
        Topology.HARMONIC_STACK,
        (
            OscillatorSpec("triangle", 1.0, 0.25),
            OscillatorSpec("triangle", 2.0, 0.3 * 0.25),
            OscillatorSpec("sine", 3.0, 0.15 * 0.25),
        ),
    ),
    "ukulele": VoiceRecipe(
        "ukulele",
        Topology.HARMONIC_STACK,
        (
            OscillatorSpec("triangle", 1.0, 0.3),
            OscillatorSpec("sine", 2.0, 0.4 * 0.3),
            OscillatorSpec("sine", 3.0, 0.2 * 0.3),
        ),
    ),
    "harp": _stack("harp", [(1, 1.0), (2, 0.6), (3, 0.3), (4, 0.15), (5, 0.08), (6, 0.04)], scale=0.12),
    "eguitar": VoiceRecipe(
        "eguitar", Topology.FILTERED_WAVE, (OscillatorSpec("sawtooth", gain_ratio=0.6),), filter=FilterSpec(6.0, q=0.9)
    ),
    "bass": VoiceRecipe(
        "bass", Topology.FILTERED_WAVE, (OscillatorSpec("square", gain_ratio=0.6),), filter=FilterSpec(2.0, q=2.0)
    ),
    # Winds and brass
    "clarinet": VoiceRecipe(
        "clarinet", Topology.FILTERED_WAVE, (OscillatorSpec("square"),), filter=FilterSpec(cutoff_ratio=3.0, q=2.0)
    ),
    "trumpet": VoiceRecipe(
        "trumpet",
        Topology.FILTERED_WAVE,
        (OscillatorSpec("sawtooth", 1.0, 0.5), OscillatorSpec("sawtooth", 1.5, 0.15)),
        filter=FilterSpec(cutoff_ratio=5.0, q=1.5),
    ),
    # Mallets and bells
    "xylophone": _stack("xylophone", list(zip(BAR_RATIOS[:4], (1.0, 0.4, 0.2, 0.1))), scale=0.15),
    "glockenspiel": _stack(
        "glockenspiel",
        list(zip(BAR_RATIOS, (1.0, 0.6, 0.4, 0.25, 0.15))),
        scale=0.12,
        vibrato=Vibrato(4.0, 2.0),
    ),
    "vibraphone": _stack(
        "vibraphone", [(1.0, 1.0), (3.01, 0.3), (4.02, 0.1)], waveform="triangle", scale=0.25, vibrato=Vibrato(4.0, 3.0)
    ),
    "marimba": _stack("marimba", [(1.0, 1.0), (3.93, 0.25), (9.2, 0.06)], scale=0.3),
    "bells": _stack("bells", [(1.0, 1.0), (2.4, 0.6), (5.1, 0.4), (8.3, 0.2)], scale=0.15),
}


def get_recipe(instrument_id: str) -> VoiceRecipe:
    """Recipe for ``instrument_id``; unknown ids get the plain sine default."""
    return INSTRUMENTS.get(instrument_id, DEFAULT_RECIPE)


def instrument_ids():
    return list(INSTRUMENTS.keys())
