from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .audio import (
    SILENT_GAIN,
    AudioNode,
    AudioSession,
    AudioSourceNode,
    BiquadFilter,
    Gain,
    NoiseSource,
    Oscillator,
)
from .errors import NodeStateError
from .recipes import VoiceRecipe, get_recipe

logger = logging.getLogger(__name__)

FADE_OUT_S = 0.05
NOTE_RELEASE_S = 0.05
GLIDE_RAMP_S = 0.05  # exponential portamento for smooth-glide instruments
GLIDE_TIME_CONSTANT_S = 0.01
VOLUME_TIME_CONSTANT_S = 0.05

ErrorCallback = Callable[[str, BaseException], None]


@dataclass
class Partial:
    osc: Oscillator
    gain: Gain
    ratio: float


@dataclass
class VoiceGraph:
    """One realized recipe: sources wired into a single ``output`` gain."""

    recipe: VoiceRecipe
    output: Gain
    partials: List[Partial] = field(default_factory=list)
    vibratos: List[Oscillator] = field(default_factory=list)
    noise: Optional[NoiseSource] = None
    noise_filter: Optional[BiquadFilter] = None
    filter: Optional[BiquadFilter] = None
    nodes: List[AudioNode] = field(default_factory=list)

    @property
    def sources(self) -> List[AudioSourceNode]:
        srcs: List[AudioSourceNode] = [p.osc for p in self.partials]
        srcs.extend(self.vibratos)
        if self.noise is not None:
            srcs.append(self.noise)
        return srcs

    def start(self, when: Optional[float] = None) -> None:
        for src in self.sources:
            src.start(when)

    def stop(self, when: Optional[float] = None) -> None:
        for src in self.sources:
            try:
                src.stop(when)
            except NodeStateError:
                logger.debug("%s source already stopped", self.recipe.name)

    def disconnect(self) -> None:
        for node in self.nodes:
            node.disconnect()


def build_graph(session: AudioSession, recipe: VoiceRecipe, frequency: float) -> VoiceGraph:
    """Realize ``recipe`` at ``frequency``. Nothing is connected to the session yet."""
    graph = VoiceGraph(recipe=recipe, output=Gain(session, 1.0))
    graph.nodes.append(graph.output)
    try:
        tone_dest: AudioNode = graph.output
        if recipe.filter is not None:
            fspec = recipe.filter
            graph.filter = BiquadFilter(session, fspec.kind, frequency * fspec.cutoff_ratio, fspec.q)
            graph.filter.connect(graph.output)
            graph.nodes.append(graph.filter)
            tone_dest = graph.filter

        for ospec in recipe.oscillators:
            osc = Oscillator(session, ospec.waveform, frequency * ospec.frequency_ratio)
            gain = Gain(session, ospec.gain_ratio)
            osc.connect(gain)
            gain.connect(tone_dest)
            graph.nodes.extend((osc, gain))
            if ospec.vibrato is not None:
                lfo = Oscillator(session, "sine", ospec.vibrato.rate_hz)
                depth = Gain(session, ospec.vibrato.depth_hz)
                lfo.connect(depth)
                depth.connect_param(osc.frequency)
                graph.nodes.extend((lfo, depth))
                graph.vibratos.append(lfo)
            graph.partials.append(Partial(osc=osc, gain=gain, ratio=ospec.frequency_ratio))

        if recipe.noise is not None:
            graph.noise = NoiseSource(session)
            graph.noise_filter = BiquadFilter(session, "bandpass", frequency, recipe.noise.q)
            noise_gain = Gain(session, recipe.noise.gain)
            graph.noise.connect(graph.noise_filter)
            graph.noise_filter.connect(noise_gain)
            noise_gain.connect(graph.output)
            graph.nodes.extend((graph.noise, graph.noise_filter, noise_gain))
    except Exception:
        graph.disconnect()
        raise
    return graph


@dataclass
class ActiveVoice:
    instrument_id: str
    graph: VoiceGraph
    frequency: float
    volume: float
    playing: bool = True


class InstrumentVoiceEngine:
    """
    Plays recipes on an AudioSession.

    Sustain mode keeps one ActiveVoice on the session master gain and glides
    it as the hand moves. Its volume and release fade live on the voice's own
    output gain, so the master keeps the session level. One-shot mode builds
    a throwaway graph per note on the session bus; the bus drops it once its
    sources have stopped.
    """

    def __init__(self, session: AudioSession, on_error: Optional[ErrorCallback] = None) -> None:
        self.session = session
        self._on_error = on_error

    @property
    def active_voice(self) -> Optional[ActiveVoice]:
        return self.session.active_voice

    @property
    def is_playing(self) -> bool:
        voice = self.session.active_voice
        return voice is not None and voice.playing

    def _report(self, message: str, exc: BaseException) -> None:
        logger.warning("%s: %s", message, exc)
        if self._on_error is not None:
            self._on_error(message, exc)

    # --- sustain mode ---

    def start_or_update(self, instrument_id: str, frequency: float, volume: float) -> Optional[ActiveVoice]:
        session = self.session
        if not session.enabled:
            return None
        with session.lock:
            voice = session.active_voice
            if voice is not None and voice.instrument_id != instrument_id:
                self.stop()
                voice = None
            if voice is None:
                return self._start(instrument_id, frequency, volume)
            self._glide(voice, frequency, volume)
            return voice

    def _start(self, instrument_id: str, frequency: float, volume: float) -> Optional[ActiveVoice]:
        session = self.session
        graph = None
        try:
            graph = build_graph(session, get_recipe(instrument_id), frequency)
            graph.output.connect(session.master_gain)
            graph.start()
        except Exception as e:
            if graph is not None:
                graph.stop()
                graph.disconnect()
            self._report(f"could not start '{instrument_id}' voice", e)
            return None

        now = session.current_time
        level = graph.output.gain
        level.set_value_at_time(SILENT_GAIN, now)
        level.set_target_at_time(volume, now, VOLUME_TIME_CONSTANT_S)

        voice = ActiveVoice(instrument_id=instrument_id, graph=graph, frequency=frequency, volume=volume)
        session.active_voice = voice
        logger.debug("voice '%s' started at %.1f Hz", instrument_id, frequency)
        return voice

    def _glide(self, voice: ActiveVoice, frequency: float, volume: float) -> None:
        now = self.session.current_time
        graph = voice.graph
        recipe = graph.recipe
        for p in graph.partials:
            target = frequency * p.ratio
            if recipe.smooth_glide:
                p.osc.frequency.exponential_ramp_to_value_at_time(target, now + GLIDE_RAMP_S)
            else:
                p.osc.frequency.set_target_at_time(target, now, GLIDE_TIME_CONSTANT_S)
        if graph.filter is not None and recipe.filter is not None:
            graph.filter.frequency.set_target_at_time(frequency * recipe.filter.cutoff_ratio, now, GLIDE_TIME_CONSTANT_S)
        if graph.noise_filter is not None:
            graph.noise_filter.frequency.set_target_at_time(frequency, now, GLIDE_TIME_CONSTANT_S)
        graph.output.gain.set_target_at_time(volume, now, VOLUME_TIME_CONSTANT_S)
        voice.frequency = frequency
        voice.volume = volume

    def stop(self) -> None:
        """Fade out and release the live voice. Safe to call at any time."""
        session = self.session
        with session.lock:
            voice = session.active_voice
            if voice is None:
                return
            now = session.current_time
            end = now + FADE_OUT_S
            # The master is shared, so only this voice fades.
            level = voice.graph.output.gain
            current = level.value_at(now)
            level.cancel_scheduled_values(now)
            level.set_value_at_time(current, now)
            level.exponential_ramp_to_value_at_time(SILENT_GAIN, end)
            voice.graph.stop(end)
            voice.playing = False
            session.active_voice = None
            logger.debug("voice '%s' released", voice.instrument_id)

    # --- one-shot mode ---

    def play_note(self, instrument_id: str, frequency: float, duration_ms: float) -> Optional[VoiceGraph]:
        session = self.session
        if not session.enabled:
            return None
        recipe = get_recipe(instrument_id)
        env_spec = recipe.envelope
        with session.lock:
            graph = None
            try:
                graph = build_graph(session, recipe, frequency)
                envelope = Gain(session, SILENT_GAIN)
                graph.output.connect(envelope)
                graph.nodes.append(envelope)

                now = session.current_time
                dur = max(0.0, float(duration_ms)) / 1000.0
                attack_end = now + min(env_spec.attack_s, dur)
                sustain_end = max(attack_end, now + dur - NOTE_RELEASE_S)
                release_end = max(sustain_end, now + dur)
                g = envelope.gain
                g.set_value_at_time(SILENT_GAIN, now)
                g.exponential_ramp_to_value_at_time(env_spec.peak, attack_end)
                g.exponential_ramp_to_value_at_time(env_spec.sustain, sustain_end)
                g.exponential_ramp_to_value_at_time(SILENT_GAIN, release_end)

                graph.start(now)
                graph.stop(now + dur + NOTE_RELEASE_S)
                session.connect_to_destination(envelope)
            except Exception as e:
                if graph is not None:
                    graph.disconnect()
                self._report(f"could not play '{instrument_id}' note", e)
                return None
        return graph
