"""Note onset slice segmentation.

A note onset slice is the set of pitched notes that start together, or
nearly together, plus (in the "held" views) the notes still sounding from
earlier onsets.  Onsets closer than the lookahead window are folded into the
slice opened by the first of them, which absorbs MIDI files whose chords are
not tick-aligned and grace notes too short to deserve a slice of their own.

Four index-aligned views are produced:

- global slices, held + new onsets
- global slices, new onsets only
- per (track, channel) slices, held + new onsets
- per (track, channel) slices, new onsets only

Every slice is sorted by ascending pitch.  A pitch doubled in two voices
appears twice.  Percussion-channel notes never enter a slice.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from .config import DEFAULT_SLICE_CONFIG, SliceConfig
from .errors import ConfigurationError, InvalidInputError
from .model import CHANNELS_PER_TRACK, Note, NoteRepository, Piece, Voice
from .rhythm import lookahead_ticks, rhythmic_values_for

logger = logging.getLogger(__name__)

OnsetSlice = Tuple[int, ...]
SliceTable = Dict[Voice, List[OnsetSlice]]


# ---------------------------------------------------------------------------
# Single slice construction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OnsetWindow:
    """One sealed slice and the ticks it covers.

    ``start_tick`` is the triggering onset; ``end_tick`` is the last tick
    whose onsets were merged in (equal to ``start_tick`` when nothing was).
    ``melody`` maps a voice to the pitch of its highest current note when
    that note's onset falls inside the window.
    """
    start_tick: int
    end_tick: int
    pitches: OnsetSlice
    new_pitches: OnsetSlice
    by_voice: Dict[Voice, OnsetSlice] = field(default_factory=dict)
    new_by_voice: Dict[Voice, OnsetSlice] = field(default_factory=dict)
    melody: Dict[Voice, int] = field(default_factory=dict)


class SliceStep(NamedTuple):
    """Result of build_slice(): the slice plus the state to resume from."""
    slice: OnsetWindow
    sounding: List[Note]
    melody: Dict[Voice, Note]
    next_tick: int


def build_slice(
    repository: NoteRepository,
    sounding: Sequence[Note],
    melody: Dict[Voice, Note],
    tick: int,
    lookahead: int,
    voices: Sequence[Voice],
    config: SliceConfig = DEFAULT_SLICE_CONFIG,
) -> SliceStep:
    """Build the slice triggered by the onsets at *tick*.

    The merge window is anchored at *tick*: pitched onsets on ticks
    ``tick + 1 .. tick + lookahead - 1`` join this slice, and a merged onset
    does not extend the window.  Segmentation resumes at ``next_tick``, one
    past the last merged onset, so merged notes never trigger a slice of
    their own.

    Args:
        repository: Source of notes by start tick.
        sounding: Notes active before *tick* (pitched only).
        melody: Current highest note per voice, carried between slices.
        tick: Triggering tick; at least one pitched note starts here.
        lookahead: Merge window length in ticks.
        voices: Every (track, channel) slot to open.
        config: Segmentation settings.

    Returns:
        SliceStep with the sealed slice, the updated sounding list and melody
        table (the inputs are not modified), and the tick to resume from.
    """
    held: List[int] = []
    new: List[int] = []
    held_by_voice: Dict[Voice, List[int]] = {v: [] for v in voices}
    new_by_voice: Dict[Voice, List[int]] = {v: [] for v in voices}
    melody = dict(melody)

    still_sounding: List[Note] = []
    for note in sounding:
        if note.end_tick <= tick:
            if melody.get(note.voice) is note:
                del melody[note.voice]
            continue
        still_sounding.append(note)
        held.append(note.pitch)
        held_by_voice[note.voice].append(note.pitch)

    def add_onset(note: Note) -> None:
        held.append(note.pitch)
        new.append(note.pitch)
        held_by_voice[note.voice].append(note.pitch)
        new_by_voice[note.voice].append(note.pitch)
        current = melody.get(note.voice)
        if current is None or note.pitch > current.pitch:
            melody[note.voice] = note
        still_sounding.append(note)

    for note in repository.notes_starting_at(tick):
        if config.is_pitched(note.channel):
            add_onset(note)

    last_tick = tick
    for nearby in range(tick + 1, tick + lookahead):
        merged = [
            n for n in repository.notes_starting_at(nearby)
            if config.is_pitched(n.channel)
        ]
        if not merged:
            continue
        for note in merged:
            logger.debug(
                "merging pitch %d at tick %d into slice at tick %d",
                note.pitch, nearby, tick,
            )
            add_onset(note)
        last_tick = nearby

    melody_pitches = {
        voice: note.pitch
        for voice, note in melody.items()
        if tick <= note.start_tick <= last_tick
    }

    window = OnsetWindow(
        start_tick=tick,
        end_tick=last_tick,
        pitches=tuple(sorted(held)),
        new_pitches=tuple(sorted(new)),
        by_voice={v: tuple(sorted(p)) for v, p in held_by_voice.items()},
        new_by_voice={v: tuple(sorted(p)) for v, p in new_by_voice.items()},
        melody=melody_pitches,
    )
    return SliceStep(
        slice=window,
        sounding=still_sounding,
        melody=melody,
        next_tick=last_tick + 1,
    )


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------


def _pitch_classes(pitches: OnsetSlice) -> OnsetSlice:
    return tuple(sorted({p % 12 for p in pitches}))


class OnsetSliceContainer:
    """Onset slices of one piece, built once at construction.

    The container is immutable after construction and can be shared by any
    number of readers.

    Args:
        repository: The piece's notes.
        tick_length: Length of the piece in ticks; ticks ``0 .. tick_length-1``
            are scanned.
        ticks_per_quarter_note: MIDI resolution.
        rhythmic_values: Quantized rhythmic value (in quarter notes) of every
            note in *repository*, used only to size the lookahead window.
        track_count: Number of tracks; defaults to what the notes imply.
        config: Segmentation settings.

    Raises:
        ConfigurationError: For a non-positive resolution, a negative tick
            length, or a rhythmic value array that is empty or whose length
            differs from the note count, or a note whose channel is not
            0-15 or whose track is negative.
    """

    def __init__(
        self,
        repository: NoteRepository,
        tick_length: int,
        ticks_per_quarter_note: int,
        rhythmic_values: Sequence[float],
        track_count: Optional[int] = None,
        config: Optional[SliceConfig] = None,
    ) -> None:
        self.config = config or DEFAULT_SLICE_CONFIG
        if ticks_per_quarter_note <= 0:
            raise ConfigurationError(
                f"ticks_per_quarter_note must be positive, got {ticks_per_quarter_note}"
            )
        if tick_length < 0:
            raise ConfigurationError(f"tick_length must not be negative, got {tick_length}")
        if len(rhythmic_values) != len(repository):
            raise ConfigurationError(
                f"got {len(rhythmic_values)} rhythmic values for {len(repository)} notes"
            )
        for note in repository:
            if note.track < 0 or not 0 <= note.channel < CHANNELS_PER_TRACK:
                raise ConfigurationError(
                    f"note outside track/channel range: track={note.track} "
                    f"channel={note.channel}"
                )

        self.tick_length = tick_length
        self.ticks_per_quarter_note = ticks_per_quarter_note
        floor = self.config.simultaneity_floor
        if len(repository) == 0:
            # Nothing to merge; keep the floor window for reporting.
            self.lookahead_value = floor
            self.lookahead = int(ticks_per_quarter_note * floor)
        else:
            self.lookahead_value = max(min(rhythmic_values), floor)
            self.lookahead = lookahead_ticks(ticks_per_quarter_note, rhythmic_values, floor)

        self.track_count = max(track_count or 0, repository.track_count)
        self._voices: List[Voice] = [
            (track, channel)
            for track in range(self.track_count)
            for channel in range(CHANNELS_PER_TRACK)
        ]
        self._windows: List[OnsetWindow] = self._segment(repository)
        logger.debug(
            "segmented %d notes into %d slices (lookahead %d ticks)",
            len(repository), len(self._windows), self.lookahead,
        )

        self._global = [w.pitches for w in self._windows]
        self._global_new = [w.new_pitches for w in self._windows]
        self._by_voice: SliceTable = {
            v: [w.by_voice[v] for w in self._windows] for v in self._voices
        }
        self._new_by_voice: SliceTable = {
            v: [w.new_by_voice[v] for w in self._windows] for v in self._voices
        }
        self._melodic_lines: SliceTable = {
            v: [(w.melody[v],) if v in w.melody else () for w in self._windows]
            for v in self._voices
        }

    @classmethod
    def from_piece(
        cls, piece: Piece, config: Optional[SliceConfig] = None,
    ) -> "OnsetSliceContainer":
        """Build from a loaded Piece, quantizing rhythmic values on the way."""
        notes = piece.repository.all()
        rhythmic_values = rhythmic_values_for(notes, piece.ticks_per_quarter_note)
        return cls(
            piece.repository,
            tick_length=piece.tick_length,
            ticks_per_quarter_note=piece.ticks_per_quarter_note,
            rhythmic_values=rhythmic_values,
            track_count=piece.track_count,
            config=config,
        )

    def _segment(self, repository: NoteRepository) -> List[OnsetWindow]:
        onset_ticks = [
            t for t in repository.start_ticks()
            if 0 <= t < self.tick_length
            and any(self.config.is_pitched(n.channel) for n in repository.notes_starting_at(t))
        ]
        windows: List[OnsetWindow] = []
        sounding: List[Note] = []
        melody: Dict[Voice, Note] = {}
        idx = 0
        while idx < len(onset_ticks):
            step = build_slice(
                repository, sounding, melody, onset_ticks[idx],
                self.lookahead, self._voices, self.config,
            )
            windows.append(step.slice)
            sounding, melody = step.sounding, step.melody
            idx = bisect_left(onset_ticks, step.next_tick, lo=idx + 1)
        return windows

    # -- Queries -----------------------------------------------------------

    @property
    def slice_count(self) -> int:
        return len(self._windows)

    @property
    def voices(self) -> List[Voice]:
        return list(self._voices)

    def windows(self) -> List[OnsetWindow]:
        return list(self._windows)

    def slice_ticks(self) -> List[int]:
        """Triggering tick of each slice."""
        return [w.start_tick for w in self._windows]

    def global_slices(self) -> List[OnsetSlice]:
        return list(self._global)

    def global_slices_new_onsets_only(self) -> List[OnsetSlice]:
        return list(self._global_new)

    def slices_by_track_and_channel(self) -> SliceTable:
        return {v: list(s) for v, s in self._by_voice.items()}

    def slices_by_track_and_channel_new_onsets_only(self) -> SliceTable:
        return {v: list(s) for v, s in self._new_by_voice.items()}

    def melodic_lines_by_track_and_channel(self) -> SliceTable:
        """Per voice and slice, the pitch of the voice's highest current note
        if it was attacked within the slice, else an empty slice."""
        return {v: list(s) for v, s in self._melodic_lines.items()}

    def global_slices_in_pitch_classes(self) -> List[OnsetSlice]:
        return [_pitch_classes(s) for s in self._global]

    def global_slices_new_onsets_only_in_pitch_classes(self) -> List[OnsetSlice]:
        return [_pitch_classes(s) for s in self._global_new]

    def slices_by_track_and_channel_in_pitch_classes(self) -> SliceTable:
        return {
            v: [_pitch_classes(s) for s in slices]
            for v, slices in self._by_voice.items()
        }

    def slices_by_track_and_channel_new_onsets_only_in_pitch_classes(self) -> SliceTable:
        return {
            v: [_pitch_classes(s) for s in slices]
            for v, slices in self._new_by_voice.items()
        }

    def is_new_onset(self, slice_index: int, track: int, channel: int) -> bool:
        """True if the highest pitch held in the voice's slot was attacked in
        this slice.

        Matches by pitch value, not note identity: a pitch sustained in one
        note and re-attacked in another of the same voice counts as new.
        Returns False for an empty slot; raises IndexError for a slice index
        outside 0 .. slice_count-1.
        """
        voice = (track, channel)
        if voice not in self._by_voice:
            raise InvalidInputError(f"unknown track/channel {voice}")
        if not 0 <= slice_index < len(self._windows):
            raise IndexError(f"slice index {slice_index} out of range")
        held = self._by_voice[voice][slice_index]
        if not held:
            return False
        return held[-1] in self._new_by_voice[voice][slice_index]
