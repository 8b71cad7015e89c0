"""Data model for onset analysis.

Provides the immutable Note value, the NoteRepository that owns a piece's
notes together with a start-tick index, and the Piece record handed over by
the loaders.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

# ---------------------------------------------------------------------------
# MIDI constants
# ---------------------------------------------------------------------------

# Zero-based channel index of MIDI channel 10 (General MIDI percussion).
PERCUSSION_CHANNEL = 15
CHANNELS_PER_TRACK = 16

MIDI_MIN = 0
MIDI_MAX = 127

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

Voice = Tuple[int, int]  # (track, channel)


# ---------------------------------------------------------------------------
# Note
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Note:
    """A single note event.

    ``end_tick`` is exclusive: a note ending on tick T is no longer sounding
    at T.  On the percussion channel ``pitch`` is an instrument id.
    """
    pitch: int
    velocity: int
    start_tick: int
    end_tick: int
    track: int = 0
    channel: int = 0

    @property
    def duration(self) -> int:
        return self.end_tick - self.start_tick

    @property
    def voice(self) -> Voice:
        return (self.track, self.channel)

    @property
    def is_percussion(self) -> bool:
        return self.channel == PERCUSSION_CHANNEL

    @property
    def pitch_class(self) -> int:
        return self.pitch % 12

    @property
    def note_name(self) -> str:
        return NOTE_NAMES[self.pitch_class]

    @property
    def octave(self) -> int:
        return self.pitch // 12 - 1


# ---------------------------------------------------------------------------
# NoteRepository
# ---------------------------------------------------------------------------


class NoteRepository:
    """Canonical list of a piece's notes plus a start_tick -> notes index.

    Ingestion fills it through add(); consumers only read from it.  The order
    of notes sharing a start tick carries no meaning.
    """

    def __init__(self) -> None:
        self._notes: List[Note] = []
        self._by_start: Dict[int, List[Note]] = defaultdict(list)
        self._ids: set = set()

    @classmethod
    def from_notes(cls, notes: Iterable[Note]) -> "NoteRepository":
        repo = cls()
        for note in notes:
            repo.add(note)
        return repo

    def add(self, note: Note) -> None:
        """Append a note to the list and to the start-tick index."""
        if id(note) in self._ids:
            raise ValueError(f"note already in repository: {note!r}")
        self._ids.add(id(note))
        self._notes.append(note)
        self._by_start[note.start_tick].append(note)

    def notes_starting_at(self, tick: int) -> List[Note]:
        """All notes (any track or channel) whose onset is exactly *tick*."""
        return list(self._by_start.get(tick, ()))

    def notes_on(self, track: int, channel: int) -> List[Note]:
        return [n for n in self._notes if n.track == track and n.channel == channel]

    def notes_on_channel(self, channel: int) -> List[Note]:
        return [n for n in self._notes if n.channel == channel]

    def all(self) -> List[Note]:
        return list(self._notes)

    def sorted_notes(self) -> List[Note]:
        """All notes ordered by start tick (stable for equal ticks)."""
        return sorted(self._notes, key=lambda n: n.start_tick)

    def start_ticks(self) -> List[int]:
        """Distinct onset ticks, ascending."""
        return sorted(self._by_start.keys())

    @property
    def track_count(self) -> int:
        if not self._notes:
            return 0
        return max(n.track for n in self._notes) + 1

    def __len__(self) -> int:
        return len(self._notes)

    def __iter__(self) -> Iterator[Note]:
        return iter(self._notes)


# ---------------------------------------------------------------------------
# Piece
# ---------------------------------------------------------------------------


@dataclass
class Piece:
    """A parsed performance as produced by the loaders."""
    repository: NoteRepository = field(default_factory=NoteRepository)
    tick_length: int = 0
    ticks_per_quarter_note: int = 480
    track_count: int = 0
    source_file: Optional[str] = None

    @property
    def total_notes(self) -> int:
        return len(self.repository)

    @property
    def pitched_notes(self) -> List[Note]:
        return [n for n in self.repository if not n.is_percussion]


# ---------------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------------


def pitch_to_name(pitch: int) -> str:
    """Convert MIDI pitch to note name with octave (e.g., 'C4')."""
    return f"{NOTE_NAMES[pitch % 12]}{pitch // 12 - 1}"
