"""Load a Piece from a standard MIDI file using mido."""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from pathlib import Path
from typing import Deque, Dict, List, Tuple, Union

from ..model import Note, NoteRepository, Piece

logger = logging.getLogger(__name__)


def _is_note_off(msg) -> bool:
    return msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0)


def _track_notes(track, track_index: int) -> Tuple[List[Note], int, int]:
    """Pair note-on/note-off events of one MIDI track.

    Repeated note-ons of the same pitch are closed first-in-first-out.
    Note-ons never closed, and notes closed on their own onset tick, are
    dropped.

    Returns:
        (notes, dropped_count, last_event_tick)
    """
    notes: List[Note] = []
    pending: Dict[Tuple[int, int], Deque[Tuple[int, int]]] = defaultdict(deque)
    dropped = 0
    abs_tick = 0
    for msg in track:
        abs_tick += msg.time
        if msg.type == "note_on" and msg.velocity > 0:
            pending[(msg.channel, msg.note)].append((abs_tick, msg.velocity))
        elif _is_note_off(msg):
            queue = pending.get((msg.channel, msg.note))
            if not queue:
                continue
            start, velocity = queue.popleft()
            if abs_tick <= start:
                dropped += 1
                continue
            notes.append(
                Note(
                    pitch=msg.note,
                    velocity=velocity,
                    start_tick=start,
                    end_tick=abs_tick,
                    track=track_index,
                    channel=msg.channel,
                )
            )
    dropped += sum(len(q) for q in pending.values())
    return notes, dropped, abs_tick


def load_midi(source: Union[str, Path]) -> Piece:
    """Load a Piece from a .mid file.

    Requires the ``mido`` package.  Unmatched note-ons are dropped rather
    than rejected; the count is logged as a warning because the notes are
    silently missing from every analysis.

    Args:
        source: Path to a .mid file.

    Returns:
        A Piece with one track index per MIDI track (percussion included;
        segmentation excludes it).
    """
    try:
        import mido
    except ImportError as exc:
        raise ImportError(
            "mido is required for MIDI loading. Install with: pip install mido"
        ) from exc

    mid = mido.MidiFile(str(source))

    repository = NoteRepository()
    last_tick = 0
    dropped = 0
    for track_index, track in enumerate(mid.tracks):
        notes, track_dropped, track_end = _track_notes(track, track_index)
        for note in notes:
            repository.add(note)
        dropped += track_dropped
        last_tick = max(last_tick, track_end)

    if dropped:
        logger.warning("%s: dropped %d unmatched or empty notes", source, dropped)

    return Piece(
        repository=repository,
        tick_length=last_tick + 1,
        ticks_per_quarter_note=mid.ticks_per_beat,
        track_count=len(mid.tracks),
        source_file=str(source),
    )
