"""Load a Piece from a JSON note list."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Union

from ..errors import ConfigurationError
from ..model import Note, NoteRepository, Piece


def _parse_note(note_data: dict, track_index: int, default_channel: int) -> Note:
    """Parse a single note dict (``end_tick`` or ``duration`` accepted)."""
    start = note_data.get("start_tick", 0)
    if "end_tick" in note_data:
        end = note_data["end_tick"]
    else:
        end = start + note_data.get("duration", 0)
    return Note(
        pitch=note_data.get("pitch", 0),
        velocity=note_data.get("velocity", 80),
        start_tick=start,
        end_tick=end,
        track=track_index,
        channel=note_data.get("channel", default_channel),
    )


def load_json(source: Union[str, Path, dict]) -> Piece:
    """Load a Piece from a JSON file or pre-parsed dict.

    Expected layout::

        {"ticks_per_quarter_note": 480,
         "tick_length": 1920,
         "tracks": [{"channel": 0,
                     "notes": [{"pitch": 60, "velocity": 80,
                                "start_tick": 0, "duration": 480}]}]}

    ``tick_length`` defaults to one past the last note end.  Notes with no
    positive duration are skipped.

    Raises:
        ConfigurationError: If ``ticks_per_quarter_note`` is not positive.
    """
    if isinstance(source, dict):
        data = source
        source_file = None
    else:
        path = Path(source)
        with open(path) as fh:
            data = json.load(fh)
        source_file = str(source)

    resolution = data.get("ticks_per_quarter_note", 480)
    if resolution <= 0:
        raise ConfigurationError(f"ticks_per_quarter_note must be positive, got {resolution}")

    repository = NoteRepository()
    tracks = data.get("tracks", [])
    for idx, track_data in enumerate(tracks):
        channel = track_data.get("channel", 0)
        for nd in track_data.get("notes", []):
            note = _parse_note(nd, idx, channel)
            if note.end_tick > note.start_tick:
                repository.add(note)

    last_end = max((n.end_tick for n in repository), default=0)
    return Piece(
        repository=repository,
        tick_length=data.get("tick_length", last_end + 1 if len(repository) else 0),
        ticks_per_quarter_note=resolution,
        track_count=len(tracks),
        source_file=source_file,
    )
