"""Piece loaders for JSON and MIDI formats."""

from pathlib import Path
from typing import Union

from ..model import Piece
from .json_loader import load_json
from .midi_loader import load_midi


def load_piece(path: Union[str, Path]) -> Piece:
    """Auto-detect format and load a Piece."""
    p = Path(path)
    if p.suffix.lower() in (".mid", ".midi"):
        return load_midi(p)
    return load_json(p)


__all__ = ["load_json", "load_midi", "load_piece"]
