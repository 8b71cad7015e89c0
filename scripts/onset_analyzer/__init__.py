"""Onset slice segmentation and chord-type classification for symbolic music.

Usage:
    python -m onset_analyzer slices piece.mid
    python -m onset_analyzer report piece.mid --json
"""

from .chords import ChordType, classify, classify_pitches, pitch_class_strengths
from .config import DEFAULT_SLICE_CONFIG, SliceConfig
from .errors import AnalyzerError, ConfigurationError, InvalidInputError
from .loaders import load_json, load_midi, load_piece
from .model import Note, NoteRepository, Piece
from .slices import OnsetSliceContainer, OnsetWindow, build_slice

__all__ = [
    "AnalyzerError",
    "ChordType",
    "ConfigurationError",
    "DEFAULT_SLICE_CONFIG",
    "InvalidInputError",
    "Note",
    "NoteRepository",
    "OnsetSliceContainer",
    "OnsetWindow",
    "Piece",
    "SliceConfig",
    "build_slice",
    "classify",
    "classify_pitches",
    "load_json",
    "load_midi",
    "load_piece",
    "pitch_class_strengths",
]
