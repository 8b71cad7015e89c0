"""Chord-type classification of pitch-class strength vectors.

A strength vector has 12 bins (C=0 .. B=11); any positive bin marks that
pitch class as present.  Only presence matters to the classifier.

Categories are tried in a fixed order and the first match wins.  The
"other" categories are defined as "none of the above", so the order below is
part of the contract.
"""

from __future__ import annotations

from collections import Counter
from enum import IntEnum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import InvalidInputError
from .model import NOTE_NAMES


class ChordType(IntEnum):
    """Chord type tags; the value is the chord type code."""
    NO_MATCH = -1
    PARTIAL_CHORD = 0
    MINOR_TRIAD = 1
    MAJOR_TRIAD = 2
    DIMINISHED_TRIAD = 3
    AUGMENTED_TRIAD = 4
    OTHER_TRIAD = 5
    MINOR_SEVENTH = 6
    DOMINANT_SEVENTH = 7
    MAJOR_SEVENTH = 8
    OTHER_FOUR_NOTE_CHORD = 9
    COMPLEX_CHORD = 10

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", " ")


# ---------------------------------------------------------------------------
# Interval templates
# ---------------------------------------------------------------------------

# Intervals between adjacent ascending pitch classes, one sequence per
# rotation (root position first).  Rotations appear because the pitch
# classes are sorted from C, not from the chord root: A minor (9, 0, 4)
# sorts to (0, 4, 9), i.e. intervals (4, 5).
TRIAD_TEMPLATES: Tuple[Tuple[ChordType, Tuple[Tuple[int, ...], ...]], ...] = (
    (ChordType.MINOR_TRIAD, ((3, 4), (4, 5), (5, 3))),
    (ChordType.MAJOR_TRIAD, ((4, 3), (3, 5), (5, 4))),
    (ChordType.DIMINISHED_TRIAD, ((3, 3), (3, 6), (6, 3))),
    (ChordType.AUGMENTED_TRIAD, ((4, 4), (4, 4), (4, 4))),
)

SEVENTH_TEMPLATES: Tuple[Tuple[ChordType, Tuple[Tuple[int, ...], ...]], ...] = (
    (ChordType.MINOR_SEVENTH, ((3, 4, 3), (4, 3, 2), (3, 2, 3), (2, 3, 4))),
    (ChordType.DOMINANT_SEVENTH, ((4, 3, 3), (3, 3, 2), (3, 2, 4), (2, 4, 3))),
    (ChordType.MAJOR_SEVENTH, ((4, 3, 4), (3, 4, 1), (4, 1, 4), (1, 4, 3))),
)


def present_pitch_classes(strengths: Sequence[float]) -> List[int]:
    """Indices of the positive bins, ascending."""
    if strengths is None:
        raise InvalidInputError("pitch class strengths must not be None")
    try:
        strengths = list(strengths)
    except TypeError:
        raise InvalidInputError(
            f"pitch class strengths must be a sequence, got {type(strengths).__name__}"
        ) from None
    if len(strengths) != 12:
        raise InvalidInputError(
            f"pitch class strengths must have exactly 12 entries, got {len(strengths)}"
        )
    return [pc for pc in range(12) if strengths[pc] > 0]


def _intervals(present: Sequence[int]) -> Tuple[int, ...]:
    return tuple(abs(present[i + 1] - present[i]) for i in range(len(present) - 1))


def _match_template(
    present: Sequence[int],
    templates: Tuple[Tuple[ChordType, Tuple[Tuple[int, ...], ...]], ...],
) -> Optional[ChordType]:
    intervals = _intervals(present)
    for chord_type, rotations in templates:
        if any(intervals == rotation for rotation in rotations):
            return chord_type
    return None


def classify(strengths: Sequence[float]) -> ChordType:
    """Classify a 12-bin pitch-class strength vector.

    Returns ChordType.NO_MATCH when fewer than two pitch classes are present.

    Raises:
        InvalidInputError: If *strengths* does not have exactly 12 entries.
    """
    present = present_pitch_classes(strengths)
    n = len(present)
    if n == 2:
        return ChordType.PARTIAL_CHORD
    if n == 3:
        matched = _match_template(present, TRIAD_TEMPLATES)
        return ChordType.OTHER_TRIAD if matched is None else matched
    if n == 4:
        matched = _match_template(present, SEVENTH_TEMPLATES)
        return ChordType.OTHER_FOUR_NOTE_CHORD if matched is None else matched
    if n >= 5:
        return ChordType.COMPLEX_CHORD
    return ChordType.NO_MATCH


# ---------------------------------------------------------------------------
# Helpers for onset slices
# ---------------------------------------------------------------------------


def pitch_class_strengths(
    pitches: Iterable[int],
    velocities: Optional[Iterable[int]] = None,
) -> List[float]:
    """Reduce pitches to a 12-bin vector.

    Each pitch adds its velocity to its pitch class, or 1 when no velocities
    are given.
    """
    strengths = [0.0] * 12
    if velocities is None:
        for pitch in pitches:
            strengths[pitch % 12] += 1.0
        return strengths
    pitches = list(pitches)
    velocities = list(velocities)
    if len(pitches) != len(velocities):
        raise InvalidInputError(
            f"got {len(velocities)} velocities for {len(pitches)} pitches"
        )
    for pitch, velocity in zip(pitches, velocities):
        strengths[pitch % 12] += velocity
    return strengths


def classify_pitches(pitches: Iterable[int]) -> ChordType:
    """Classify the pitch classes present in a slice of MIDI pitches."""
    return classify(pitch_class_strengths(pitches))


def chord_type_histogram(slices: Iterable[Iterable[int]]) -> Dict[ChordType, int]:
    """Count slices per chord type; every ChordType gets an entry."""
    counts: Counter = Counter(classify_pitches(s) for s in slices)
    return {chord_type: counts.get(chord_type, 0) for chord_type in ChordType}


def pitch_class_set_name(present: Sequence[int]) -> str:
    """Readable pitch class list, e.g. 'C-E-G'."""
    return "-".join(NOTE_NAMES[pc] for pc in present)
