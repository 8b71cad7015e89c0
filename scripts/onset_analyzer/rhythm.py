"""Rhythmic value quantization and the onset lookahead window.

Rhythmic values are expressed in quarter notes (a sixteenth is 0.25).
"""

from __future__ import annotations

from typing import List, Sequence

from .errors import ConfigurationError

THIRTY_SECOND = 0.125

# Recognised rhythmic values, shortest first.
RHYTHMIC_VALUES: tuple = (
    0.125,   # thirty-second
    0.25,    # sixteenth
    0.5,     # eighth
    0.75,    # dotted eighth
    1.0,     # quarter
    1.5,     # dotted quarter
    2.0,     # half
    3.0,     # dotted half
    4.0,     # whole
    6.0,     # dotted whole
    8.0,     # double whole
    12.0,    # dotted double whole
)

RHYTHMIC_VALUE_NAMES: dict = {
    0.125: "thirty_second",
    0.25: "sixteenth",
    0.5: "eighth",
    0.75: "dotted_eighth",
    1.0: "quarter",
    1.5: "dotted_quarter",
    2.0: "half",
    3.0: "dotted_half",
    4.0: "whole",
    6.0: "dotted_whole",
    8.0: "double_whole",
    12.0: "dotted_double_whole",
}


def quantize_rhythmic_value(duration_ticks: int, ticks_per_quarter_note: int) -> float:
    """Snap a duration in ticks to the nearest recognised rhythmic value.

    Ties resolve to the shorter value.
    """
    if ticks_per_quarter_note <= 0:
        raise ConfigurationError(
            f"ticks_per_quarter_note must be positive, got {ticks_per_quarter_note}"
        )
    quarters = duration_ticks / ticks_per_quarter_note
    best = RHYTHMIC_VALUES[0]
    best_dist = abs(quarters - best)
    for value in RHYTHMIC_VALUES[1:]:
        dist = abs(quarters - value)
        if dist < best_dist:
            best = value
            best_dist = dist
    return best


def rhythmic_values_for(notes: Sequence, ticks_per_quarter_note: int) -> List[float]:
    """One quantized rhythmic value per note, in the order given."""
    return [
        quantize_rhythmic_value(n.duration, ticks_per_quarter_note) for n in notes
    ]


def lookahead_ticks(
    ticks_per_quarter_note: int,
    rhythmic_values: Sequence[float],
    floor: float = THIRTY_SECOND,
) -> int:
    """Tick distance within which later onsets fold into an open slice.

    Uses the shortest rhythmic value in the piece, clamped below to *floor*
    (a thirty-second note by default).

    Raises:
        ConfigurationError: If the resolution is not positive or
            *rhythmic_values* is empty.
    """
    if ticks_per_quarter_note <= 0:
        raise ConfigurationError(
            f"ticks_per_quarter_note must be positive, got {ticks_per_quarter_note}"
        )
    if not rhythmic_values:
        raise ConfigurationError("rhythmic value array is empty")
    minimum_rhythmic_value = min(rhythmic_values)
    if minimum_rhythmic_value < floor:
        return int(ticks_per_quarter_note * floor)
    return int(ticks_per_quarter_note * minimum_rhythmic_value)
