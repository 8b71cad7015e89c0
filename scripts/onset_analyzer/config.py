"""Segmentation settings.

One SliceConfig is passed explicitly to each OnsetSliceContainer, so
concurrent analyses never share hidden state.
"""

from __future__ import annotations

from dataclasses import dataclass

from .model import PERCUSSION_CHANNEL
from .rhythm import THIRTY_SECOND


@dataclass(frozen=True)
class SliceConfig:
    """Settings for onset slice segmentation."""

    # Notes on this channel never enter a slice.
    percussion_channel: int = PERCUSSION_CHANNEL

    # Shortest lookahead window, in quarter notes.  Pieces whose shortest
    # rhythmic value is below this use it instead.
    simultaneity_floor: float = THIRTY_SECOND

    def is_pitched(self, channel: int) -> bool:
        return channel != self.percussion_channel


DEFAULT_SLICE_CONFIG = SliceConfig()
