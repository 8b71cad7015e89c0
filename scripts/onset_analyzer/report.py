"""Slice report: slice counts, per-voice activity, chord-type distribution."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from .chords import ChordType, chord_type_histogram, classify_pitches, pitch_class_set_name
from .model import Piece, pitch_to_name
from .rhythm import RHYTHMIC_VALUE_NAMES
from .slices import OnsetSliceContainer


def _mean_size(slices: List[tuple]) -> float:
    if not slices:
        return 0.0
    return round(sum(len(s) for s in slices) / len(slices), 2)


def compute_slice_report(piece: Piece, container: OnsetSliceContainer) -> Dict[str, Any]:
    """Summarize the onset slices of a piece.

    Returns a dict with:
      - metadata: source file, resolution, tick length, note counts
      - slices: slice count, lookahead, mean slice sizes
      - voices: non-empty slice counts per (track, channel), active voices only
      - chord_types: global slice count per chord type label
    """
    held = container.global_slices()
    new = container.global_slices_new_onsets_only()

    voices: List[Dict[str, Any]] = []
    new_by_voice = container.slices_by_track_and_channel_new_onsets_only()
    for (track, channel), slices in container.slices_by_track_and_channel().items():
        active = sum(1 for s in slices if s)
        if not active:
            continue
        attacked = sum(1 for s in new_by_voice[(track, channel)] if s)
        voices.append({
            "track": track,
            "channel": channel,
            "slices_sounding": active,
            "slices_attacked": attacked,
        })

    histogram = chord_type_histogram(held)
    return {
        "metadata": {
            "source_file": piece.source_file,
            "ticks_per_quarter_note": piece.ticks_per_quarter_note,
            "tick_length": piece.tick_length,
            "total_notes": piece.total_notes,
            "pitched_notes": len(piece.pitched_notes),
            "track_count": container.track_count,
        },
        "slices": {
            "count": container.slice_count,
            "lookahead_ticks": container.lookahead,
            "lookahead_value": RHYTHMIC_VALUE_NAMES.get(
                container.lookahead_value, str(container.lookahead_value)
            ),
            "mean_pitches": _mean_size(held),
            "mean_new_pitches": _mean_size(new),
        },
        "voices": voices,
        "chord_types": {
            ct.label: count for ct, count in histogram.items() if count
        },
    }


# ---------------------------------------------------------------------------
# Output formatters
# ---------------------------------------------------------------------------


def format_report_text(data: Dict[str, Any]) -> str:
    """Format a slice report as human-readable text."""
    lines: List[str] = []
    meta = data["metadata"]
    sl = data["slices"]

    header = [f"{meta['total_notes']} notes", f"{meta['track_count']} tracks"]
    if meta.get("source_file"):
        header.insert(0, meta["source_file"])
    lines.append(f"=== Onset slices: {', '.join(header)} ===")
    lines.append(
        f"  resolution={meta['ticks_per_quarter_note']}  "
        f"ticks={meta['tick_length']}  "
        f"lookahead={sl['lookahead_ticks']} ({sl['lookahead_value']})"
    )
    lines.append(
        f"  slices={sl['count']}  mean pitches={sl['mean_pitches']}  "
        f"mean new={sl['mean_new_pitches']}"
    )
    lines.append("")

    if data["voices"]:
        lines.append("Voices:")
        for v in data["voices"]:
            lines.append(
                f"  track {v['track']:>2} ch {v['channel']:>2}  "
                f"sounding {v['slices_sounding']:>5}  attacked {v['slices_attacked']:>5}"
            )
        lines.append("")

    if data["chord_types"]:
        lines.append("Chord Types:")
        total = sum(data["chord_types"].values())
        for label, count in data["chord_types"].items():
            pct = count / total * 100 if total else 0
            bar = "#" * int(pct / 2)
            lines.append(f"  {label:<22} {count:>5} ({pct:>4.1f}%) {bar}")
        lines.append("")

    return "\n".join(lines)


def format_report_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2)


def slices_to_dicts(container: OnsetSliceContainer) -> List[Dict[str, Any]]:
    """One dict per slice: ticks, pitches, new pitches, pitch classes and chord type."""
    result = []
    for idx, window in enumerate(container.windows()):
        chord_type = classify_pitches(window.pitches)
        result.append({
            "index": idx,
            "start_tick": window.start_tick,
            "end_tick": window.end_tick,
            "pitches": list(window.pitches),
            "new_pitches": list(window.new_pitches),
            "pitch_classes": pitch_class_set_name(sorted({p % 12 for p in window.pitches})),
            "chord_type": chord_type.label if chord_type != ChordType.NO_MATCH else None,
        })
    return result


def format_slices_text(container: OnsetSliceContainer) -> str:
    """List every global slice with its pitches, pitch classes and chord type."""
    lines: List[str] = []
    for row in slices_to_dicts(container):
        names = " ".join(pitch_to_name(p) for p in row["pitches"])
        new = set(row["new_pitches"])
        marks = "".join("*" if p in new else "." for p in row["pitches"])
        lines.append(
            f"{row['index']:>5} @{row['start_tick']:>7}  {names:<36} {marks:<8} "
            f"{row['pitch_classes'] or '-':<16} {row['chord_type'] or '-'}"
        )
    return "\n".join(lines)
