"""Tests for onset slice segmentation."""

import sys
import unittest
from collections import Counter
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from scripts.onset_analyzer.config import SliceConfig
from scripts.onset_analyzer.errors import ConfigurationError, InvalidInputError
from scripts.onset_analyzer.model import Note, NoteRepository, Piece
from scripts.onset_analyzer.rhythm import rhythmic_values_for
from scripts.onset_analyzer.slices import OnsetSliceContainer, build_slice

TPQ = 480


def _n(pitch, start, dur=TPQ, track=0, channel=0):
    """Create a Note for testing."""
    return Note(pitch=pitch, velocity=80, start_tick=start, end_tick=start + dur,
                track=track, channel=channel)


def _container(notes, values=None, tick_length=None, track_count=None, config=None):
    """Segment *notes*; rhythmic values default to quantized durations."""
    repo = NoteRepository.from_notes(notes)
    if values is None:
        values = rhythmic_values_for(notes, TPQ)
    if tick_length is None:
        tick_length = max((n.end_tick for n in notes), default=0) + 1
    return OnsetSliceContainer(repo, tick_length, TPQ, values,
                               track_count=track_count, config=config)


def _short(notes):
    """Rhythmic values giving the thirty-second lookahead (60 ticks)."""
    return [0.125] * len(notes)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestTwoTrackMerge(unittest.TestCase):
    """C4 on track 0 and E4 two ticks later on track 1 form one slice."""

    def setUp(self):
        self.c = _container([
            _n(60, 0, track=0, channel=0),
            _n(64, 2, track=1, channel=0),
        ])

    def test_one_global_slice(self):
        self.assertEqual(self.c.global_slices(), [(60, 64)])

    def test_both_new(self):
        self.assertEqual(self.c.global_slices_new_onsets_only(), [(60, 64)])

    def test_by_track_and_channel(self):
        table = self.c.slices_by_track_and_channel()
        self.assertEqual(table[(0, 0)], [(60,)])
        self.assertEqual(table[(1, 0)], [(64,)])
        self.assertEqual(table[(0, 1)], [()])

    def test_window(self):
        window = self.c.windows()[0]
        self.assertEqual(window.start_tick, 0)
        self.assertEqual(window.end_tick, 2)
        self.assertEqual(self.c.slice_ticks(), [0])


class TestPercussion(unittest.TestCase):
    def test_percussion_only_piece(self):
        c = _container([_n(36, 0, channel=15), _n(38, 240, channel=15)])
        self.assertEqual(c.slice_count, 0)
        self.assertEqual(c.global_slices(), [])
        self.assertEqual(c.global_slices_new_onsets_only(), [])
        for table in (c.slices_by_track_and_channel(),
                      c.slices_by_track_and_channel_new_onsets_only()):
            self.assertEqual(len(table), 16)
            for slices in table.values():
                self.assertEqual(slices, [])

    def test_percussion_excluded_from_pitched_slice(self):
        c = _container([_n(60, 0), _n(36, 0, channel=15)])
        self.assertEqual(c.global_slices(), [(60,)])
        self.assertEqual(c.slices_by_track_and_channel()[(0, 15)], [()])

    def test_percussion_onset_triggers_no_slice(self):
        c = _container([_n(60, 0, dur=1920), _n(36, 960, channel=15)])
        self.assertEqual(c.slice_count, 1)

    def test_custom_percussion_channel(self):
        c = _container([_n(60, 0, channel=9), _n(64, 0, channel=15)],
                       config=SliceConfig(percussion_channel=9))
        self.assertEqual(c.global_slices(), [(64,)])


class TestEmptyPiece(unittest.TestCase):
    def test_no_notes(self):
        c = OnsetSliceContainer(NoteRepository(), 0, TPQ, [])
        self.assertEqual(c.slice_count, 0)
        self.assertEqual(c.global_slices(), [])
        self.assertEqual(c.slices_by_track_and_channel(), {})

    def test_no_notes_with_tracks(self):
        c = OnsetSliceContainer(NoteRepository(), 0, TPQ, [], track_count=2)
        table = c.slices_by_track_and_channel_new_onsets_only()
        self.assertEqual(len(table), 32)
        self.assertTrue(all(s == [] for s in table.values()))


# ---------------------------------------------------------------------------
# Lookahead window
# ---------------------------------------------------------------------------


class TestLookahead(unittest.TestCase):
    def test_lookahead_value(self):
        notes = [_n(60, 0), _n(64, 59)]
        self.assertEqual(_container(notes, values=_short(notes)).lookahead, 60)
        self.assertEqual(_container(notes).lookahead, TPQ)
        self.assertEqual(_container(notes).lookahead_value, 1.0)
        self.assertEqual(_container(notes, values=[0.0625, 1.0]).lookahead_value, 0.125)

    def test_just_inside_window_merges(self):
        notes = [_n(60, 0), _n(64, 59, track=1)]
        c = _container(notes, values=_short(notes))
        self.assertEqual(c.global_slices(), [(60, 64)])

    def test_at_window_separate(self):
        notes = [_n(60, 0), _n(64, 60, track=1)]
        c = _container(notes, values=_short(notes))
        self.assertEqual(c.global_slices(), [(60,), (60, 64)])
        self.assertEqual(c.global_slices_new_onsets_only(), [(60,), (64,)])

    def test_window_anchored_to_first_onset(self):
        notes = [_n(60, 0), _n(64, 40, track=1), _n(67, 80, track=2)]
        c = _container(notes, values=_short(notes))
        self.assertEqual(c.slice_ticks(), [0, 80])
        self.assertEqual(c.windows()[0].end_tick, 40)
        self.assertEqual(c.global_slices(), [(60, 64), (60, 64, 67)])
        self.assertEqual(c.global_slices_new_onsets_only(), [(60, 64), (67,)])

    def test_merged_onset_not_retriggered(self):
        notes = [_n(60, 0), _n(64, 30), _n(67, 30, track=1)]
        c = _container(notes, values=_short(notes))
        self.assertEqual(c.slice_count, 1)
        self.assertEqual(c.global_slices(), [(60, 64, 67)])


# ---------------------------------------------------------------------------
# Slice contents
# ---------------------------------------------------------------------------


class TestSliceContents(unittest.TestCase):
    def test_sorted(self):
        c = _container([_n(67, 0), _n(60, 0, track=1), _n(64, 0, track=2)])
        self.assertEqual(c.global_slices(), [(60, 64, 67)])

    def test_doubled_pitch_kept_twice(self):
        c = _container([_n(60, 0, track=0), _n(60, 0, track=1)])
        self.assertEqual(c.global_slices(), [(60, 60)])

    def test_held_notes_included(self):
        c = _container([_n(48, 0, dur=1920), _n(60, 480), _n(62, 960)])
        self.assertEqual(c.global_slices(), [(48,), (48, 60), (48, 62)])
        self.assertEqual(c.global_slices_new_onsets_only(), [(48,), (60,), (62,)])

    def test_end_tick_exclusive(self):
        c = _container([_n(60, 0, dur=480), _n(62, 480, dur=480)])
        self.assertEqual(c.global_slices(), [(60,), (62,)])

    def test_notes_beyond_tick_length_ignored(self):
        c = _container([_n(60, 0), _n(62, 600)], tick_length=500)
        self.assertEqual(c.global_slices(), [(60,)])

    def test_pitch_class_views(self):
        c = _container([_n(48, 0), _n(60, 0, track=1), _n(64, 0, track=2)])
        self.assertEqual(c.global_slices_in_pitch_classes(), [(0, 4)])
        self.assertEqual(c.global_slices_new_onsets_only_in_pitch_classes(), [(0, 4)])
        by_voice = c.slices_by_track_and_channel_in_pitch_classes()
        self.assertEqual(by_voice[(2, 0)], [(4,)])
        new_by_voice = c.slices_by_track_and_channel_new_onsets_only_in_pitch_classes()
        self.assertEqual(new_by_voice[(1, 0)], [(0,)])

    def test_accessors_return_copies(self):
        c = _container([_n(60, 0)])
        c.global_slices().clear()
        c.slices_by_track_and_channel()[(0, 0)].clear()
        self.assertEqual(c.global_slices(), [(60,)])
        self.assertEqual(c.slices_by_track_and_channel()[(0, 0)], [(60,)])


class TestInvariants(unittest.TestCase):
    def setUp(self):
        self.notes = [
            _n(48, 0, dur=1920, track=0, channel=0),
            _n(60, 0, dur=240, track=1, channel=2),
            _n(64, 10, dur=470, track=1, channel=2),
            _n(67, 240, dur=240, track=2, channel=0),
            _n(60, 480, dur=960, track=1, channel=2),
            _n(60, 500, dur=480, track=2, channel=0),
            _n(36, 480, dur=120, track=3, channel=15),
            _n(72, 1440, dur=480, track=2, channel=0),
        ]
        self.c = _container(self.notes)

    def test_all_sorted(self):
        views = [self.c.global_slices(), self.c.global_slices_new_onsets_only()]
        for table in (self.c.slices_by_track_and_channel(),
                      self.c.slices_by_track_and_channel_new_onsets_only()):
            views.extend(table.values())
        for slices in views:
            for s in slices:
                self.assertEqual(list(s), sorted(s))

    def test_new_is_submultiset(self):
        for held, new in zip(self.c.global_slices(),
                             self.c.global_slices_new_onsets_only()):
            self.assertFalse(Counter(new) - Counter(held))
        held_table = self.c.slices_by_track_and_channel()
        new_table = self.c.slices_by_track_and_channel_new_onsets_only()
        for voice, slices in held_table.items():
            for held, new in zip(slices, new_table[voice]):
                self.assertFalse(Counter(new) - Counter(held))

    def test_tables_aligned(self):
        count = self.c.slice_count
        self.assertGreater(count, 0)
        self.assertEqual(len(self.c.global_slices_new_onsets_only()), count)
        for table in (self.c.slices_by_track_and_channel(),
                      self.c.slices_by_track_and_channel_new_onsets_only(),
                      self.c.melodic_lines_by_track_and_channel()):
            self.assertEqual(len(table), 4 * 16)
            for slices in table.values():
                self.assertEqual(len(slices), count)

    def test_global_is_union_of_voices(self):
        table = self.c.slices_by_track_and_channel()
        for idx, held in enumerate(self.c.global_slices()):
            merged = sorted(p for slices in table.values() for p in slices[idx])
            self.assertEqual(list(held), merged)

    def test_deterministic(self):
        again = _container(self.notes)
        self.assertEqual(again.global_slices(), self.c.global_slices())
        self.assertEqual(again.global_slices_new_onsets_only(),
                         self.c.global_slices_new_onsets_only())
        self.assertEqual(again.slices_by_track_and_channel(),
                         self.c.slices_by_track_and_channel())
        self.assertEqual(again.slices_by_track_and_channel_new_onsets_only(),
                         self.c.slices_by_track_and_channel_new_onsets_only())


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestIsNewOnset(unittest.TestCase):
    def test_top_voice_sustained(self):
        c = _container([_n(72, 0, dur=1920), _n(60, 480)])
        self.assertTrue(c.is_new_onset(0, 0, 0))
        self.assertFalse(c.is_new_onset(1, 0, 0))

    def test_top_voice_attacked(self):
        c = _container([_n(48, 0, dur=1920), _n(60, 480)])
        self.assertTrue(c.is_new_onset(1, 0, 0))

    def test_empty_slot(self):
        c = _container([_n(60, 0)])
        self.assertFalse(c.is_new_onset(0, 0, 1))

    def test_matches_by_pitch_value(self):
        # The sustained C4 and the re-attacked C4 are different notes, but the
        # check only compares pitch values.
        c = _container([_n(60, 0, dur=1920), _n(60, 480)])
        self.assertEqual(c.slices_by_track_and_channel()[(0, 0)][1], (60, 60))
        self.assertTrue(c.is_new_onset(1, 0, 0))

    def test_unknown_voice(self):
        c = _container([_n(60, 0)])
        with self.assertRaises(InvalidInputError):
            c.is_new_onset(0, 5, 0)

    def test_bad_slice_index(self):
        c = _container([_n(60, 0)])
        with self.assertRaises(IndexError):
            c.is_new_onset(3, 0, 0)

    def test_negative_slice_index(self):
        c = _container([_n(60, 0)])
        with self.assertRaises(IndexError):
            c.is_new_onset(-1, 0, 0)


class TestMelodicLines(unittest.TestCase):
    def test_highest_new_note_per_voice(self):
        c = _container([_n(72, 0, dur=1920), _n(60, 480), _n(76, 960)])
        lines = c.melodic_lines_by_track_and_channel()
        self.assertEqual(lines[(0, 0)], [(72,), (), (76,)])
        self.assertEqual(lines[(0, 1)], [(), (), ()])

    def test_line_resumes_after_top_note_ends(self):
        c = _container([_n(72, 0, dur=480), _n(60, 0, dur=1920), _n(62, 960)])
        lines = c.melodic_lines_by_track_and_channel()
        self.assertEqual(lines[(0, 0)], [(72,), (62,)])


# ---------------------------------------------------------------------------
# build_slice
# ---------------------------------------------------------------------------


class TestBuildSlice(unittest.TestCase):
    def setUp(self):
        self.held = _n(48, 0, dur=1920)
        self.ended = _n(50, 0, dur=100)
        self.notes = [self.held, self.ended, _n(60, 200), _n(64, 230, channel=1),
                      _n(67, 260, channel=1)]
        self.repo = NoteRepository.from_notes(self.notes)
        self.voices = [(0, ch) for ch in range(16)]

    def test_step(self):
        sounding = [self.held, self.ended]
        step = build_slice(self.repo, sounding, {}, 200, 60, self.voices)
        self.assertEqual(step.slice.pitches, (48, 60, 64))
        self.assertEqual(step.slice.new_pitches, (60, 64))
        self.assertEqual(step.slice.by_voice[(0, 1)], (64,))
        self.assertEqual(step.slice.end_tick, 230)
        self.assertEqual(step.next_tick, 231)
        self.assertNotIn(self.ended, step.sounding)
        self.assertEqual(len(step.sounding), 3)

    def test_inputs_untouched(self):
        sounding = [self.held, self.ended]
        melody = {(0, 0): self.held}
        build_slice(self.repo, sounding, melody, 200, 60, self.voices)
        self.assertEqual(sounding, [self.held, self.ended])
        self.assertEqual(melody, {(0, 0): self.held})

    def test_no_merge(self):
        step = build_slice(self.repo, [], {}, 200, 1, self.voices)
        self.assertEqual(step.slice.pitches, (60,))
        self.assertEqual(step.next_tick, 201)


# ---------------------------------------------------------------------------
# Configuration errors and construction
# ---------------------------------------------------------------------------


class TestConfigurationErrors(unittest.TestCase):
    def setUp(self):
        self.repo = NoteRepository.from_notes([_n(60, 0)])

    def test_bad_resolution(self):
        with self.assertRaises(ConfigurationError):
            OnsetSliceContainer(self.repo, 1000, 0, [1.0])

    def test_empty_values_with_notes(self):
        with self.assertRaises(ConfigurationError):
            OnsetSliceContainer(self.repo, 1000, TPQ, [])

    def test_mismatched_values(self):
        with self.assertRaises(ConfigurationError):
            OnsetSliceContainer(self.repo, 1000, TPQ, [1.0, 0.5])

    def test_negative_tick_length(self):
        with self.assertRaises(ConfigurationError):
            OnsetSliceContainer(self.repo, -1, TPQ, [1.0])

    def test_is_value_error(self):
        with self.assertRaises(ValueError):
            OnsetSliceContainer(self.repo, 1000, -480, [1.0])

    def test_channel_out_of_range(self):
        repo = NoteRepository.from_notes([_n(60, 0, channel=16)])
        with self.assertRaises(ConfigurationError):
            OnsetSliceContainer(repo, 500, TPQ, [1.0])

    def test_negative_track(self):
        repo = NoteRepository.from_notes([_n(60, 0, track=-1)])
        with self.assertRaises(ConfigurationError):
            OnsetSliceContainer(repo, 500, TPQ, [1.0])

    def test_every_channel_has_a_voice(self):
        c = _container([_n(60, 0, channel=9), _n(64, 0, channel=14)])
        self.assertEqual(c.slices_by_track_and_channel()[(0, 9)], [(60,)])
        self.assertEqual(c.slices_by_track_and_channel()[(0, 14)], [(64,)])
        self.assertEqual(len(c.voices), 16)


class TestFromPiece(unittest.TestCase):
    def test_matches_manual_construction(self):
        notes = [_n(60, 0, dur=120), _n(64, 100, track=1), _n(67, 480, dur=960)]
        repo = NoteRepository.from_notes(notes)
        piece = Piece(repository=repo, tick_length=2000,
                      ticks_per_quarter_note=TPQ, track_count=3)
        c = OnsetSliceContainer.from_piece(piece)
        self.assertEqual(c.lookahead, 120)
        self.assertEqual(c.track_count, 3)
        self.assertEqual(c.global_slices(), [(60, 64), (64, 67)])
        self.assertEqual(len(c.slices_by_track_and_channel()), 48)


if __name__ == "__main__":
    unittest.main()
