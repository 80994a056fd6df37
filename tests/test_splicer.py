"""
tests/test_splicer.py
======================
Segment Cut-Replace Engine Tests (cut-and-splice)

Test categories:
    1. Reference scenario - 8 kHz mono, one 250ms cut on a 2s source
    2. Length invariant - any number of valid cuts keeps length
    3. Output dtype - source kept on an empty cut list, float64 otherwise
    4. Filler modes - silence, tone, tone then silence
    5. Failures - missing inputs, ordering violations, bad shapes

All tests are OFFLINE - audio is synthesized in memory.
"""

import os
import sys
import unittest

import numpy as np

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from src.redaction.errors import (
    ChannelMismatchError,
    InvalidRedactionArgument,
    SpanOrderError,
)
from src.redaction.spans import CutInterval
from src.redaction.splicer import (
    FillerMode,
    cut_and_replace,
    generate_filler,
    generate_tone,
    resolve_filler,
)


# ===================================================================
# Test fixtures
# ===================================================================

SAMPLE_RATE = 8000


def _ramp(n: int = 16000) -> np.ndarray:
    """Strictly increasing, never zero - any shift or drop is visible."""
    return np.linspace(0.1, 0.9, n)


# ===================================================================
# 1. Reference scenario
# ===================================================================


class TestReferenceScenario(unittest.TestCase):

    def test_single_cut_replaced_with_silence(self):
        source = _ramp()
        result = cut_and_replace(source, SAMPLE_RATE, [(500, 250)])

        self.assertEqual(len(result), 16000)
        # 500ms → sample 4000, 750ms → sample 6000
        self.assertTrue(np.all(result[4000:6000] == 0.0))
        np.testing.assert_array_equal(result[:4000], source[:4000])
        np.testing.assert_array_equal(result[6000:], source[6000:])

    def test_empty_cut_list_returns_source(self):
        source = _ramp()
        result = cut_and_replace(source, SAMPLE_RATE, [])
        np.testing.assert_array_equal(result, source)

    def test_source_not_mutated(self):
        source = _ramp()
        before = source.copy()
        cut_and_replace(source, SAMPLE_RATE, [(0, 1000)])
        np.testing.assert_array_equal(source, before)


# ===================================================================
# 2. Length invariant
# ===================================================================


class TestLengthInvariant(unittest.TestCase):

    def test_many_cuts_keep_length(self):
        source = _ramp()
        cuts = [CutInterval(0, 10), CutInterval(100, 333), CutInterval(433, 0),
                CutInterval(1000, 1), CutInterval(1500, 499)]
        result = cut_and_replace(source, SAMPLE_RATE, cuts)
        self.assertEqual(len(result), len(source))

    def test_cuts_address_original_timeline(self):
        source = _ramp()
        result = cut_and_replace(source, SAMPLE_RATE, [(100, 100), (1000, 100)])
        # Audio between the cuts is untouched and unshifted
        np.testing.assert_array_equal(result[1600:8000], source[1600:8000])
        self.assertTrue(np.all(result[800:1600] == 0.0))
        self.assertTrue(np.all(result[8000:8800] == 0.0))

    def test_cut_past_end_is_clamped(self):
        source = _ramp()
        with self.assertLogs("voiceredact.redaction.splicer", level="WARNING") as logs:
            result = cut_and_replace(source, SAMPLE_RATE, [(1900, 500)])
        self.assertIn("clamped", logs.output[0])
        self.assertEqual(len(result), 16000)
        self.assertTrue(np.all(result[15200:] == 0.0))
        np.testing.assert_array_equal(result[:15200], source[:15200])

    def test_cut_starting_past_end_is_noop(self):
        source = _ramp()
        with self.assertNoLogs("voiceredact.redaction.splicer", level="WARNING"):
            result = cut_and_replace(source, SAMPLE_RATE, [(5000, 100), (6000, 0)])
        np.testing.assert_array_equal(result, source)

    def test_cut_starting_at_end_is_noop(self):
        source = _ramp()
        with self.assertNoLogs("voiceredact.redaction.splicer", level="WARNING"):
            result = cut_and_replace(source, SAMPLE_RATE, [(2000, 100)])
        np.testing.assert_array_equal(result, source)


# ===================================================================
# 3. Output dtype
# ===================================================================


class TestOutputDtype(unittest.TestCase):

    def test_empty_cut_list_keeps_source_dtype(self):
        source = np.arange(100, dtype=np.int16)
        result = cut_and_replace(source, SAMPLE_RATE, [])
        self.assertEqual(result.dtype, np.int16)
        np.testing.assert_array_equal(result, source)

    def test_any_cut_yields_float64(self):
        source = np.arange(100, dtype=np.int16)
        for cuts in ([(0, 0)], [(1, 1)], [(9000, 10)]):
            result = cut_and_replace(source, SAMPLE_RATE, cuts)
            self.assertEqual(result.dtype, np.float64, msg=str(cuts))
            self.assertEqual(len(result), 100)


# ===================================================================
# 4. Filler modes
# ===================================================================


class TestFillerModes(unittest.TestCase):

    def test_tone_filler_has_configured_gain(self):
        source = _ramp()
        result = cut_and_replace(
            source, SAMPLE_RATE, [(500, 250)], FillerMode.TONE,
            tone_frequency_hz=1000, tone_gain=0.2,
        )
        self.assertEqual(len(result), 16000)
        filler = result[4000:6000]
        self.assertAlmostEqual(float(np.max(np.abs(filler))), 0.2, delta=0.005)
        np.testing.assert_array_equal(result[6000:], source[6000:])

    def test_tone_then_silence(self):
        source = _ramp()
        result = cut_and_replace(
            source, SAMPLE_RATE, [(500, 250)], "tone_then_silence", beep_ms=100,
        )
        # 100ms of tone = 800 samples, then silence
        self.assertTrue(np.any(result[4000:4800] != 0.0))
        self.assertTrue(np.all(result[4800:6000] == 0.0))

    def test_tone_longer_than_interval_is_capped(self):
        fill = generate_filler(400, SAMPLE_RATE, FillerMode.TONE_THEN_SILENCE, beep_ms=1000)
        self.assertEqual(len(fill), 400)
        self.assertTrue(np.any(fill != 0.0))

    def test_generate_tone_exact_length(self):
        for n in (1, 7, 1234, 8001):
            self.assertEqual(len(generate_tone(n, SAMPLE_RATE)), n)

    def test_generate_tone_zero_gain_is_silent(self):
        self.assertTrue(np.all(generate_tone(100, SAMPLE_RATE, gain=0.0) == 0.0))

    def test_silence_filler(self):
        fill = generate_filler(123, SAMPLE_RATE, "silence")
        self.assertEqual(len(fill), 123)
        self.assertTrue(np.all(fill == 0.0))

    def test_resolve_filler(self):
        self.assertIs(resolve_filler("TONE"), FillerMode.TONE)
        self.assertIs(resolve_filler(FillerMode.SILENCE), FillerMode.SILENCE)
        with self.assertRaises(InvalidRedactionArgument):
            resolve_filler("bleep")


# ===================================================================
# 5. Failures
# ===================================================================


class TestSplicerFailures(unittest.TestCase):

    def test_none_cuts_rejected(self):
        with self.assertRaises(InvalidRedactionArgument):
            cut_and_replace(_ramp(), SAMPLE_RATE, None)

    def test_none_source_rejected(self):
        with self.assertRaises(InvalidRedactionArgument):
            cut_and_replace(None, SAMPLE_RATE, [(0, 10)])

    def test_unsorted_cuts_rejected(self):
        with self.assertRaises(SpanOrderError):
            cut_and_replace(_ramp(), SAMPLE_RATE, [(1000, 100), (500, 100)])

    def test_overlapping_cuts_rejected(self):
        with self.assertRaises(SpanOrderError):
            cut_and_replace(_ramp(), SAMPLE_RATE, [(0, 10), (500, 300), (700, 10)])

    def test_negative_cut_rejected(self):
        with self.assertRaises(InvalidRedactionArgument):
            cut_and_replace(_ramp(), SAMPLE_RATE, [(-1, 10)])

    def test_multichannel_source_rejected(self):
        with self.assertRaises(ChannelMismatchError):
            cut_and_replace(np.zeros((100, 2)), SAMPLE_RATE, [(0, 1)])

    def test_bad_sample_rate_rejected(self):
        with self.assertRaises(InvalidRedactionArgument):
            cut_and_replace(_ramp(), 0, [(0, 1)])

    def test_non_list_cuts_rejected(self):
        for cuts in (5, "0,10", {"start_ms": 0, "duration_ms": 10}):
            with self.assertRaises(InvalidRedactionArgument, msg=repr(cuts)):
                cut_and_replace(_ramp(), SAMPLE_RATE, cuts)


if __name__ == "__main__":
    unittest.main()
