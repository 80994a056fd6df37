"""
tests/test_transcript.py
=========================
Transcript → Redaction Span Tests

Verifies that utterances flagged with redactions become correctly grouped,
ordered span maps and cut lists, and that malformed utterances fail fast.

All tests are OFFLINE.
"""

import os
import sys
import unittest

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from src.redaction.errors import InvalidRedactionArgument, SpanOrderError
from src.redaction.spans import CutInterval, RedactionSpan
from src.redaction.transcript import cuts_from_utterances, spans_from_utterances


# ===================================================================
# Test fixtures - two-channel call, agent on 0, customer on 1
# ===================================================================

UTTERANCES = [
    {"channel": 1, "offset": 5200, "duration": 900, "redacted_spans": ["<CREDIT_CARD>"],
     "redacted_audio_spans": [{"offset": 5300, "duration": 400}]},
    {"channel": 0, "offset": 0, "duration": 2400, "redacted_spans": []},
    {"channel": 1, "offset": 1100, "duration": 1500, "redacted_spans": ["<PHONE_NUMBER>"]},
    {"channel": 0, "offset": 3000, "duration": 700, "redacted_spans": ["<EMAIL>"],
     "redacted_audio_spans": [{"offset": 3100, "duration": 200}]},
    {"channel": 1, "offset": 8000, "duration": 500},
]


class TestSpansFromUtterances(unittest.TestCase):

    def test_grouped_by_channel_and_sorted(self):
        index = spans_from_utterances(UTTERANCES)
        self.assertEqual(set(index), {0, 1})
        self.assertEqual(index[0], (RedactionSpan(3000, 700),))
        self.assertEqual(index[1], (RedactionSpan(1100, 1500), RedactionSpan(5200, 900)))

    def test_unflagged_utterances_ignored(self):
        index = spans_from_utterances([
            {"channel": 0, "offset": 0, "duration": 100},
            {"channel": 0, "offset": 200, "duration": 100, "redacted_spans": []},
        ])
        self.assertEqual(index, {})

    def test_empty_list(self):
        self.assertEqual(spans_from_utterances([]), {})

    def test_none_rejected(self):
        with self.assertRaises(InvalidRedactionArgument):
            spans_from_utterances(None)

    def test_missing_keys_rejected(self):
        with self.assertRaises(InvalidRedactionArgument):
            spans_from_utterances([{"channel": 0, "offset": 10, "redacted_spans": ["x"]}])

    def test_non_dict_rejected(self):
        with self.assertRaises(InvalidRedactionArgument):
            spans_from_utterances(["hello"])

    def test_unhashable_channel_rejected(self):
        with self.assertRaises(InvalidRedactionArgument):
            spans_from_utterances([{"channel": [0], "offset": 0, "duration": 10, "redacted_spans": ["x"]}])

    def test_string_and_int_channels_grouped_together(self):
        index = spans_from_utterances([
            {"channel": 0, "offset": 0, "duration": 100, "redacted_spans": ["a"]},
            {"channel": "0", "offset": 500, "duration": 100, "redacted_spans": ["b"]},
        ])
        self.assertEqual(index, {0: (RedactionSpan(0, 100), RedactionSpan(500, 100))})

    def test_non_list_rejected(self):
        with self.assertRaises(InvalidRedactionArgument):
            spans_from_utterances(5)

    def test_overlapping_redacted_utterances_rejected(self):
        with self.assertRaises(SpanOrderError):
            spans_from_utterances([
                {"channel": 0, "offset": 0, "duration": 500, "redacted_spans": ["a"]},
                {"channel": 0, "offset": 400, "duration": 500, "redacted_spans": ["b"]},
            ])


class TestCutsFromUtterances(unittest.TestCase):

    def test_all_channels_sorted(self):
        cuts = cuts_from_utterances(UTTERANCES)
        self.assertEqual(cuts, [CutInterval(3000, 700), CutInterval(5200, 900)])

    def test_channel_filter(self):
        self.assertEqual(cuts_from_utterances(UTTERANCES, channel=1), [CutInterval(5200, 900)])

    def test_none_rejected(self):
        with self.assertRaises(InvalidRedactionArgument):
            cuts_from_utterances(None)

    def test_channel_filter_matches_string_channels(self):
        utterances = [{"channel": "1", "offset": 40, "duration": 10, "redacted_audio_spans": ["x"]}]
        self.assertEqual(cuts_from_utterances(utterances, channel=1), [CutInterval(40, 10)])

    def test_bad_channel_rejected(self):
        utterances = [{"channel": None, "offset": 40, "duration": 10, "redacted_audio_spans": ["x"]}]
        with self.assertRaises(InvalidRedactionArgument):
            cuts_from_utterances(utterances, channel=0)


if __name__ == "__main__":
    unittest.main()
