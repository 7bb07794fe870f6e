"""Tests for token estimation and stream truncation."""

import unittest

from tooldjinn.tools.output_trimmer import (
    TRUNCATION_MARKER,
    estimate_tokens,
    truncate_stream,
)


class TestEstimateTokens(unittest.TestCase):

    def test_empty_text_is_zero(self):
        self.assertEqual(estimate_tokens(""), 0)

    def test_rounds_up(self):
        self.assertEqual(estimate_tokens("abcd"), 1)
        self.assertEqual(estimate_tokens("abcde"), 2)
        self.assertEqual(estimate_tokens("x" * 400), 100)


class TestTruncateStream(unittest.TestCase):

    def test_within_budget_is_unchanged(self):
        result = truncate_stream("x" * 100, prefer_tail=True, token_budget=50)
        self.assertEqual(result.content, "x" * 100)
        self.assertEqual(result.displayed_tokens, 25)
        self.assertEqual(result.total_tokens, 25)
        self.assertFalse(result.truncated)

    def test_empty_content(self):
        result = truncate_stream("", prefer_tail=False, token_budget=10)
        self.assertEqual(result.content, "")
        self.assertEqual(result.total_tokens, 0)

    def test_tail_only_keeps_end_of_output(self):
        content = "a" * 500 + "b" * 500
        result = truncate_stream(content, prefer_tail=True, token_budget=10)

        self.assertTrue(result.content.startswith(TRUNCATION_MARKER.rstrip()))
        self.assertTrue(result.content.endswith("b" * 14))
        self.assertNotIn("a", result.content)
        self.assertEqual(result.total_tokens, 250)
        self.assertEqual(result.displayed_tokens, 10)
        self.assertTrue(result.truncated)

    def test_head_and_tail_split(self):
        content = "h" * 300 + "t" * 300
        result = truncate_stream(content, prefer_tail=False, token_budget=100)

        head, marker, tail = result.content.partition(TRUNCATION_MARKER)
        self.assertEqual(marker, TRUNCATION_MARKER)
        self.assertEqual(head, "h" * 224)
        self.assertEqual(tail, "t" * 150)
        self.assertEqual(result.displayed_tokens, 100)

    def test_result_always_fits_budget(self):
        content = "line of build output\n" * 2000
        for budget in (8, 20, 120, 220, 480, 1200):
            for prefer_tail in (True, False):
                with self.subTest(budget=budget, prefer_tail=prefer_tail):
                    result = truncate_stream(content, prefer_tail, budget)
                    self.assertLessEqual(estimate_tokens(result.content), budget)
                    self.assertLessEqual(result.displayed_tokens, result.total_tokens)

    def test_truncation_is_idempotent(self):
        content = "0123456789" * 1000
        first = truncate_stream(content, prefer_tail=False, token_budget=200)
        second = truncate_stream(first.content, prefer_tail=False, token_budget=200)
        self.assertEqual(second.content, first.content)
        self.assertFalse(second.truncated)

    def test_budget_smaller_than_marker_hard_slices(self):
        content = "abcdefghij" * 100

        head = truncate_stream(content, prefer_tail=False, token_budget=5)
        self.assertEqual(head.content, content[:20])
        self.assertNotIn("truncated", head.content)

        tail = truncate_stream(content, prefer_tail=True, token_budget=5)
        self.assertEqual(tail.content, content[-20:])

    def test_zero_budget_returns_empty(self):
        result = truncate_stream("something", prefer_tail=True, token_budget=0)
        self.assertEqual(result.content, "")
        self.assertEqual(result.displayed_tokens, 0)
        self.assertEqual(result.total_tokens, 3)


if __name__ == "__main__":
    unittest.main()
