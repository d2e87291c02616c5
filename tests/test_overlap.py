"""Unit tests for chunk boundary overlap detection."""
import pytest

from docqa.chunking.overlap import MIN_OVERLAP_CHARS, find_text_overlap, significant_overlap


class TestFindTextOverlap:
    """Longest suffix/prefix word run between adjacent chunks."""

    def test_basic_overlap(self):
        assert find_text_overlap("the quick brown fox", "brown fox jumps") == "brown fox"

    def test_no_overlap(self):
        assert find_text_overlap("the quick brown fox", "jumps over the dog") == ""

    def test_empty_inputs(self):
        assert find_text_overlap("", "anything") == ""
        assert find_text_overlap("anything", "") == ""
        assert find_text_overlap("", "") == ""

    def test_longest_window_wins(self):
        # k=1 ("a") and k=3 ("a b a") both match; the longest must be returned
        assert find_text_overlap("x a b a", "a b a y") == "a b a"

    def test_does_not_stop_at_first_match(self):
        prev = "one two one two"
        nxt = "one two one two three"
        assert find_text_overlap(prev, nxt) == "one two one two"

    def test_whole_text_overlap(self):
        assert find_text_overlap("brown fox", "brown fox") == "brown fox"

    def test_whitespace_is_normalised(self):
        assert find_text_overlap("the quick\nbrown   fox", "brown\tfox jumps") == "brown fox"

    def test_word_level_not_substring(self):
        # "fox" vs "foxes" is a substring match but not a word match
        assert find_text_overlap("the quick brown fox", "foxes run") == ""

    @pytest.mark.parametrize(
        "prev,nxt,expected",
        [
            ("a b c d", "c d e", "c d"),
            ("a b c d", "d e f", "d"),
            ("a b c d", "b c d e", "b c d"),
            ("a b c d", "a b c d e", "a b c d"),
        ],
    )
    def test_exact_k(self, prev, nxt, expected):
        assert find_text_overlap(prev, nxt) == expected


class TestSignificantOverlap:
    """Short coincidental overlaps are not recorded."""

    def test_short_overlap_ignored(self):
        assert significant_overlap("the quick brown fox", "brown fox jumps") == ""

    def test_long_overlap_kept(self):
        shared = "machine learning engineer at Acme"
        result = significant_overlap(f"I worked as a {shared}", f"{shared} for three years")
        assert result == shared
        assert len(result) > MIN_OVERLAP_CHARS

    def test_exactly_threshold_is_not_significant(self):
        shared = "abcde fghij klmnopqr"  # 20 characters
        assert len(shared) == MIN_OVERLAP_CHARS
        assert significant_overlap(f"x {shared}", f"{shared} y") == ""
