"""
Tests for canonical forms, prefixes and digit buckets.
"""

from itertools import groupby

import pytest

from canonical import (PREFIXES, Candidate, bucket_index, bucket_upper,
                       candidates, count_candidates, initial_buckets)
from persistence import digit_product


class TestPrefixes:
    """The six fixed prefixes."""

    def test_order(self):
        assert [p.text for p in PREFIXES] == ["26", "2", "3", "4", "6", ""]

    def test_fields_are_consistent(self):
        for p in PREFIXES:
            assert len(p.text) == p.digits
            assert digit_product(int(p.text or "1")) == p.product


class TestCandidates:
    """Enumeration of canonical forms for one digit length."""

    @pytest.mark.parametrize("digits", range(2, 9))
    def test_value_is_digit_product_of_text(self, digits):
        for cand in candidates(digits):
            text = cand.text()
            assert len(text) == digits
            assert cand.value() == digit_product(int(text))

    @pytest.mark.parametrize("digits", [2, 3, 7, 15, 40])
    def test_distinct_and_counted(self, digits):
        texts = [c.text() for c in candidates(digits)]
        assert len(texts) == len(set(texts))
        assert len(texts) == count_candidates(digits)

    def test_no_five_next_to_eight_or_even_prefix(self):
        for cand in candidates(12):
            if cand.fives:
                assert cand.eights == 0
                assert cand.prefix.product % 2 == 1

    def test_digit_order_in_text(self):
        cand = Candidate(9, PREFIXES[2], fives=2, sevens=3, nines=3)
        assert cand.text() == "355777999"
        assert cand.value() == 3 * 5**2 * 7**3 * 9**3

    def test_two_digit_forms(self):
        texts = [c.text() for c in candidates(2)]
        assert texts[0] == "26"
        assert "39" in texts and "77" in texts and "55" in texts
        assert "58" not in texts and "25" not in texts

    def test_known_witnesses_are_enumerated(self):
        for witness in ("679", "6788", "68889", "2677889", "26888999", "3778888999"):
            assert witness in {c.text() for c in candidates(len(witness))}

    @pytest.mark.parametrize("digits", [4, 6, 9])
    def test_ascending_within_prefix_and_family(self, digits):
        runs = groupby(candidates(digits), key=lambda c: (c.prefix.text, c.fives > 0))
        for _, group in runs:
            texts = [c.text() for c in group]
            assert texts == sorted(texts)

    def test_empty_prefix_comes_last(self):
        texts = [c.text() for c in candidates(6)]
        assert texts.index("699999") < texts.index("555555")


class TestBuckets:
    """Progress bucket bookkeeping."""

    def test_small_run_has_one_bucket(self):
        assert initial_buckets(12) == [11]

    def test_bucket_sizes(self):
        assert initial_buckets(250) == [99, 100, 50]
        assert initial_buckets(200) == [99, 100]

    def test_bucket_countdown_covers_every_length(self):
        for max_digits in (2, 12, 100, 101, 345):
            left = initial_buckets(max_digits)
            for d in range(2, max_digits + 1):
                left[bucket_index(d)] -= 1
            assert all(v == 0 for v in left)

    def test_bucket_upper(self):
        assert bucket_index(100) == 0
        assert bucket_index(101) == 1
        assert bucket_upper(0, 12) == 12
        assert bucket_upper(1, 250) == 200
        assert bucket_upper(2, 250) == 250

    def test_custom_width(self):
        assert initial_buckets(25, width=10) == [9, 10, 5]

    def test_invalid(self):
        with pytest.raises(ValueError):
            initial_buckets(1)
        with pytest.raises(ValueError):
            initial_buckets(10, width=0)
