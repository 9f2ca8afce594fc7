"""Tests for time segment patterns and time intervals."""

from __future__ import annotations

import math

import numpy as np
import pytest

from psmckit.exceptions import ConfigurationError, ModelError, PatternError
from psmckit.model import (
    TimeIntervals,
    format_time_segment_pattern,
    normalize_time_segment_pattern,
    parse_time_segment_pattern,
    segment_offsets,
    validate_time_segment_pattern,
)


class TestParsePattern:
    def test_count_times_size_terms(self):
        assert parse_time_segment_pattern("1*4+2*2") == (4, 2, 2)

    def test_bare_size_is_one_segment(self):
        assert parse_time_segment_pattern("3+1") == (3, 1)

    def test_whitespace_is_ignored(self):
        assert parse_time_segment_pattern(" 2 * 1 + 1*3 ") == (1, 1, 3)

    def test_typical_default_pattern(self):
        pattern = parse_time_segment_pattern("1*2+25*1+1*2+1*3")
        assert len(pattern) == 28
        assert sum(pattern) == 32

    @pytest.mark.parametrize("text", ["", "a*2", "1*2*3", "0*2", "2*0", "1*-1"])
    def test_invalid_terms_raise(self, text):
        with pytest.raises(PatternError):
            parse_time_segment_pattern(text)

    def test_format_is_run_length_encoded(self):
        assert format_time_segment_pattern((4, 2, 2, 1)) == "1*4+2*2+1*1"

    def test_format_parses_back(self):
        pattern = (2, 2, 1, 1, 1, 3)
        assert parse_time_segment_pattern(format_time_segment_pattern(pattern)) == pattern


class TestNormalizeAndValidate:
    def test_sequence_of_ints(self):
        assert normalize_time_segment_pattern([2, 2]) == (2, 2)

    def test_string_is_parsed(self):
        assert normalize_time_segment_pattern("2*2") == (2, 2)

    @pytest.mark.parametrize("pattern", [[], [2, 0], [1.5], [True, 1]])
    def test_rejects_bad_entries(self, pattern):
        with pytest.raises(PatternError):
            normalize_time_segment_pattern(pattern)

    def test_sum_mismatch_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="covers 3 intervals"):
            validate_time_segment_pattern((2, 1), 4)

    def test_matching_sum_passes(self):
        validate_time_segment_pattern((2, 2), 4)

    def test_segment_offsets_are_cumulative(self):
        np.testing.assert_array_equal(segment_offsets((2, 3, 1)), [0, 2, 5])


class TestTimeIntervals:
    def test_standard_boundaries(self):
        ti = TimeIntervals.standard(4)
        assert ti.nr_intervals == 4
        assert ti.boundaries[0] == 0.0
        assert math.isinf(ti.boundaries[-1])
        assert ti.boundaries[2] == pytest.approx(-math.log(0.5))

    def test_factor_scales_boundaries(self):
        base = TimeIntervals.standard(5)
        scaled = TimeIntervals.standard(5, factor=0.1)
        np.testing.assert_allclose(scaled.as_array()[:-1], 0.1 * base.as_array()[:-1])

    def test_left_and_right_boundary(self):
        ti = TimeIntervals((0.0, 1.0, 3.0, math.inf))
        assert ti.left_boundary(1) == 1.0
        assert ti.right_boundary(1) == 3.0

    @pytest.mark.parametrize(
        "bounds",
        [(0.0,), (0.5, math.inf), (0.0, 2.0), (0.0, 2.0, 1.0, math.inf)],
    )
    def test_invalid_boundaries(self, bounds):
        with pytest.raises(ModelError):
            TimeIntervals(bounds)

    def test_standard_requires_positive_count(self):
        with pytest.raises(ModelError):
            TimeIntervals.standard(0)
