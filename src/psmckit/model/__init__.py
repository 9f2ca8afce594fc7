"""Coalescent model, time discretisation, and time segment patterns."""

from psmckit.model.base import CoalescentModel, ModelFactory
from psmckit.model.pattern import (
    format_time_segment_pattern,
    normalize_time_segment_pattern,
    parse_time_segment_pattern,
    segment_offsets,
    validate_time_segment_pattern,
)
from psmckit.model.psmc import PSMCModel
from psmckit.model.time_intervals import TimeIntervals

__all__ = [
    "CoalescentModel",
    "ModelFactory",
    "PSMCModel",
    "TimeIntervals",
    "parse_time_segment_pattern",
    "format_time_segment_pattern",
    "normalize_time_segment_pattern",
    "validate_time_segment_pattern",
    "segment_offsets",
]
