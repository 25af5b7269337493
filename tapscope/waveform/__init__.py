"""Waveform (VCD) output."""

from .writer import (
    ScopeNode,
    WaveformWriter,
    build_scope_tree,
    DEFAULT_TIMESCALE,
    DEFAULT_VERSION,
)

__all__ = [
    'ScopeNode',
    'WaveformWriter',
    'build_scope_tree',
    'DEFAULT_TIMESCALE',
    'DEFAULT_VERSION',
]
