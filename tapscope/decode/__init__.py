"""Tap sample decoding."""

from .decoder import (
    CLOCK_SIGNAL_ID,
    SignalDescriptor,
    ValueChange,
    TapRuntimeState,
    TraceDecoder,
    build_runtime_states,
)

__all__ = [
    'CLOCK_SIGNAL_ID',
    'SignalDescriptor',
    'ValueChange',
    'TapRuntimeState',
    'TraceDecoder',
    'build_runtime_states',
]
