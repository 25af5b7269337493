"""
tapscope - Trace capture and waveform reconstruction for on-chip scope units.

This package provides:
- protocol: Scope command codec over an injected register transport
- manifest: Declared taps and their signals
- decode: Per-tap sample decoding
- timeline: Time-ordered merge of tap streams
- waveform: VCD output
- session: Capture session with auto-stop watchdog
- config: YAML configuration with environment variable support
- cli: Command-line interface
"""

__version__ = "1.0.0"

from .core import (
    ErrorCode,
    ScopeError,
    ManifestError,
    ConfigMismatchError,
    DeviceIOError,
    SessionStateError,
    CaptureReport,
)
from .protocol import Opcode, RegisterTransport, CallbackTransport, ScopeProtocol
from .manifest import SignalSpec, TapSpec, Manifest, load_manifest
from .decode import SignalDescriptor, TapRuntimeState, TraceDecoder, ValueChange
from .timeline import TimelineMerger, VirtualClock, MAX_DELAY_CYCLES
from .waveform import WaveformWriter, build_scope_tree
from .session import ScopeSession, SessionState
from .config import ScopeConfig, load_config

__all__ = [
    # Version
    '__version__',
    # Errors
    'ErrorCode',
    'ScopeError',
    'ManifestError',
    'ConfigMismatchError',
    'DeviceIOError',
    'SessionStateError',
    'CaptureReport',
    # Protocol
    'Opcode',
    'RegisterTransport',
    'CallbackTransport',
    'ScopeProtocol',
    # Manifest
    'SignalSpec',
    'TapSpec',
    'Manifest',
    'load_manifest',
    # Decode
    'SignalDescriptor',
    'TapRuntimeState',
    'TraceDecoder',
    'ValueChange',
    # Timeline
    'TimelineMerger',
    'VirtualClock',
    'MAX_DELAY_CYCLES',
    # Waveform
    'WaveformWriter',
    'build_scope_tree',
    # Session
    'ScopeSession',
    'SessionState',
    # Config
    'ScopeConfig',
    'load_config',
]
