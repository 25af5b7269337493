"""Errors and reports shared across tapscope."""

from .errors import (
    ErrorCode,
    ERROR_METADATA,
    ScopeError,
    ManifestError,
    ConfigMismatchError,
    DeviceIOError,
    SessionStateError,
)
from .report import TapStats, CaptureReport

__all__ = [
    # Errors
    'ErrorCode',
    'ERROR_METADATA',
    'ScopeError',
    'ManifestError',
    'ConfigMismatchError',
    'DeviceIOError',
    'SessionStateError',
    # Report
    'TapStats',
    'CaptureReport',
]
