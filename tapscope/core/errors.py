"""
Error codes and exceptions for tapscope.

Structured error codes for machine-parseable diagnostics.

Format: E{category}{number}
- E1xxx: Manifest errors
- E2xxx: Device errors
- E3xxx: Configuration errors
- E4xxx: Session and output errors
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Structured error codes."""

    # E1xxx: Manifest errors
    E1001_MANIFEST_NOT_FOUND = "E1001"
    E1002_MANIFEST_PARSE_FAILED = "E1002"
    E1003_MANIFEST_SCHEMA = "E1003"
    E1004_SIGNAL_WIDTH_SUM = "E1004"
    E1005_DUPLICATE_TAP = "E1005"

    # E2xxx: Device errors
    E2001_REGISTER_WRITE_FAILED = "E2001"
    E2002_REGISTER_READ_FAILED = "E2002"
    E2003_TAP_WIDTH_MISMATCH = "E2003"

    # E3xxx: Configuration errors
    E3001_INVALID_CONFIG = "E3001"

    # E4xxx: Session and output errors
    E4001_SESSION_RUNNING = "E4001"
    E4002_OUTPUT_WRITE_FAILED = "E4002"


# Error code metadata
ERROR_METADATA = {
    ErrorCode.E1001_MANIFEST_NOT_FOUND: {
        'severity': 'error',
        'message': 'Scope manifest file not found',
        'recoverable': False,
    },
    ErrorCode.E1002_MANIFEST_PARSE_FAILED: {
        'severity': 'error',
        'message': 'Invalid scope manifest file',
        'recoverable': False,
    },
    ErrorCode.E1003_MANIFEST_SCHEMA: {
        'severity': 'error',
        'message': 'Scope manifest does not match schema',
        'recoverable': False,
    },
    ErrorCode.E1004_SIGNAL_WIDTH_SUM: {
        'severity': 'error',
        'message': 'Signal widths do not add up to tap width',
        'recoverable': False,
    },
    ErrorCode.E1005_DUPLICATE_TAP: {
        'severity': 'error',
        'message': 'Duplicate tap identifier',
        'recoverable': False,
    },
    ErrorCode.E2001_REGISTER_WRITE_FAILED: {
        'severity': 'error',
        'message': 'Register write failed',
        'recoverable': False,
    },
    ErrorCode.E2002_REGISTER_READ_FAILED: {
        'severity': 'error',
        'message': 'Register read failed',
        'recoverable': False,
    },
    ErrorCode.E2003_TAP_WIDTH_MISMATCH: {
        'severity': 'error',
        'message': 'Hardware tap width differs from manifest',
        'recoverable': False,
    },
    ErrorCode.E3001_INVALID_CONFIG: {
        'severity': 'error',
        'message': 'Invalid configuration',
        'recoverable': False,
    },
    ErrorCode.E4001_SESSION_RUNNING: {
        'severity': 'error',
        'message': 'Scope session already running',
        'recoverable': True,
    },
    ErrorCode.E4002_OUTPUT_WRITE_FAILED: {
        'severity': 'error',
        'message': 'Failed to write waveform output',
        'recoverable': False,
    },
}


class ScopeError(Exception):
    """
    Base exception with a structured error code.

    Example:
        raise DeviceIOError(
            ErrorCode.E2002_REGISTER_READ_FAILED,
            context={'tap': 3, 'opcode': 'GET_DATA'},
        )
    """

    def __init__(self, code: ErrorCode, detail: Optional[str] = None,
                 context: Optional[dict] = None):
        self.code = code
        self.detail = detail
        self.context = context
        super().__init__(self.message)

    @property
    def severity(self) -> str:
        return ERROR_METADATA.get(self.code, {}).get('severity', 'error')

    @property
    def message(self) -> str:
        base_msg = ERROR_METADATA.get(self.code, {}).get('message', 'Unknown error')
        if self.detail:
            base_msg = f"{base_msg}: {self.detail}"
        if self.context:
            return f"{base_msg} {self.context}"
        return base_msg

    @property
    def recoverable(self) -> bool:
        return ERROR_METADATA.get(self.code, {}).get('recoverable', False)

    def to_dict(self) -> dict:
        return {
            'code': self.code.value,
            'severity': self.severity,
            'message': self.message,
            'recoverable': self.recoverable,
            'context': self.context,
        }


class ManifestError(ScopeError):
    """Manifest missing, unparsable or inconsistent."""


class ConfigMismatchError(ScopeError):
    """Hardware-reported tap width disagrees with the manifest."""


class DeviceIOError(ScopeError):
    """A register write or read failed."""


class SessionStateError(ScopeError):
    """Operation not allowed in the current session state."""
