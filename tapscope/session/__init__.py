"""Capture session control."""

from .controller import SessionState, ScopeSession

__all__ = [
    'SessionState',
    'ScopeSession',
]
