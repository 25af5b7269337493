"""
Scope register protocol.

Commands are packed into a single word and issued over an injected
register transport.
"""

from .commands import Opcode, encode_command, decode_command, MAX_TAP_ID
from .adapter import RegisterTransport, CallbackTransport, ScopeProtocol

__all__ = [
    'Opcode',
    'encode_command',
    'decode_command',
    'MAX_TAP_ID',
    'RegisterTransport',
    'CallbackTransport',
    'ScopeProtocol',
]
