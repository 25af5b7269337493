"""
Tests for the scope command protocol.

CRITICAL TESTS:
1. test_command_word_layout - (value << 11) | (tap << 3) | opcode
2. test_write_then_read - every command is one write followed by one read
3. test_write_failure_aborts - transport errors become DeviceIOError, no retry
"""

import pytest

from tapscope.core.errors import DeviceIOError, ErrorCode
from tapscope.protocol import (
    Opcode,
    encode_command,
    decode_command,
    CallbackTransport,
    RegisterTransport,
    ScopeProtocol,
)


class RecordingTransport(RegisterTransport):
    """Transport that records operations and replays canned responses."""

    def __init__(self, responses=None, fail_write=False, fail_read=False):
        self.ops = []
        self.responses = list(responses or [])
        self.fail_write = fail_write
        self.fail_read = fail_read

    def write(self, word):
        if self.fail_write:
            raise OSError("bus error")
        self.ops.append(('write', word))

    def read(self):
        if self.fail_read:
            raise OSError("timeout")
        self.ops.append(('read', None))
        return self.responses.pop(0) if self.responses else 0


class TestCommandCodec:
    """Test command word packing."""

    def test_command_word_layout(self):
        """Opcode in bits 0-2, tap id in bits 3-10, value from bit 11."""
        assert encode_command(Opcode.GET_WIDTH, 0) == 0
        assert encode_command(Opcode.GET_DATA, 2) == (2 << 3) | 3
        assert encode_command(Opcode.SET_DEPTH, 1, 256) == (256 << 11) | (1 << 3) | 6

    def test_opcode_values(self):
        """Opcodes match the scope RTL."""
        assert [int(op) for op in Opcode] == [0, 1, 2, 3, 4, 5, 6]
        assert Opcode.SET_START.is_config
        assert not Opcode.GET_DATA.is_config

    def test_decode_inverts_encode(self):
        word = encode_command(Opcode.SET_STOP, 17, 123456)
        assert decode_command(word) == (Opcode.SET_STOP, 17, 123456)

    def test_value_rejected_for_queries(self):
        with pytest.raises(ValueError, match="does not take a value"):
            encode_command(Opcode.GET_COUNT, 0, 5)

    def test_tap_id_range(self):
        encode_command(Opcode.GET_WIDTH, 255)
        with pytest.raises(ValueError, match="out of range"):
            encode_command(Opcode.GET_WIDTH, 256)

    def test_negative_value(self):
        with pytest.raises(ValueError):
            encode_command(Opcode.SET_START, 0, -1)


class TestScopeProtocol:
    """Test command issue over a transport."""

    def test_write_then_read(self):
        """Each command is one write of the command word then one read."""
        transport = RecordingTransport(responses=[44])
        protocol = ScopeProtocol(transport)

        assert protocol.get_width(5) == 44
        assert transport.ops == [('write', (5 << 3) | 0), ('read', None)]
        assert protocol.io_count == 2

    def test_config_commands_pack_value(self):
        transport = RecordingTransport()
        protocol = ScopeProtocol(transport)

        protocol.set_start(1, 1000)
        protocol.set_stop(1, 2000)
        protocol.set_depth(1, 64)

        writes = [word for op, word in transport.ops if op == 'write']
        assert writes == [
            (1000 << 11) | (1 << 3) | 4,
            (2000 << 11) | (1 << 3) | 5,
            (64 << 11) | (1 << 3) | 6,
        ]

    def test_write_failure_aborts(self):
        """Write failure raises DeviceIOError and nothing is read."""
        transport = RecordingTransport(fail_write=True)
        protocol = ScopeProtocol(transport)

        with pytest.raises(DeviceIOError) as exc_info:
            protocol.get_count(3)

        assert exc_info.value.code == ErrorCode.E2001_REGISTER_WRITE_FAILED
        assert exc_info.value.context == {'tap': 3, 'opcode': 'GET_COUNT'}
        assert isinstance(exc_info.value.__cause__, OSError)
        assert transport.ops == []

    def test_read_failure(self):
        transport = RecordingTransport(fail_read=True)
        protocol = ScopeProtocol(transport)

        with pytest.raises(DeviceIOError) as exc_info:
            protocol.get_data(0)

        assert exc_info.value.code == ErrorCode.E2002_REGISTER_READ_FAILED
        # No retry: exactly one write went out
        assert len(transport.ops) == 1

    def test_non_integer_response(self):
        protocol = ScopeProtocol(CallbackTransport(lambda w: None, lambda: "garbage"))
        with pytest.raises(DeviceIOError, match="non-integer"):
            protocol.get_start(0)

    def test_callback_transport(self):
        written = []
        protocol = ScopeProtocol(CallbackTransport(written.append, lambda: 7))

        assert protocol.get_count(2) == 7
        assert written == [(2 << 3) | 1]

    def test_callback_failure_raises(self):
        def failing_write(word):
            raise OSError("bus error")

        protocol = ScopeProtocol(CallbackTransport(failing_write, lambda: 0))
        with pytest.raises(DeviceIOError) as exc_info:
            protocol.set_depth(1, 16)
        assert exc_info.value.code == ErrorCode.E2001_REGISTER_WRITE_FAILED
