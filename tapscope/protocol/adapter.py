"""
Register transport and scope protocol adapter.

RegisterTransport is the injected two-operation primitive (write a command
word, read a response word). ScopeProtocol issues one command at a time
over it: a write of the command word followed by a read of the response.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable

from .commands import Opcode, encode_command
from ..core.errors import DeviceIOError, ErrorCode

logger = logging.getLogger(__name__)


class RegisterTransport(ABC):
    """
    Abstract register access to the scope unit.

    Implementations raise OSError (or DeviceIOError) on failure.
    """

    @abstractmethod
    def write(self, word: int) -> None:
        """Write a command word."""
        pass

    @abstractmethod
    def read(self) -> int:
        """Read the response word."""
        pass


class CallbackTransport(RegisterTransport):
    """
    Adapt a pair of plain callables to RegisterTransport.

    The callables report failure by raising OSError; return values of
    `write_fn` are ignored, so a status-code style callback must be wrapped
    to raise instead.

    Example:
        transport = CallbackTransport(
            write_fn=lambda w: mmio.write64(SCOPE_WRITE, w),
            read_fn=lambda: mmio.read64(SCOPE_READ),
        )
    """

    def __init__(self, write_fn: Callable[[int], None], read_fn: Callable[[], int]):
        self._write_fn = write_fn
        self._read_fn = read_fn

    def write(self, word: int) -> None:
        self._write_fn(word)

    def read(self) -> int:
        return self._read_fn()


class ScopeProtocol:
    """
    Synchronous command interface to the scope.

    Every call completes its write and read before returning; there is no
    pipelining and no retry. Any transport failure is raised as
    DeviceIOError.
    """

    def __init__(self, transport: RegisterTransport):
        self.transport = transport
        self.io_count = 0

    def command(self, opcode: Opcode, tap_id: int, value: int = 0) -> int:
        """Issue one command and return the response word."""
        word = encode_command(opcode, tap_id, value)
        context = {'tap': tap_id, 'opcode': Opcode(opcode).name}

        try:
            self.transport.write(word)
        except DeviceIOError:
            raise
        except OSError as e:
            raise DeviceIOError(
                ErrorCode.E2001_REGISTER_WRITE_FAILED, str(e), context
            ) from e
        self.io_count += 1

        try:
            response = self.transport.read()
        except DeviceIOError:
            raise
        except OSError as e:
            raise DeviceIOError(
                ErrorCode.E2002_REGISTER_READ_FAILED, str(e), context
            ) from e
        self.io_count += 1

        if not isinstance(response, int):
            raise DeviceIOError(
                ErrorCode.E2002_REGISTER_READ_FAILED,
                f"non-integer response {response!r}",
                context,
            )
        return response

    def get_width(self, tap_id: int) -> int:
        return self.command(Opcode.GET_WIDTH, tap_id)

    def get_count(self, tap_id: int) -> int:
        return self.command(Opcode.GET_COUNT, tap_id)

    def get_start(self, tap_id: int) -> int:
        return self.command(Opcode.GET_START, tap_id)

    def get_data(self, tap_id: int) -> int:
        return self.command(Opcode.GET_DATA, tap_id)

    def set_start(self, tap_id: int, cycle: int) -> None:
        self.command(Opcode.SET_START, tap_id, cycle)

    def set_stop(self, tap_id: int, cycle: int) -> None:
        self.command(Opcode.SET_STOP, tap_id, cycle)

    def set_depth(self, tap_id: int, depth: int) -> None:
        self.command(Opcode.SET_DEPTH, tap_id, depth)
