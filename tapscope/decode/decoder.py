"""
Per-tap trace decoding.

Samples are streamed out of the scope one register word at a time with
GET_DATA. For a tap with `count` samples the data stream is:

    delta[0]  words(sample 0)  delta[1]  words(sample 1)  ...  words(sample count-1)

Sample layout (width W, word width 64):
    The sample is the concatenation {signals[0], ..., signals[-1]} with the
    last-declared signal in the least-significant bits. Word k carries
    sample bits [64k, 64k+63].

Timing:
    first cycle = 1 + GET_START + delta[0]
    next cycle  = cycle + 1 + delta[i]
"""

import logging
from dataclasses import dataclass, field
from typing import List

from ..manifest.model import Manifest, TapSpec
from ..protocol.adapter import ScopeProtocol

logger = logging.getLogger(__name__)

# Clock variable id in the waveform; tap signals are numbered from 1.
CLOCK_SIGNAL_ID = 0


@dataclass(frozen=True)
class SignalDescriptor:
    """
    A tap signal resolved for one session.

    Attributes:
        id: Session-unique waveform identifier
        name: Signal name
        width: Width in bits
        tap_id: Owning tap (lookup only)
    """
    id: int
    name: str
    width: int
    tap_id: int


@dataclass(frozen=True)
class ValueChange:
    """A signal taking a bit pattern (MSB first)."""
    signal_id: int
    bits: str


@dataclass
class TapRuntimeState:
    """Drain state of one tap during a stop sequence."""
    id: int
    width: int
    path: str
    signals: List[SignalDescriptor] = field(default_factory=list)
    samples: int = 0
    cursor: int = 0
    cycle_time: int = 0

    @property
    def exhausted(self) -> bool:
        return self.samples == 0 or self.cursor == self.samples

    @property
    def remaining(self) -> int:
        return self.samples - self.cursor

    @classmethod
    def from_spec(cls, spec: TapSpec, first_signal_id: int) -> 'TapRuntimeState':
        signals = [
            SignalDescriptor(id=first_signal_id + i, name=s.name, width=s.width, tap_id=spec.id)
            for i, s in enumerate(spec.signals)
        ]
        return cls(id=spec.id, width=spec.width, path=spec.path, signals=signals)


def build_runtime_states(manifest: Manifest) -> List[TapRuntimeState]:
    """
    Create fresh runtime state for every tap in the manifest.

    Signal ids are assigned once, in manifest order, starting after the
    clock id.
    """
    states = []
    next_id = CLOCK_SIGNAL_ID + 1
    for spec in manifest:
        state = TapRuntimeState.from_spec(spec, next_id)
        next_id += len(state.signals)
        states.append(state)
    return states


class TraceDecoder:
    """
    Stream samples out of the scope and split them into signal values.

    Usage:
        decoder = TraceDecoder(protocol)
        for tap in taps:
            decoder.load_tap_info(tap)
        changes = decoder.decode_sample(tap)
    """

    def __init__(self, protocol: ScopeProtocol, word_width: int = 64,
                 progress_interval: int = 100):
        if word_width <= 0:
            raise ValueError(f"Invalid word width: {word_width}")
        self.protocol = protocol
        self.word_width = word_width
        self.progress_interval = progress_interval
        self._word_mask = (1 << word_width) - 1

    def load_tap_info(self, tap: TapRuntimeState) -> None:
        """Query sample count, start cycle and first delta for a tap."""
        count = self.protocol.get_count(tap.id)
        if count == 0:
            tap.samples = 0
            tap.cursor = 0
            logger.info(f"tap #{tap.id}: no samples, path={tap.path}")
            return

        start = self.protocol.get_start(tap.id)
        delta = self.protocol.get_data(tap.id)

        tap.samples = count
        tap.cursor = 0
        tap.cycle_time = 1 + start + delta

        logger.info(
            f"tap #{tap.id}: width={tap.width}, num_samples={tap.samples}, "
            f"start_time={tap.cycle_time}, path={tap.path}"
        )

    def decode_sample(self, tap: TapRuntimeState) -> List[ValueChange]:
        """
        Drain one sample at the tap's cursor.

        Returns value changes in reverse declaration order (the order the
        signals are filled). Advances the cursor and, when samples remain,
        reads the next delta into `cycle_time`.

        Raises:
            DeviceIOError: If a register access fails
            ValueError: If the tap is exhausted
        """
        if tap.exhausted:
            raise ValueError(f"Tap #{tap.id} has no samples left")

        changes = []
        word = 0
        available = 0   # unread bits left in `word`

        for signal in reversed(tap.signals):
            value = 0
            filled = 0
            while filled < signal.width:
                if available == 0:
                    word = self.protocol.get_data(tap.id) & self._word_mask
                    available = self.word_width
                take = min(signal.width - filled, available)
                shift = self.word_width - available
                value |= ((word >> shift) & ((1 << take) - 1)) << filled
                filled += take
                available -= take
            changes.append(ValueChange(signal.id, format(value, f'0{signal.width}b')))

        tap.cursor += 1
        if tap.cursor != tap.samples:
            delta = self.protocol.get_data(tap.id)
            tap.cycle_time += 1 + delta

        if self.progress_interval and tap.cursor % self.progress_interval == 0:
            logger.info(
                f"flush tap #{tap.id}: {tap.cursor}/{tap.samples} samples, "
                f"{tap.remaining} left, next_time={tap.cycle_time}"
            )

        return changes
