"""
Global time ordering of tap sample streams.

Each tap produces samples in non-decreasing cycle order. The merger
repeatedly picks the tap whose next sample is earliest, advances a shared
virtual clock up to that cycle, and drains exactly one sample from it.

Clock encoding (two waveform ticks per hardware cycle):
    #2c     b0 0    low phase of cycle c
    #2c+1   b1 0    high phase of cycle c

Idle gaps longer than `max_gap` cycles are collapsed: one pair of `x`
ticks is emitted and the clock jumps to `target - max_gap`, so output size
is bounded regardless of gap length.

Tie-break: when several taps share the earliest cycle, the lowest tap id
goes first (then manifest order).
"""

import heapq
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from ..decode.decoder import TapRuntimeState, ValueChange


MAX_DELAY_CYCLES = 10000


@dataclass(frozen=True)
class ClockTick:
    """One clock transition at a half-cycle timestamp."""
    timestamp: int
    value: str   # '0', '1' or 'x'


@dataclass
class TimelineStep:
    """
    One merge step.

    Attributes:
        tap_id: Tap drained in this step (None for the closing tick)
        cycle_time: Cycle the step's changes belong to
        ticks: Clock transitions leading up to `cycle_time`
        changes: Value changes of the drained sample
    """
    tap_id: Optional[int]
    cycle_time: int
    ticks: List[ClockTick] = field(default_factory=list)
    changes: List[ValueChange] = field(default_factory=list)


class VirtualClock:
    """Waveform clock advanced in whole cycles."""

    def __init__(self, max_gap: int = MAX_DELAY_CYCLES, cycle: int = 0):
        if max_gap <= 0:
            raise ValueError(f"Invalid max gap: {max_gap}")
        self.max_gap = max_gap
        self.cycle = cycle

    def advance_to(self, target: int) -> List[ClockTick]:
        """Emit the ticks from the current cycle up to (excluding) `target`."""
        if target < self.cycle:
            raise ValueError(f"Clock cannot move backwards: {self.cycle} -> {target}")

        ticks = []
        if target - self.cycle > self.max_gap:
            ticks.append(ClockTick(self.cycle * 2, 'x'))
            ticks.append(ClockTick(self.cycle * 2 + 1, 'x'))
            self.cycle = target - self.max_gap

        while self.cycle < target:
            ticks.append(ClockTick(self.cycle * 2, '0'))
            ticks.append(ClockTick(self.cycle * 2 + 1, '1'))
            self.cycle += 1

        return ticks


class TimelineMerger:
    """
    k-way merge of tap sample streams.

    Usage:
        merger = TimelineMerger(taps, max_gap=10000)
        for step in merger.steps(decoder.decode_sample):
            writer.write_step(step)
    """

    def __init__(self, taps: Iterable[TapRuntimeState], max_gap: int = MAX_DELAY_CYCLES):
        self.taps = list(taps)
        self.clock = VirtualClock(max_gap)
        self.samples_merged = 0

        # (cycle_time, tap_id, manifest index)
        self._queue: List[Tuple[int, int, int]] = [
            (tap.cycle_time, tap.id, index)
            for index, tap in enumerate(self.taps)
            if not tap.exhausted
        ]
        heapq.heapify(self._queue)

    @property
    def cycles(self) -> int:
        return self.clock.cycle

    def select(self) -> Optional[TapRuntimeState]:
        """Earliest non-exhausted tap, or None when all are drained."""
        if not self._queue:
            return None
        return self.taps[self._queue[0][2]]

    def steps(self, decode_sample: Callable[[TapRuntimeState], List[ValueChange]]
              ) -> Iterator[TimelineStep]:
        """
        Drain every tap in global time order.

        `decode_sample` is called exactly once per step on the selected tap
        and must advance its cursor (and cycle time). Errors it raises
        propagate to the consumer.
        """
        while self._queue:
            _, _, index = heapq.heappop(self._queue)
            tap = self.taps[index]
            cycle_time = tap.cycle_time

            ticks = self.clock.advance_to(cycle_time)
            changes = decode_sample(tap)
            self.samples_merged += 1

            if not tap.exhausted:
                if tap.cycle_time < cycle_time:
                    raise ValueError(
                        f"Tap #{tap.id} went back in time: {cycle_time} -> {tap.cycle_time}"
                    )
                heapq.heappush(self._queue, (tap.cycle_time, tap.id, index))

            yield TimelineStep(tap.id, cycle_time, ticks, changes)

        if self.samples_merged:
            closing = self.clock.cycle + 1
            yield TimelineStep(None, closing, self.clock.advance_to(closing), [])
