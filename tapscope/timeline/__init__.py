"""Time-ordered merge of tap streams."""

from .merger import (
    MAX_DELAY_CYCLES,
    ClockTick,
    TimelineStep,
    VirtualClock,
    TimelineMerger,
)

__all__ = [
    'MAX_DELAY_CYCLES',
    'ClockTick',
    'TimelineStep',
    'VirtualClock',
    'TimelineMerger',
]
