"""
Capture report returned when a scope session is drained.

Reports are small JSON documents containing:
- Metadata (version, timestamp, output path)
- Per-tap capture statistics
- Totals (samples, cycles, register operations)
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Optional


@dataclass
class TapStats:
    """Capture statistics for a single tap."""
    tap_id: int
    path: str
    width: int
    samples: int = 0
    first_cycle: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CaptureReport:
    """
    Summary of one drained capture.

    Usage:
        report = session.stop()
        if report:
            print(report.to_json(indent=2))
    """
    output_path: str
    schema_version: str = "1.0"
    generated_at: str = field(
        default_factory=lambda: datetime.utcnow().isoformat() + 'Z'
    )

    taps: List[TapStats] = field(default_factory=list)
    cycles: int = 0
    register_ops: int = 0

    @property
    def total_samples(self) -> int:
        return sum(t.samples for t in self.taps)

    @property
    def active_taps(self) -> int:
        """Taps that captured at least one sample."""
        return sum(1 for t in self.taps if t.samples > 0)

    def to_dict(self) -> dict:
        return {
            'schema_version': self.schema_version,
            'generated_at': self.generated_at,
            'output_path': self.output_path,
            'cycles': self.cycles,
            'register_ops': self.register_ops,
            'total_samples': self.total_samples,
            'active_taps': self.active_taps,
            'taps': [t.to_dict() for t in self.taps],
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)
