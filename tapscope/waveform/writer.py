"""
Value change dump (VCD) writer.

Output layout:

    $version Generated by tapscope $end
    $timescale 1 ns $end
    $scope module TOP $end
     $var wire 1 0 clk $end
     $scope module core $end
      $scope module cache $end
       $var wire 1 1 valid $end
       $var wire 7 2 data $end
      $upscope $end
     $upscope $end
    $upscope $end
    enddefinitions $end
    #0
    b0 0
    #1
    b1 0
    ...
    b1 1
    b0101010 2

Variable identifiers are the decimal signal ids; id 0 is the clock.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, TextIO, Tuple

from ..decode.decoder import CLOCK_SIGNAL_ID, TapRuntimeState
from ..timeline.merger import TimelineStep

DEFAULT_VERSION = "Generated by tapscope"
DEFAULT_TIMESCALE = "1 ns"
TOP_SCOPE = "TOP"
CLOCK_NAME = "clk"


@dataclass
class ScopeNode:
    """Module scope in the waveform hierarchy."""
    name: str
    key: Tuple[str, ...]
    children: Dict[str, 'ScopeNode'] = field(default_factory=dict)
    taps: List[TapRuntimeState] = field(default_factory=list)

    def child(self, name: str) -> 'ScopeNode':
        node = self.children.get(name)
        if node is None:
            node = ScopeNode(name=name, key=self.key + (name,))
            self.children[name] = node
        return node


def build_scope_tree(taps: Iterable[TapRuntimeState]) -> List[ScopeNode]:
    """
    Build the scope hierarchy from dotted tap paths.

    Taps sharing a path prefix share the interior scopes; each tap is
    attached to the scope of its full path. Roots and children keep
    first-encounter order.
    """
    roots: Dict[str, ScopeNode] = {}
    for tap in taps:
        segments = tap.path.split('.')
        node = roots.get(segments[0])
        if node is None:
            node = ScopeNode(name=segments[0], key=(segments[0],))
            roots[segments[0]] = node
        for segment in segments[1:]:
            node = node.child(segment)
        node.taps.append(tap)
    return list(roots.values())


class WaveformWriter:
    """
    Stream a VCD document.

    Usage:
        with open('scope.vcd', 'w') as f:
            writer = WaveformWriter(f)
            writer.write_header(taps)
            for step in merger.steps(decoder.decode_sample):
                writer.write_step(step)
    """

    def __init__(self, stream: TextIO, timescale: str = DEFAULT_TIMESCALE,
                 version: str = DEFAULT_VERSION):
        self.stream = stream
        self.timescale = timescale
        self.version = version

        self.records_written = 0
        self.timestamps_written = 0

    def _line(self, text: str) -> None:
        self.stream.write(text)
        self.stream.write('\n')

    def write_header(self, taps: Iterable[TapRuntimeState]) -> None:
        """Write the definitions section for every tap."""
        self._line(f"$version {self.version} $end")
        self._line(f"$timescale {self.timescale} $end")
        self._line(f"$scope module {TOP_SCOPE} $end")
        self._line(f" $var wire 1 {CLOCK_SIGNAL_ID} {CLOCK_NAME} $end")

        for root in build_scope_tree(taps):
            self._write_scope(root, 1)

        self._line("$upscope $end")
        self._line("enddefinitions $end")

    def _write_scope(self, node: ScopeNode, indentation: int) -> None:
        indent = ' ' * indentation
        self._line(f"{indent}$scope module {node.name} $end")

        for tap in node.taps:
            for signal in tap.signals:
                self._line(f"{indent} $var wire {signal.width} {signal.id} {signal.name} $end")

        for child in node.children.values():
            self._write_scope(child, indentation + 1)

        self._line(f"{indent}$upscope $end")

    def write_step(self, step: TimelineStep) -> None:
        """Write clock ticks then the step's value changes."""
        for tick in step.ticks:
            self._line(f"#{tick.timestamp}")
            self._line(f"b{tick.value} {CLOCK_SIGNAL_ID}")
            self.timestamps_written += 1
            self.records_written += 1

        if step.changes and self.timestamps_written == 0:
            # Changes before any clock tick belong to time zero.
            self._line("#0")
            self.timestamps_written += 1

        for change in step.changes:
            self._line(f"b{change.bits} {change.signal_id}")
            self.records_written += 1

    def flush(self) -> None:
        self.stream.flush()
