"""
End-to-end capture tests against the simulated scope.

CRITICAL TESTS:
1. test_cache_waveform_exact - full VCD for the single-tap cache capture
2. test_timestamps_monotonic - merged multi-tap output never goes back in time
3. test_samples_recovered - every captured value appears at its cycle
"""

import re
from pathlib import Path

from tapscope.config import ScopeConfig
from tapscope.manifest import Manifest
from tapscope.session import ScopeSession
from tapscope.testing import DEMO_MANIFEST, SimulatedScopeDevice, TapCapture, random_captures


def clock_lines(first_cycle, last_cycle):
    lines = []
    for cycle in range(first_cycle, last_cycle):
        lines += [f"#{2 * cycle}", "b0 0", f"#{2 * cycle + 1}", "b1 0"]
    return lines


def run_capture(tmp_path, manifest, captures, **waveform):
    config = ScopeConfig()
    config.waveform.output_path = str(tmp_path / "scope.vcd")
    for key, value in waveform.items():
        setattr(config.waveform, key, value)

    session = ScopeSession(SimulatedScopeDevice(captures), config, manifest=manifest)
    session.start()
    report = session.stop()
    return report, Path(config.waveform.output_path).read_text()


def parse_body(vcd):
    """Return [(timestamp, id, bits)] for every non-clock value change."""
    body = vcd.split("enddefinitions $end\n", 1)[1]
    now = None
    changes = []
    for line in body.splitlines():
        if line.startswith("#"):
            now = int(line[1:])
            continue
        bits, ident = line[1:].split(" ")
        if ident != "0":
            changes.append((now, int(ident), bits))
    return changes


class TestCacheCapture:
    """Single tap: valid (bit 7) and data (bits 6-0)."""

    def test_cache_waveform_exact(self, tmp_path, cache_manifest):
        capture = TapCapture(width=8, samples=[0xAA, 0x35], start=10, deltas=[0, 2])
        report, vcd = run_capture(tmp_path, cache_manifest, {0: capture})

        body = vcd.split("enddefinitions $end\n", 1)[1].splitlines()
        expected = (
            clock_lines(0, 11)
            + ["b0101010 2", "b1 1"]
            + clock_lines(11, 14)
            + ["b0110101 2", "b0 1"]
            + clock_lines(14, 15)
        )
        assert body == expected
        assert report.cycles == 15

    def test_long_gap_collapsed(self, tmp_path, cache_manifest):
        capture = TapCapture.from_cycles(8, [0x01, 0x02], [2, 50_000])
        _, vcd = run_capture(tmp_path, cache_manifest, {0: capture}, max_gap_cycles=100)

        body = vcd.split("enddefinitions $end\n", 1)[1].splitlines()
        assert body.count("bx 0") == 2
        # gap replaced by 100 cycles of clock before the second sample
        second = body.index("b0000010 2")
        assert body[second - 2] == f"#{2 * 50_000 - 1}"
        assert len(body) < 600


class TestDemoCapture:
    """Three taps with a shared scope prefix."""

    def test_timestamps_monotonic(self, tmp_path):
        manifest = Manifest.from_dict(DEMO_MANIFEST)
        _, vcd = run_capture(tmp_path, manifest, random_captures(manifest, samples_per_tap=50))

        stamps = [int(m) for m in re.findall(r"^#(\d+)$", vcd, flags=re.MULTILINE)]
        assert stamps == sorted(stamps)
        assert len(stamps) == len(set(stamps))

    def test_samples_recovered(self, tmp_path):
        manifest = Manifest.from_dict(DEMO_MANIFEST)
        captures = random_captures(manifest, samples_per_tap=30, seed=3, max_delta=4)
        report, vcd = run_capture(tmp_path, manifest, captures)

        changes = parse_body(vcd)
        # signal ids: tap0 -> 1..2, tap1 -> 3..6, tap2 -> 7..9
        id_ranges = {0: range(1, 3), 1: range(3, 7), 2: range(7, 10)}

        for tap in manifest:
            capture = captures[tap.id]
            ids = id_ranges[tap.id]
            widths = [s.width for s in tap.signals]
            for sample, cycle in zip(capture.samples, capture.cycles()):
                at_cycle = {i: bits for t, i, bits in changes
                            if t == 2 * cycle - 1 and i in ids}
                value = int("".join(at_cycle[i] for i in ids), 2)
                assert value == sample
                assert [len(at_cycle[i]) for i in ids] == widths

        assert report.total_samples == 90
        assert report.active_taps == 3
