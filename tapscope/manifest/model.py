"""
Scope manifest model.

The manifest lists the taps compiled into the scope and the named signals
packed into each tap sample:

    {
      "taps": [
        {"id": 0, "width": 8, "path": "core.cache",
         "signals": [["valid", 1], ["data", 7]]}
      ]
    }

Signal order is load-bearing: the last-declared signal occupies the lowest
bits of a sample.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, Union

import yaml

from ..core.errors import ErrorCode, ManifestError
from ..protocol.commands import MAX_TAP_ID


@dataclass(frozen=True)
class SignalSpec:
    """A named bit field within a tap sample."""
    name: str
    width: int


@dataclass(frozen=True)
class TapSpec:
    """
    A probe group declared in the manifest.

    Attributes:
        id: Tap identifier used in command words
        width: Total sample width in bits
        path: Dot-separated hierarchical path (e.g. "core.cache")
        signals: Signals in declaration order; widths sum to `width`
    """
    id: int
    width: int
    path: str
    signals: Tuple[SignalSpec, ...]

    @property
    def path_segments(self) -> List[str]:
        return self.path.split('.')

    @property
    def name(self) -> str:
        """Leaf segment of the path."""
        return self.path_segments[-1]


@dataclass(frozen=True)
class Manifest:
    """Taps declared by a scope manifest, in document order."""
    taps: Tuple[TapSpec, ...]
    source: Optional[Path] = None

    def __iter__(self) -> Iterator[TapSpec]:
        return iter(self.taps)

    def __len__(self) -> int:
        return len(self.taps)

    def tap(self, tap_id: int) -> TapSpec:
        for tap in self.taps:
            if tap.id == tap_id:
                return tap
        raise KeyError(tap_id)

    @property
    def total_signals(self) -> int:
        return sum(len(t.signals) for t in self.taps)

    @classmethod
    def from_dict(cls, data: Any, source: Optional[Path] = None) -> 'Manifest':
        """Build and validate a manifest from a parsed document."""
        where = str(source) if source else '<manifest>'

        if not isinstance(data, dict) or not isinstance(data.get('taps'), list):
            raise ManifestError(
                ErrorCode.E1003_MANIFEST_SCHEMA,
                f"{where}: expected an object with a 'taps' list",
            )

        taps = []
        seen_ids = set()
        for index, entry in enumerate(data['taps']):
            tap = _parse_tap(entry, index, where)
            if tap.id in seen_ids:
                raise ManifestError(
                    ErrorCode.E1005_DUPLICATE_TAP,
                    f"{where}: tap #{tap.id}",
                )
            seen_ids.add(tap.id)
            taps.append(tap)

        return cls(taps=tuple(taps), source=source)


def _is_uint(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _parse_signal(entry: Any, where: str) -> SignalSpec:
    if isinstance(entry, dict):
        name, width = entry.get('name'), entry.get('width')
    elif isinstance(entry, (list, tuple)) and len(entry) == 2:
        name, width = entry
    else:
        raise ManifestError(
            ErrorCode.E1003_MANIFEST_SCHEMA,
            f"{where}: signal must be [name, width], got {entry!r}",
        )

    if not isinstance(name, str) or not name:
        raise ManifestError(ErrorCode.E1003_MANIFEST_SCHEMA, f"{where}: bad signal name {name!r}")
    if not _is_uint(width) or width == 0:
        raise ManifestError(
            ErrorCode.E1003_MANIFEST_SCHEMA,
            f"{where}: signal '{name}' has invalid width {width!r}",
        )
    return SignalSpec(name=name, width=width)


def _parse_tap(entry: Any, index: int, where: str) -> TapSpec:
    if not isinstance(entry, dict):
        raise ManifestError(ErrorCode.E1003_MANIFEST_SCHEMA, f"{where}: taps[{index}] is not an object")

    for key in ('id', 'width', 'path', 'signals'):
        if key not in entry:
            raise ManifestError(
                ErrorCode.E1003_MANIFEST_SCHEMA,
                f"{where}: taps[{index}] missing '{key}'",
            )

    tap_id, width, path = entry['id'], entry['width'], entry['path']
    if not _is_uint(tap_id) or tap_id > MAX_TAP_ID:
        raise ManifestError(ErrorCode.E1003_MANIFEST_SCHEMA, f"{where}: taps[{index}] bad id {tap_id!r}")
    if not _is_uint(width) or width == 0:
        raise ManifestError(ErrorCode.E1003_MANIFEST_SCHEMA, f"{where}: tap #{tap_id} bad width {width!r}")
    if not isinstance(path, str) or not all(path.split('.')):
        raise ManifestError(ErrorCode.E1003_MANIFEST_SCHEMA, f"{where}: tap #{tap_id} bad path {path!r}")

    raw_signals = entry['signals']
    if not isinstance(raw_signals, list) or not raw_signals:
        raise ManifestError(ErrorCode.E1003_MANIFEST_SCHEMA, f"{where}: tap #{tap_id} has no signals")

    signals = tuple(_parse_signal(s, f"{where}: tap #{tap_id}") for s in raw_signals)

    total = sum(s.width for s in signals)
    if total != width:
        raise ManifestError(
            ErrorCode.E1004_SIGNAL_WIDTH_SUM,
            f"{where}: tap #{tap_id} signals={total}, width={width}",
        )

    return TapSpec(id=tap_id, width=width, path=path, signals=signals)


def load_manifest(path: Union[str, Path]) -> Manifest:
    """
    Load a scope manifest from disk.

    JSON is the native format; .yml/.yaml documents are also accepted.

    Raises:
        ManifestError: If the file is missing, unparsable or inconsistent
    """
    path = Path(path)

    try:
        raw = path.read_bytes()
    except FileNotFoundError as e:
        raise ManifestError(
            ErrorCode.E1001_MANIFEST_NOT_FOUND, f"cannot open scope manifest file: {path}"
        ) from e
    except OSError as e:
        raise ManifestError(
            ErrorCode.E1001_MANIFEST_NOT_FOUND, f"cannot read {path}: {e}"
        ) from e

    try:
        text = raw.decode('utf-8')
        if path.suffix.lower() in ('.yml', '.yaml'):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ManifestError(ErrorCode.E1002_MANIFEST_PARSE_FAILED, f"{path}: {e}") from e

    if data is None:
        raise ManifestError(ErrorCode.E1002_MANIFEST_PARSE_FAILED, f"{path}: empty document")

    return Manifest.from_dict(data, source=path)
