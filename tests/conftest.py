"""Pytest fixtures shared across tapscope tests."""

import json
from pathlib import Path

import pytest

from tapscope.config import ScopeConfig
from tapscope.manifest import Manifest


# Single tap from the cache example: valid (bit 7) + data (bits 6-0)
CACHE_MANIFEST = {
    "taps": [
        {"id": 0, "width": 8, "path": "core.cache", "signals": [["valid", 1], ["data", 7]]},
    ]
}

# Two taps sharing the a.b prefix
SHARED_PREFIX_MANIFEST = {
    "taps": [
        {"id": 0, "width": 4, "path": "a.b.x", "signals": [["lo", 2], ["hi", 2]]},
        {"id": 1, "width": 3, "path": "a.b.y", "signals": [["flag", 1], ["state", 2]]},
    ]
}


@pytest.fixture
def cache_manifest() -> Manifest:
    return Manifest.from_dict(CACHE_MANIFEST)


@pytest.fixture
def shared_manifest() -> Manifest:
    return Manifest.from_dict(SHARED_PREFIX_MANIFEST)


@pytest.fixture
def write_manifest(tmp_path: Path):
    """Write a manifest dict to a JSON file and return its path."""
    def _write(data: dict, name: str = "scope.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return path
    return _write


@pytest.fixture
def scope_config(tmp_path: Path, write_manifest) -> ScopeConfig:
    """Config pointing at the cache manifest with output in tmp_path."""
    config = ScopeConfig()
    config.capture.manifest_path = str(write_manifest(CACHE_MANIFEST))
    config.waveform.output_path = str(tmp_path / "scope.vcd")
    return config


@pytest.fixture(autouse=True)
def clean_scope_env(monkeypatch):
    """Keep SCOPE_* variables from the outer environment out of tests."""
    for name in ("SCOPE_JSON_PATH", "SCOPE_DEPTH", "SCOPE_TIMEOUT", "SCOPE_OUTPUT"):
        monkeypatch.delenv(name, raising=False)
