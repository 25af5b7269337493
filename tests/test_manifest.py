"""
Tests for the scope manifest model.

CRITICAL TESTS:
1. test_signal_order_preserved - declaration order drives bit assignment
2. test_width_sum_mismatch - signal widths must add up to the tap width
3. test_missing_file - missing manifest is a ManifestError
"""

import pytest

from tapscope.core.errors import ErrorCode, ManifestError
from tapscope.manifest import Manifest, SignalSpec, load_manifest

from conftest import CACHE_MANIFEST, SHARED_PREFIX_MANIFEST


def _tap(**overrides):
    tap = {"id": 0, "width": 8, "path": "core.cache", "signals": [["valid", 1], ["data", 7]]}
    tap.update(overrides)
    return {"taps": [tap]}


class TestLoadManifest:
    """Test loading manifests from disk."""

    def test_load_json(self, write_manifest):
        manifest = load_manifest(write_manifest(CACHE_MANIFEST))

        assert len(manifest) == 1
        tap = manifest.tap(0)
        assert tap.width == 8
        assert tap.path == "core.cache"
        assert tap.name == "cache"
        assert tap.path_segments == ["core", "cache"]

    def test_signal_order_preserved(self, write_manifest):
        manifest = load_manifest(write_manifest(SHARED_PREFIX_MANIFEST))

        assert manifest.tap(1).signals == (SignalSpec("flag", 1), SignalSpec("state", 2))
        assert manifest.total_signals == 4

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "scope.yml"
        path.write_text(
            "taps:\n"
            "  - id: 3\n"
            "    width: 5\n"
            "    path: top.fifo\n"
            "    signals:\n"
            "      - [push, 1]\n"
            "      - {name: level, width: 4}\n"
        )
        manifest = load_manifest(path)
        assert manifest.tap(3).signals == (SignalSpec("push", 1), SignalSpec("level", 4))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError) as exc_info:
            load_manifest(tmp_path / "nope.json")
        assert exc_info.value.code == ErrorCode.E1001_MANIFEST_NOT_FOUND

    def test_unparsable_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{ taps: [")
        with pytest.raises(ManifestError) as exc_info:
            load_manifest(path)
        assert exc_info.value.code == ErrorCode.E1002_MANIFEST_PARSE_FAILED

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ManifestError) as exc_info:
            load_manifest(path)
        assert exc_info.value.code == ErrorCode.E1002_MANIFEST_PARSE_FAILED

    @pytest.mark.parametrize("name", ["scope.json", "scope.yaml"])
    def test_not_utf8(self, tmp_path, name):
        path = tmp_path / name
        path.write_bytes(b'\xff\xfe{"taps": []}')
        with pytest.raises(ManifestError) as exc_info:
            load_manifest(path)
        assert exc_info.value.code == ErrorCode.E1002_MANIFEST_PARSE_FAILED

    def test_source_recorded(self, write_manifest):
        path = write_manifest(CACHE_MANIFEST)
        assert load_manifest(path).source == path


class TestManifestValidation:
    """Test schema validation."""

    def test_width_sum_mismatch(self):
        with pytest.raises(ManifestError) as exc_info:
            Manifest.from_dict(_tap(width=9))
        assert exc_info.value.code == ErrorCode.E1004_SIGNAL_WIDTH_SUM
        assert "signals=8" in str(exc_info.value)

    def test_duplicate_tap_id(self):
        data = {"taps": CACHE_MANIFEST["taps"] * 2}
        with pytest.raises(ManifestError) as exc_info:
            Manifest.from_dict(data)
        assert exc_info.value.code == ErrorCode.E1005_DUPLICATE_TAP

    def test_missing_taps_list(self):
        with pytest.raises(ManifestError) as exc_info:
            Manifest.from_dict({"probes": []})
        assert exc_info.value.code == ErrorCode.E1003_MANIFEST_SCHEMA

    @pytest.mark.parametrize("key", ["id", "width", "path", "signals"])
    def test_missing_key(self, key):
        data = _tap()
        del data["taps"][0][key]
        with pytest.raises(ManifestError, match=f"missing '{key}'"):
            Manifest.from_dict(data)

    def test_no_signals(self):
        with pytest.raises(ManifestError, match="no signals"):
            Manifest.from_dict(_tap(signals=[]))

    def test_zero_width_signal(self):
        with pytest.raises(ManifestError, match="invalid width"):
            Manifest.from_dict(_tap(signals=[["valid", 0], ["data", 8]]))

    def test_empty_path_segment(self):
        with pytest.raises(ManifestError, match="bad path"):
            Manifest.from_dict(_tap(path="core..cache"))

    def test_tap_id_must_fit_command_word(self):
        with pytest.raises(ManifestError, match="bad id"):
            Manifest.from_dict(_tap(id=256))

    def test_unknown_tap_lookup(self, cache_manifest):
        with pytest.raises(KeyError):
            cache_manifest.tap(9)
