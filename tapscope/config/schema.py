"""
Configuration schema for tapscope.

Supports:
- YAML file loading
- Environment variable substitution (${VAR_NAME})
- SCOPE_* environment overrides (malformed values are ignored)
- Validation with error messages

Example config (tapscope.yml):
    version: 1

    capture:
      manifest_path: ${BUILD_DIR}/scope.json
      timeout_seconds: 600

    waveform:
      output_path: trace.vcd
"""

import logging
import os
import re
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Any, Mapping

import yaml

logger = logging.getLogger(__name__)

# Environment overrides
ENV_MANIFEST_PATH = 'SCOPE_JSON_PATH'
ENV_CAPTURE_DEPTH = 'SCOPE_DEPTH'
ENV_TIMEOUT = 'SCOPE_TIMEOUT'
ENV_OUTPUT_PATH = 'SCOPE_OUTPUT'

DEFAULT_TIMEOUT_SECONDS = 60 * 60
DEFAULT_MAX_GAP_CYCLES = 10000
DEFAULT_PROGRESS_INTERVAL = 100


def _substitute_env_vars(value: Any) -> Any:
    """
    Substitute ${VAR_NAME} with environment variable values.

    Example:
        ${BUILD_DIR} → os.environ.get('BUILD_DIR')
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}]+)\}'

        def replace(match):
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                return match.group(0)  # Keep original if not found
            return env_value

        return re.sub(pattern, replace, value)

    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]

    return value


def _parse_uint(raw: Optional[str]) -> Optional[int]:
    """Parse a non-negative integer override, None when malformed."""
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    if value < 0:
        return None
    return value


@dataclass
class CaptureConfig:
    """Capture settings."""
    manifest_path: Optional[str] = None
    capture_depth: Optional[int] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


@dataclass
class DeviceConfig:
    """Register transport settings."""
    word_width: int = 64


@dataclass
class WaveformConfig:
    """Waveform output settings."""
    output_path: str = 'scope.vcd'
    timescale: str = '1 ns'
    max_gap_cycles: int = DEFAULT_MAX_GAP_CYCLES
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL


@dataclass
class ScopeConfig:
    """Root configuration."""

    version: int = 1
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    device: DeviceConfig = field(default_factory=DeviceConfig)
    waveform: WaveformConfig = field(default_factory=WaveformConfig)

    @classmethod
    def load(cls, path: Path) -> 'ScopeConfig':
        """Load from YAML file with env var substitution."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        data = _substitute_env_vars(data)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'ScopeConfig':
        """Create from dictionary."""
        return cls(
            version=data.get('version', 1),
            capture=CaptureConfig(**(data.get('capture') or {})),
            device=DeviceConfig(**(data.get('device') or {})),
            waveform=WaveformConfig(**(data.get('waveform') or {})),
        )

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> 'ScopeConfig':
        """
        Apply SCOPE_* overrides in place and return self.

        Malformed depth or timeout values are ignored so that a bad
        override never fails a capture session.
        """
        env = os.environ if environ is None else environ

        manifest_path = env.get(ENV_MANIFEST_PATH)
        if manifest_path:
            self.capture.manifest_path = manifest_path

        output_path = env.get(ENV_OUTPUT_PATH)
        if output_path:
            self.waveform.output_path = output_path

        raw_depth = env.get(ENV_CAPTURE_DEPTH)
        depth = _parse_uint(raw_depth)
        if depth is not None:
            self.capture.capture_depth = depth
        elif raw_depth is not None:
            logger.debug(f"Ignoring malformed {ENV_CAPTURE_DEPTH}={raw_depth!r}")

        raw_timeout = env.get(ENV_TIMEOUT)
        timeout = _parse_uint(raw_timeout)
        if timeout is not None:
            self.capture.timeout_seconds = timeout
            logger.info(f"timeout time={timeout}")
        elif raw_timeout is not None:
            logger.debug(f"Ignoring malformed {ENV_TIMEOUT}={raw_timeout!r}")

        return self

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate config. Returns list of errors (empty if valid)."""
        errors = []

        if self.capture.capture_depth is not None and self.capture.capture_depth < 0:
            errors.append(f"Invalid capture_depth: {self.capture.capture_depth}")

        if self.capture.timeout_seconds < 0:
            errors.append(f"Invalid timeout_seconds: {self.capture.timeout_seconds}")

        if self.device.word_width <= 0:
            errors.append(f"Invalid word_width: {self.device.word_width}")

        if self.waveform.max_gap_cycles <= 0:
            errors.append(f"Invalid max_gap_cycles: {self.waveform.max_gap_cycles}")

        if self.waveform.progress_interval <= 0:
            errors.append(f"Invalid progress_interval: {self.waveform.progress_interval}")

        if not self.waveform.output_path:
            errors.append("output_path must not be empty")

        return errors


def load_config(path: Optional[Path] = None,
                environ: Optional[Mapping[str, str]] = None) -> ScopeConfig:
    """Load config from file (or defaults) and apply environment overrides."""
    config = None
    if path and Path(path).exists():
        config = ScopeConfig.load(path)
    else:
        search_paths = [
            Path('./tapscope.yml'),
            Path('./tapscope.yaml'),
        ]
        for p in search_paths:
            if p.exists():
                config = ScopeConfig.load(p)
                break

    if config is None:
        config = ScopeConfig()

    return config.apply_env(environ)


def generate_default_config() -> str:
    """Generate default config as YAML."""
    return """# tapscope configuration
version: 1

capture:
  manifest_path: scope.json
  capture_depth: null
  timeout_seconds: 3600

device:
  word_width: 64

waveform:
  output_path: scope.vcd
  timescale: "1 ns"
  max_gap_cycles: 10000
  progress_interval: 100
"""
