"""Configuration management for tapscope."""

from .schema import (
    ScopeConfig,
    CaptureConfig,
    DeviceConfig,
    WaveformConfig,
    load_config,
    generate_default_config,
)

__all__ = [
    'ScopeConfig',
    'CaptureConfig',
    'DeviceConfig',
    'WaveformConfig',
    'load_config',
    'generate_default_config',
]
