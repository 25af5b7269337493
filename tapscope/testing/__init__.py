"""Testing utilities for tapscope."""

from .simulated_device import TapCapture, SimulatedScopeDevice, random_captures
from .scenarios import DEMO_MANIFEST, CACHE_MANIFEST, SCENARIOS, get_scenario, list_scenarios

__all__ = [
    'TapCapture',
    'SimulatedScopeDevice',
    'random_captures',
    'DEMO_MANIFEST',
    'CACHE_MANIFEST',
    'SCENARIOS',
    'get_scenario',
    'list_scenarios',
]
