"""Scope manifest: declared taps and their signals."""

from .model import SignalSpec, TapSpec, Manifest, load_manifest

__all__ = [
    'SignalSpec',
    'TapSpec',
    'Manifest',
    'load_manifest',
]
