"""Rendering-independent chart overlays."""

from tradeguard.analysis.overlays import Marker, OverlayOptions, Overlays, PriceLine, build_overlays

__all__ = ["Marker", "OverlayOptions", "Overlays", "PriceLine", "build_overlays"]
