"""Polar (azimuth, elevation) to canvas pixel mapping for the skyplane.

0° azimuth plots at the top of the disc, azimuth grows clockwise.
90° elevation (zenith) is the center, 0° (horizon) is the outer ring.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Tuple

__all__ = [
    "AZIMUTH_OFFSET_RAD",
    "ELEVATION_WRAP_DEG",
    "DisplayPoint",
    "Projection",
    "normalize_elevation",
    "project",
]

# Rotation applied to every bearing so that north points up.
AZIMUTH_OFFSET_RAD: float = math.radians(-90.0)

# Elevation readings at or above this are an encoder wrap, not a real angle.
ELEVATION_WRAP_DEG: float = 350.0


class DisplayPoint(NamedTuple):
    """Canvas coordinates in pixels."""

    x: float
    y: float


def normalize_elevation(el: float) -> float:
    """Map wrapped elevation readings (>= 350°) back to the horizon."""
    return 0.0 if el >= ELEVATION_WRAP_DEG else el


def project(
    az: float,
    el: float,
    radius: float,
    center: Tuple[float, float],
) -> DisplayPoint:
    """Project (az, el) in degrees onto a disc of `radius` around `center`.

    The result never lies outside the disc: points that would land beyond the
    ring (negative elevation, float error) are scaled back onto it.

    Raises:
        ValueError: if az is not finite or el is NaN.
    """
    az = float(az)
    el = float(el)
    if not math.isfinite(az) or math.isnan(el):
        raise ValueError(f"Cannot project angle az={az!r} el={el!r}")

    cx, cy = center
    # Anything below the horizon lands on the ring; -90 keeps -inf finite.
    el = max(normalize_elevation(el), -90.0)

    theta = math.radians(az) + AZIMUTH_OFFSET_RAD
    fraction = 1.0 - (el / 90.0)

    dx = radius * fraction * math.cos(theta)
    dy = radius * fraction * math.sin(theta)

    distance = math.hypot(dx, dy)
    if distance > radius:
        scale = radius / distance
        dx *= scale
        dy *= scale

    return DisplayPoint(cx + dx, cy + dy)


class Projection:
    """Fixed projection parameters for one canvas.

    Built once at startup from the canvas size; there is no resize handling.
    """

    DEFAULT_MARGIN: float = 20.0

    def __init__(self, center_x: float, center_y: float, radius: float):
        if radius <= 0:
            raise ValueError(f"Projection radius must be positive, got {radius!r}")
        self.center_x = float(center_x)
        self.center_y = float(center_y)
        self.radius = float(radius)

    @classmethod
    def for_canvas(cls, width: float, height: float, margin: float = DEFAULT_MARGIN) -> "Projection":
        """Center the disc on the canvas, leaving `margin` pixels for labels."""
        cx = width / 2.0
        cy = height / 2.0
        return cls(cx, cy, min(cx, cy) - margin)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.center_x, self.center_y)

    def project(self, az: float, el: float) -> DisplayPoint:
        """Project onto this canvas' disc. See :func:`project`."""
        return project(az, el, self.radius, self.center)

    def on_ring(self, bearing: float, ring_radius: float) -> DisplayPoint:
        """Point at `bearing` degrees on a circle of `ring_radius` (no clamping)."""
        theta = math.radians(bearing) + AZIMUTH_OFFSET_RAD
        return DisplayPoint(
            self.center_x + ring_radius * math.cos(theta),
            self.center_y + ring_radius * math.sin(theta),
        )

    def __repr__(self) -> str:
        return (
            f"Projection(center_x={self.center_x!r}, center_y={self.center_y!r}, "
            f"radius={self.radius!r})"
        )
