"""Skyplane rendering: polar grid, position/setpoint markers, wind glyph.

Everything is redrawn from scratch on every update onto an :class:`SvgCanvas`,
which keeps primitives in draw order so later shapes paint over earlier ones.
The serialized SVG is what the browser shows.
"""

from __future__ import annotations

import html
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from projection import AZIMUTH_OFFSET_RAD, DisplayPoint, Projection

__all__ = ["SvgCanvas", "SkyplaneRenderer", "is_usable_bearing"]


def _fmt(value: float) -> str:
    """Compact coordinate formatting for SVG attributes."""
    return f"{value:.2f}".rstrip("0").rstrip(".")


class SvgCanvas:
    """Retained-mode drawing surface that serializes to an SVG document.

    Each primitive is stored as a dict with a ``kind`` key plus its
    attributes and a ``role`` tag naming what it depicts.
    """

    def __init__(self, width: int, height: int):
        self.width = int(width)
        self.height = int(height)
        self.elements: List[Dict[str, Any]] = []

    def clear(self) -> None:
        self.elements = []

    def circle(
        self,
        cx: float,
        cy: float,
        r: float,
        *,
        stroke: Optional[str] = None,
        fill: Optional[str] = None,
        stroke_width: float = 1.0,
        role: str = "",
    ) -> None:
        self.elements.append(
            {"kind": "circle", "cx": cx, "cy": cy, "r": r, "stroke": stroke,
             "fill": fill, "stroke_width": stroke_width, "role": role}
        )

    def line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        stroke: str = "gray",
        stroke_width: float = 1.0,
        role: str = "",
    ) -> None:
        self.elements.append(
            {"kind": "line", "x1": x1, "y1": y1, "x2": x2, "y2": y2,
             "stroke": stroke, "stroke_width": stroke_width, "role": role}
        )

    def text(
        self,
        x: float,
        y: float,
        content: str,
        *,
        fill: str = "black",
        font_size: int = 16,
        role: str = "",
    ) -> None:
        self.elements.append(
            {"kind": "text", "x": x, "y": y, "content": content, "fill": fill,
             "font_size": font_size, "role": role}
        )

    def polygon(
        self,
        points: Sequence[Tuple[float, float]],
        *,
        fill: str = "black",
        stroke: Optional[str] = None,
        role: str = "",
    ) -> None:
        self.elements.append(
            {"kind": "polygon", "points": [tuple(p) for p in points], "fill": fill,
             "stroke": stroke, "role": role}
        )

    def find(self, role: str) -> List[Dict[str, Any]]:
        """Return every primitive drawn with the given role tag."""
        return [e for e in self.elements if e.get("role") == role]

    # ----------------- Serialization -----------------
    @staticmethod
    def _element_svg(e: Dict[str, Any]) -> str:
        kind = e["kind"]
        role = f' class="{html.escape(str(e["role"]))}"' if e.get("role") else ""

        if kind == "circle":
            fill = e["fill"] or "none"
            stroke = f' stroke="{e["stroke"]}" stroke-width="{_fmt(e["stroke_width"])}"' if e["stroke"] else ""
            return (
                f'<circle{role} cx="{_fmt(e["cx"])}" cy="{_fmt(e["cy"])}" r="{_fmt(e["r"])}" '
                f'fill="{fill}"{stroke}/>'
            )
        if kind == "line":
            return (
                f'<line{role} x1="{_fmt(e["x1"])}" y1="{_fmt(e["y1"])}" '
                f'x2="{_fmt(e["x2"])}" y2="{_fmt(e["y2"])}" '
                f'stroke="{e["stroke"]}" stroke-width="{_fmt(e["stroke_width"])}"/>'
            )
        if kind == "text":
            return (
                f'<text{role} x="{_fmt(e["x"])}" y="{_fmt(e["y"])}" text-anchor="middle" '
                f'font-family="Arial" font-size="{e["font_size"]}" fill="{e["fill"]}">'
                f'{html.escape(str(e["content"]))}</text>'
            )
        if kind == "polygon":
            pts = " ".join(f"{_fmt(x)},{_fmt(y)}" for x, y in e["points"])
            stroke = f' stroke="{e["stroke"]}"' if e["stroke"] else ""
            return f'<polygon{role} points="{pts}" fill="{e["fill"]}"{stroke}/>'
        raise ValueError(f"Unknown SVG primitive: {kind!r}")

    def to_svg(self) -> str:
        body = "".join(self._element_svg(e) for e in self.elements)
        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}" height="{self.height}" '
            f'viewBox="0 0 {self.width} {self.height}">{body}</svg>'
        )


def is_usable_bearing(bearing: Any) -> bool:
    """True if `bearing` is a finite number of degrees."""
    if bearing is None or isinstance(bearing, bool):
        return False
    try:
        return math.isfinite(float(bearing))
    except (TypeError, ValueError):
        return False


class SkyplaneRenderer:
    """Draws the full skyplane on every call; no incremental diffing.

    Order is fixed: grid, then position/setpoint markers, then the wind glyph,
    so the wind indicator is never hidden behind the grid.
    """

    RING_COUNT = 4          # rings at radius * k/4 for k = 0..4
    SPOKE_STEP_DEG = 45
    LABEL_OFFSET = 10       # px outside the outer ring

    POSITION_RADIUS = 5     # solid red disc
    SETPOINT_RADIUS = 8     # hollow blue ring, larger so both stay visible

    WIND_RING_OFFSET = 12   # px outside the outer ring
    WIND_GLYPH_LENGTH = 10
    WIND_GLYPH_HALF_WIDTH = 5

    def __init__(self, canvas: SvgCanvas, projection: Projection):
        self.canvas = canvas
        self.projection = projection

    # ----------------- Grid -----------------
    def draw_grid(self) -> None:
        """Clear the canvas and draw rings, spokes and cardinal labels."""
        c = self.canvas
        p = self.projection
        cx, cy, radius = p.center_x, p.center_y, p.radius

        c.clear()

        for k in range(self.RING_COUNT, -1, -1):
            outer = k == self.RING_COUNT
            c.circle(
                cx, cy, radius * k / self.RING_COUNT,
                stroke="black" if outer else "gray",
                role="ring-outer" if outer else "ring",
            )

        for az in range(0, 360, self.SPOKE_STEP_DEG):
            rad = math.radians(az)
            c.line(cx, cy, cx + radius * math.cos(rad), cy + radius * math.sin(rad),
                   stroke="gray", role="spoke")

        off = self.LABEL_OFFSET
        for label, x, y in (
            ("N", cx, cy - radius - off),
            ("E", cx + radius + off, cy + 5),
            ("S", cx, cy + radius + 2 * off),
            ("W", cx - radius - off, cy + 5),
        ):
            c.text(x, y, label, role="cardinal")

    # ----------------- Markers -----------------
    def draw_positions(
        self,
        current_az: float,
        current_el: float,
        setpoint_az: float,
        setpoint_el: float,
    ) -> None:
        """Plot the current position (solid disc) and the setpoint (hollow ring)."""
        here: DisplayPoint = self.projection.project(current_az, current_el)
        target: DisplayPoint = self.projection.project(setpoint_az, setpoint_el)

        self.canvas.circle(here.x, here.y, self.POSITION_RADIUS, fill="red", role="position")
        self.canvas.circle(
            target.x, target.y, self.SETPOINT_RADIUS,
            stroke="blue", stroke_width=2, role="setpoint",
        )

    # ----------------- Wind -----------------
    def draw_wind_indicator(self, bearing: Any, data_valid: bool) -> None:
        """Draw a triangle just outside the grid pointing inward along `bearing`.

        The glyph marks where the wind is coming from. Nothing is drawn when
        the weather data is flagged invalid or the bearing is not a number.
        """
        if not data_valid or not is_usable_bearing(bearing):
            return

        p = self.projection
        bearing = float(bearing)
        ring = p.radius + self.WIND_RING_OFFSET
        theta = math.radians(bearing) + AZIMUTH_OFFSET_RAD

        # Tip sits on the ring, base further out, so the glyph points at the center.
        tip = p.on_ring(bearing, ring)
        base = p.on_ring(bearing, ring + self.WIND_GLYPH_LENGTH)
        px = -math.sin(theta) * self.WIND_GLYPH_HALF_WIDTH
        py = math.cos(theta) * self.WIND_GLYPH_HALF_WIDTH

        self.canvas.polygon(
            [(tip.x, tip.y), (base.x + px, base.y + py), (base.x - px, base.y - py)],
            fill="#0ea5e9",
            stroke="#075985",
            role="wind",
        )

    # ----------------- Full redraw -----------------
    def redraw(
        self,
        current_az: float,
        current_el: float,
        setpoint_az: float,
        setpoint_el: float,
        wind_bearing: Optional[float] = None,
        wind_valid: bool = False,
    ) -> str:
        """Draw everything in order and return the serialized SVG."""
        self.draw_grid()
        self.draw_positions(current_az, current_el, setpoint_az, setpoint_el)
        self.draw_wind_indicator(wind_bearing, wind_valid)
        return self.canvas.to_svg()

    def to_svg(self) -> str:
        return self.canvas.to_svg()
