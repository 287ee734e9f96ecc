import math
import unittest

from projection import Projection
from skyplane import SkyplaneRenderer, SvgCanvas, is_usable_bearing


class TestSkyplaneRenderer(unittest.TestCase):
    def setUp(self):
        self.projection = Projection.for_canvas(400, 400)
        self.canvas = SvgCanvas(400, 400)
        self.renderer = SkyplaneRenderer(self.canvas, self.projection)

    def test_grid_rings(self):
        self.renderer.draw_grid()
        rings = self.canvas.find("ring") + self.canvas.find("ring-outer")
        radii = sorted(r["r"] for r in rings)
        self.assertEqual(radii, [0.0, 45.0, 90.0, 135.0, 180.0])

        outer = self.canvas.find("ring-outer")
        self.assertEqual(len(outer), 1)
        self.assertEqual(outer[0]["r"], 180.0)
        self.assertEqual(outer[0]["stroke"], "black")

    def test_grid_spokes_and_labels(self):
        self.renderer.draw_grid()
        spokes = self.canvas.find("spoke")
        self.assertEqual(len(spokes), 8)
        for s in spokes:
            self.assertEqual((s["x1"], s["y1"]), (200.0, 200.0))
            length = math.hypot(s["x2"] - 200.0, s["y2"] - 200.0)
            self.assertAlmostEqual(length, 180.0)

        labels = {t["content"]: (t["x"], t["y"]) for t in self.canvas.find("cardinal")}
        self.assertEqual(set(labels), {"N", "E", "S", "W"})
        self.assertLess(labels["N"][1], 20.0)
        self.assertGreater(labels["E"][0], 380.0)

    def test_grid_clears_previous_drawing(self):
        self.renderer.draw_positions(0, 0, 0, 0)
        self.renderer.draw_grid()
        self.assertEqual(self.canvas.find("position"), [])

    def test_positions_are_distinct_markers(self):
        self.renderer.draw_positions(90.0, 45.0, 90.0, 45.0)
        (pos,) = self.canvas.find("position")
        (sp,) = self.canvas.find("setpoint")
        self.assertEqual((pos["cx"], pos["cy"]), (sp["cx"], sp["cy"]))
        self.assertEqual(pos["fill"], "red")
        self.assertIsNone(pos["stroke"])
        self.assertIsNone(sp["fill"])
        self.assertEqual(sp["stroke"], "blue")
        self.assertNotEqual(pos["r"], sp["r"])

    def test_position_uses_projection(self):
        self.renderer.draw_positions(180.0, 355.0, 0.0, 90.0)
        (pos,) = self.canvas.find("position")
        (sp,) = self.canvas.find("setpoint")
        expected = self.projection.project(180.0, 0.0)
        self.assertAlmostEqual(pos["cx"], expected.x)
        self.assertAlmostEqual(pos["cy"], expected.y)
        self.assertAlmostEqual(sp["cx"], 200.0)
        self.assertAlmostEqual(sp["cy"], 200.0)

    def test_wind_glyph_outside_ring_pointing_inward(self):
        self.renderer.draw_wind_indicator(90.0, True)
        (glyph,) = self.canvas.find("wind")
        tip, b1, b2 = glyph["points"]
        ring = self.projection.radius + SkyplaneRenderer.WIND_RING_OFFSET
        self.assertAlmostEqual(math.hypot(tip[0] - 200.0, tip[1] - 200.0), ring)
        # Wind from the east: glyph on the right, tip closer to center than the base.
        self.assertGreater(tip[0], 380.0)
        self.assertLess(tip[0], b1[0])
        self.assertLess(tip[0], b2[0])

    def test_wind_glyph_north(self):
        self.renderer.draw_wind_indicator(0.0, True)
        (glyph,) = self.canvas.find("wind")
        tip = glyph["points"][0]
        self.assertAlmostEqual(tip[0], 200.0)
        self.assertLess(tip[1], 20.0)

    def test_invalid_wind_data_draws_nothing(self):
        self.renderer.draw_wind_indicator(math.nan, True)
        self.renderer.draw_wind_indicator(270.0, False)
        self.renderer.draw_wind_indicator(None, True)
        self.renderer.draw_wind_indicator("N/A", True)
        self.renderer.draw_wind_indicator(math.inf, True)
        self.assertEqual(self.canvas.find("wind"), [])

    def test_redraw_order(self):
        svg = self.renderer.redraw(10.0, 20.0, 30.0, 40.0, 200.0, True)
        roles = [e["role"] for e in self.canvas.elements]
        last_grid = max(i for i, r in enumerate(roles) if r in ("ring", "ring-outer", "spoke", "cardinal"))
        self.assertLess(last_grid, roles.index("position"))
        self.assertLess(roles.index("position"), roles.index("setpoint"))
        self.assertEqual(roles[-1], "wind")
        self.assertTrue(svg.startswith("<svg"))
        self.assertIn('class="wind"', svg)

    def test_redraw_is_idempotent(self):
        first = self.renderer.redraw(10.0, 20.0, 30.0, 40.0, 200.0, True)
        second = self.renderer.redraw(10.0, 20.0, 30.0, 40.0, 200.0, True)
        self.assertEqual(first, second)

    def test_redraw_without_wind(self):
        svg = self.renderer.redraw(10.0, 20.0, 30.0, 40.0)
        self.assertNotIn("polygon", svg)


class TestSvgCanvas(unittest.TestCase):
    def test_serializes_in_draw_order(self):
        c = SvgCanvas(100, 50)
        c.circle(10, 10, 5, fill="red", role="a")
        c.line(0, 0, 10, 10, role="b")
        c.text(5, 5, "N & <S>", role="c")
        svg = c.to_svg()
        self.assertIn('width="100" height="50"', svg)
        self.assertLess(svg.index("<circle"), svg.index("<line"))
        self.assertLess(svg.index("<line"), svg.index("<text"))
        self.assertIn("N &amp; &lt;S&gt;", svg)

    def test_quotes_escaped_in_text_and_roles(self):
        c = SvgCanvas(10, 10)
        c.text(1, 1, "it's \"here\"", role='x" onload="y')
        svg = c.to_svg()
        self.assertIn("it&#x27;s &quot;here&quot;", svg)
        self.assertIn('class="x&quot; onload=&quot;y"', svg)
        self.assertNotIn('onload="', svg)

    def test_hollow_circle(self):
        c = SvgCanvas(10, 10)
        c.circle(5, 5, 2.5, stroke="blue", stroke_width=2)
        svg = c.to_svg()
        self.assertIn('fill="none"', svg)
        self.assertIn('stroke="blue"', svg)
        self.assertIn('r="2.5"', svg)


class TestUsableBearing(unittest.TestCase):
    def test_values(self):
        self.assertTrue(is_usable_bearing(0))
        self.assertTrue(is_usable_bearing("123.4"))
        self.assertFalse(is_usable_bearing(None))
        self.assertFalse(is_usable_bearing(math.nan))
        self.assertFalse(is_usable_bearing("N/A"))
        self.assertFalse(is_usable_bearing(True))


if __name__ == "__main__":
    unittest.main()
