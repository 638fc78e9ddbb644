# test_label_layout.py

import itertools
import unittest

from errors import GeometryDegenerate
from geometry import Point, Rect
from label_layout import (
    CenteredAboveBox,
    CenteredInBox,
    HersheyFont,
    LeftCenter,
    label_size,
    layout,
)


class FixedWidthFont:
    """10 px per character, 12 px tall."""

    def measure(self, text):
        return len(text) * 10, 12


class ZeroFont:
    def measure(self, text):
        return 0, 0


class TestLayoutBasics(unittest.TestCase):
    def setUp(self):
        self.font = FixedWidthFont()

    def test_rect_size_includes_padding(self):
        placed = layout(Point(100, 100), "Alice", self.font, (640, 480), LeftCenter(), padding=8)
        self.assertEqual(placed.rect_width, 50 + 16)
        self.assertEqual(placed.rect_height, 12 + 16)

    def test_left_center_placement(self):
        placed = layout(Point(100, 100), "Alice", self.font, (640, 480), LeftCenter(), padding=8)
        self.assertEqual(placed.rect_x, 100)
        self.assertEqual(placed.rect_y, 100 - 14)
        self.assertEqual(placed.text_x, 108)
        self.assertEqual(placed.text_y, 100)

    def test_centered_in_box(self):
        box = Rect(100, 100, 200, 100)
        placement = CenteredInBox()
        placed = layout(placement.anchor_for(box), "cup", self.font, (640, 480), placement, padding=5)
        rect = placed.rect
        self.assertAlmostEqual(rect.center.x, box.center.x)
        self.assertAlmostEqual(rect.center.y, box.center.y)

    def test_centered_above_box(self):
        box = Rect(100, 200, 100, 100)
        placement = CenteredAboveBox(gap=6)
        placed = layout(placement.anchor_for(box), "cup", self.font, (640, 480), placement, padding=5)
        self.assertAlmostEqual(placed.rect.center.x, 150)
        self.assertAlmostEqual(placed.rect.bottom, 200 - 6)

    def test_left_center_anchor_for_box(self):
        self.assertEqual(LeftCenter(margin=15).anchor_for(Rect(10, 20, 100, 60)), Point(125, 50))


class TestLayoutClamping(unittest.TestCase):
    def setUp(self):
        self.font = FixedWidthFont()

    def test_clamped_at_right_and_bottom_edges(self):
        placed = layout(Point(630, 475), "Alice", self.font, (640, 480), LeftCenter(), padding=8)
        self.assertEqual(placed.rect.right, 640)
        self.assertEqual(placed.rect.bottom, 480)

    def test_clamped_at_top_left(self):
        placement = CenteredAboveBox(gap=6)
        placed = layout(placement.anchor_for(Rect(0, 0, 20, 20)), "person", self.font, (640, 480), placement)
        self.assertEqual(placed.rect_x, 0)
        self.assertEqual(placed.rect_y, 0)

    def test_label_larger_than_canvas_is_shrunk(self):
        placed = layout(Point(0, 0), "x" * 100, self.font, (200, 20), CenteredInBox(), padding=8)
        self.assertEqual(placed.rect_width, 200)
        self.assertEqual(placed.rect_height, 20)
        self.assertEqual((placed.rect_x, placed.rect_y), (0, 0))

    def test_always_inside_canvas(self):
        texts = ["", "A", "Alice (Sister)", "a much longer label than usual " * 3]
        canvases = [(1, 1), (50, 30), (640, 480), (1920, 1080)]
        anchors = [Point(-500, -500), Point(0, 0), Point(320, 240), Point(5000, 5000), Point(639, 10)]
        placements = [LeftCenter(), CenteredInBox(), CenteredAboveBox()]
        fonts = [FixedWidthFont(), HersheyFont(scale=0.4), HersheyFont(scale=1.5, thickness=2)]

        for text, (cw, ch), anchor, placement, font in itertools.product(
            texts, canvases, anchors, placements, fonts
        ):
            placed = layout(anchor, text, font, (cw, ch), placement)
            if placed is None:
                self.assertEqual(text, "")
                continue
            self.assertGreaterEqual(placed.rect_x, 0)
            self.assertGreaterEqual(placed.rect_y, 0)
            self.assertLessEqual(placed.rect_x + placed.rect_width, cw)
            self.assertLessEqual(placed.rect_y + placed.rect_height, ch)


class TestLayoutDegenerate(unittest.TestCase):
    def test_empty_canvas_skipped(self):
        self.assertIsNone(layout(Point(0, 0), "Alice", FixedWidthFont(), (0, 480), LeftCenter()))
        self.assertIsNone(layout(Point(0, 0), "Alice", FixedWidthFont(), (640, -1), LeftCenter()))

    def test_zero_size_text_skipped(self):
        self.assertIsNone(layout(Point(0, 0), "Alice", ZeroFont(), (640, 480), LeftCenter()))

    def test_non_finite_anchor_skipped(self):
        self.assertIsNone(layout(Point(float("nan"), 0), "Alice", FixedWidthFont(), (640, 480), LeftCenter()))

    def test_label_size_rejects_degenerate_geometry(self):
        with self.assertRaises(GeometryDegenerate):
            label_size("Alice", ZeroFont(), (640, 480))
        with self.assertRaises(GeometryDegenerate):
            label_size("Alice", FixedWidthFont(), (0, 480))

    def test_label_size_shrinks_to_canvas(self):
        self.assertEqual(label_size("Alice", FixedWidthFont(), (640, 480), padding=8), (66, 28))
        self.assertEqual(label_size("Alice", FixedWidthFont(), (40, 20), padding=8), (40, 20))


class TestHersheyFont(unittest.TestCase):
    def test_measure_grows_with_text(self):
        font = HersheyFont()
        w1, h1 = font.measure("A")
        w2, h2 = font.measure("AAAA")
        self.assertGreater(w1, 0)
        self.assertGreater(h1, 0)
        self.assertGreater(w2, w1)
        self.assertEqual(h1, h2)


if __name__ == "__main__":
    unittest.main()
