from __future__ import annotations

import unittest

from lazyjsonl.engine.viewport import (
    EMPTY_WINDOW,
    FALLBACK_LINE_HEIGHT,
    ViewportController,
    Window,
    compute_window,
)


class ComputeWindowTests(unittest.TestCase):
    def test_window_overscans_both_sides_of_visible_range(self) -> None:
        window = compute_window(1000 * 15, 15, 50 * 15, 5000, overscan=10)

        self.assertEqual(window, Window(990, 1060))
        self.assertEqual(len(window), 70)

    def test_window_is_clamped_at_document_start(self) -> None:
        self.assertEqual(compute_window(0, 20, 100, 1000), Window(0, 15))

    def test_window_is_clamped_at_document_end(self) -> None:
        window = compute_window(1900, 20, 100, 100)

        self.assertEqual(window, Window(85, 100))

    def test_window_stays_within_bounds_when_scrolled_past_end(self) -> None:
        window = compute_window(10_000, 20, 100, 30)

        self.assertLessEqual(window.start, window.end)
        self.assertEqual(window.end, 30)
        self.assertEqual(window.start, 30)

    def test_empty_document_yields_empty_window(self) -> None:
        self.assertEqual(compute_window(0, 20, 100, 0), EMPTY_WINDOW)
        self.assertEqual(list(EMPTY_WINDOW), [])

    def test_unmeasured_line_height_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            compute_window(0, 0, 100, 10)


class ViewportControllerTests(unittest.TestCase):
    def test_line_height_falls_back_when_probe_reports_zero(self) -> None:
        viewport = ViewportController(100)

        with self.assertLogs("lazyjsonl.engine.viewport", level="WARNING"):
            height = viewport.ensure_line_height(lambda: 0.0)

        self.assertEqual(height, FALLBACK_LINE_HEIGHT)

    def test_line_height_is_measured_once(self) -> None:
        viewport = ViewportController(100)
        calls: list[int] = []

        def probe() -> float:
            calls.append(1)
            return 20.0

        viewport.ensure_line_height(probe)
        viewport.ensure_line_height(probe)

        self.assertEqual(viewport.line_height, 20.0)
        self.assertEqual(len(calls), 1)

    def test_scroll_to_clamps_to_extent(self) -> None:
        viewport = ViewportController(100)
        viewport.line_height = 20.0

        self.assertTrue(viewport.scroll_to(5000, 100))
        self.assertEqual(viewport.scroll_offset, 1900.0)
        self.assertFalse(viewport.scroll_to(5000, 100))
        self.assertTrue(viewport.scroll_to(-10, 100))
        self.assertEqual(viewport.scroll_offset, 0.0)

    def test_scroll_to_reveal_moves_minimally(self) -> None:
        viewport = ViewportController(100)
        viewport.line_height = 20.0

        self.assertFalse(viewport.scroll_to_reveal(3, 100))
        self.assertTrue(viewport.scroll_to_reveal(50, 100))
        self.assertEqual(viewport.scroll_offset, 920.0)
        self.assertTrue(viewport.scroll_to_reveal(10, 100))
        self.assertEqual(viewport.scroll_offset, 200.0)

    def test_resize_reports_changes_only(self) -> None:
        viewport = ViewportController(100)

        self.assertFalse(viewport.resize(100))
        self.assertTrue(viewport.resize(240))
        self.assertEqual(viewport.viewport_height, 240.0)

    def test_extent_covers_every_line(self) -> None:
        viewport = ViewportController(100)
        viewport.line_height = 15.0

        self.assertEqual(viewport.extent(5000), 75_000.0)
        self.assertEqual(viewport.first_visible(), 0)


if __name__ == "__main__":
    unittest.main()
