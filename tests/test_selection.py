from __future__ import annotations

import asyncio
import unittest

from fakes import FakeLineStore
from lazyjsonl.engine.selection import SelectionController, format_structured, structured_view_text
from lazyjsonl.errors import ParseError


class StructuredTextTests(unittest.TestCase):
    def test_pretty_output_keeps_key_order_and_two_space_indent(self) -> None:
        self.assertEqual(
            format_structured('{"b": 1, "a": [1, 2]}'),
            '{\n  "b": 1,\n  "a": [\n    1,\n    2\n  ]\n}',
        )

    def test_non_ascii_text_is_kept_verbatim(self) -> None:
        self.assertEqual(format_structured('{"name": "Zoë"}'), '{\n  "name": "Zoë"\n}')

    def test_same_line_formats_identically_every_time(self) -> None:
        raw = '{"z": {"b": [1, 2.5, null], "a": true}, "m": "x"}'

        first = format_structured(raw)
        second = format_structured(raw)

        self.assertEqual(first, second)
        self.assertEqual(format_structured(first), first)

    def test_invalid_json_raises_parse_error_with_raw_line(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            format_structured("{not json")

        self.assertEqual(ctx.exception.raw, "{not json")

    def test_invalid_json_view_includes_error_and_raw_content(self) -> None:
        text = structured_view_text("{not json")

        self.assertTrue(text.startswith("Invalid JSON on this line: "))
        self.assertTrue(text.endswith("\n\nRaw content:\n{not json"))


class SelectionControllerTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        lines = [f'{{"id": {index}}}' for index in range(10)]
        lines[3] = "plain text"
        self.store = FakeLineStore({"data.jsonl": lines})
        await self.store.open("data.jsonl")
        self.statuses: list[str] = []
        self.selection = SelectionController(self.store, lambda: 10, on_status=self.statuses.append)

    async def test_select_loads_structured_view(self) -> None:
        applied = await self.selection.select(2)

        self.assertTrue(applied)
        self.assertEqual(self.selection.active_index, 2)
        self.assertEqual(self.selection.structured_text, '{\n  "id": 2\n}')
        self.assertEqual(self.statuses, ["Fetching line 3 for pretty view...", "Parsing JSON..."])

    async def test_invalid_line_degrades_to_raw_content(self) -> None:
        await self.selection.select(3)

        self.assertIn("Raw content:\nplain text", self.selection.structured_text)

    async def test_out_of_range_selection_issues_no_fetch(self) -> None:
        await self.selection.select(2)

        applied = await self.selection.select(10)

        self.assertFalse(applied)
        self.assertIsNone(self.selection.active_index)
        self.assertEqual(self.selection.structured_text, "")
        self.assertEqual(self.store.get_line_calls, [2])
        self.assertFalse(await self.selection.select(-1))

    async def test_latest_selection_wins_over_slower_earlier_one(self) -> None:
        slow = asyncio.Event()
        self.store.line_gates[5] = slow
        earlier = asyncio.create_task(self.selection.select(5))
        await asyncio.sleep(0)

        later = await self.selection.select(6)
        slow.set()
        stale = await earlier

        self.assertTrue(later)
        self.assertFalse(stale)
        self.assertEqual(self.selection.active_index, 6)
        self.assertEqual(self.selection.structured_text, '{\n  "id": 6\n}')

    async def test_fetch_failure_is_shown_in_structured_view(self) -> None:
        self.store.lines = self.store.lines[:4]

        applied = await self.selection.select(8)

        self.assertTrue(applied)
        self.assertTrue(self.selection.structured_text.startswith("Error fetching line content: "))

    async def test_closed_controller_ignores_selection(self) -> None:
        self.selection.close()

        self.assertFalse(await self.selection.select(1))
        self.assertEqual(self.store.get_line_calls, [])


if __name__ == "__main__":
    unittest.main()
