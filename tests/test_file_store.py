"""Line-offset indexing, index caching and line serving from real files."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazyjsonl.errors import LineStoreError
from lazyjsonl.store import FileLineStore, IndexingStatus, LineOffset
from lazyjsonl.store import index_cache
from lazyjsonl.store.offsets import build_line_offset_index, decode_line


class OffsetIndexTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_offsets_include_terminators_and_trailing_fragment(self) -> None:
        path = self.root / "data.jsonl"
        path.write_bytes(b'{"a":1}\n\n{"b":2}\r\n{"c":3}')

        offsets = build_line_offset_index(path)

        self.assertEqual(
            offsets,
            [LineOffset(0, 8), LineOffset(8, 1), LineOffset(9, 9), LineOffset(18, 7)],
        )

    def test_empty_file_has_no_lines(self) -> None:
        path = self.root / "empty.jsonl"
        path.write_bytes(b"")

        self.assertEqual(build_line_offset_index(path), [])

    def test_lines_spanning_read_chunks_are_indexed_once(self) -> None:
        path = self.root / "chunks.jsonl"
        path.write_bytes(b"abc\ndefgh\nij\n")
        progress: list[tuple[int, int]] = []

        with mock.patch("lazyjsonl.store.offsets.READ_CHUNK_BYTES", 4):
            offsets = build_line_offset_index(path, on_progress=lambda done, total: progress.append((done, total)))

        self.assertEqual(offsets, [LineOffset(0, 4), LineOffset(4, 6), LineOffset(10, 3)])
        self.assertEqual(progress[-1], (13, 13))

    def test_decode_strips_terminators_and_leading_bom(self) -> None:
        self.assertEqual(decode_line(b"\xef\xbb\xbf{}\r\n", 0), "{}")
        self.assertEqual(decode_line(b"\xef\xbb\xbf{}\n", 1), "\ufeff{}")
        self.assertEqual(decode_line(b"caf\xff\n", 2), "caf\ufffd")


class IndexCacheTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self._patch = mock.patch("lazyjsonl.store.index_cache.CACHE_DIR", self.root / "cache")
        self._patch.start()
        self.path = self.root / "data.jsonl"
        self.path.write_bytes(b"one\ntwo\n")

    def tearDown(self) -> None:
        self._patch.stop()
        self._tmp.cleanup()

    def test_saved_index_round_trips_while_file_is_unchanged(self) -> None:
        offsets = [LineOffset(0, 4), LineOffset(4, 4)]

        index_cache.save_line_offset_index(self.path, offsets)

        self.assertEqual(index_cache.load_line_offset_index(self.path), offsets)

    def test_modified_file_invalidates_entry(self) -> None:
        index_cache.save_line_offset_index(self.path, [LineOffset(0, 4), LineOffset(4, 4)])
        self.path.write_bytes(b"one\ntwo\nthree\n")

        self.assertIsNone(index_cache.load_line_offset_index(self.path))

    def test_malformed_entry_is_a_miss(self) -> None:
        cache_path = index_cache.cache_path_for(self.path)
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text("{not json", encoding="utf-8")

        self.assertIsNone(index_cache.load_line_offset_index(self.path))

    def test_missing_entry_is_a_miss(self) -> None:
        self.assertIsNone(index_cache.load_line_offset_index(self.path))


class FileLineStoreTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self._patch = mock.patch("lazyjsonl.store.index_cache.CACHE_DIR", self.root / "cache")
        self._patch.start()
        self.path = self.root / "data.jsonl"
        self.path.write_text("".join(f'{{"id": {index}}}\n' for index in range(25)), encoding="utf-8")

    async def asyncTearDown(self) -> None:
        self._patch.stop()
        self._tmp.cleanup()

    async def test_open_reports_line_count_and_ready_status(self) -> None:
        store = FileLineStore()

        self.assertEqual(await store.status(), IndexingStatus("Idle", 0.0))
        total = await store.open(str(self.path))

        self.assertEqual(total, 25)
        self.assertEqual(await store.status(), IndexingStatus("Ready", 1.0))

    async def test_get_lines_truncates_at_end_of_file(self) -> None:
        store = FileLineStore()
        await store.open(str(self.path))

        lines = await store.get_lines(22, 10)

        self.assertEqual(lines, ['{"id": 22}', '{"id": 23}', '{"id": 24}'])
        self.assertEqual(await store.get_lines(30, 5), [])
        self.assertEqual(await store.get_lines(3, 0), [])

    async def test_get_line_rejects_out_of_range_index(self) -> None:
        store = FileLineStore()
        await store.open(str(self.path))

        self.assertEqual(await store.get_line(7), '{"id": 7}')
        with self.assertRaises(LineStoreError):
            await store.get_line(25)
        with self.assertRaises(LineStoreError):
            await store.get_lines(-1, 2)

    async def test_reads_before_open_fail(self) -> None:
        store = FileLineStore()

        with self.assertRaises(LineStoreError):
            await store.get_lines(0, 1)

    async def test_open_of_directory_sets_error_status(self) -> None:
        store = FileLineStore()

        with self.assertRaises(LineStoreError):
            await store.open(str(self.root))

        status = await store.status()
        self.assertTrue(status.is_error())
        self.assertTrue(status.is_terminal())

    async def test_second_open_uses_index_cache(self) -> None:
        await FileLineStore().open(str(self.path))

        store = FileLineStore()
        with mock.patch("lazyjsonl.store.file_store.build_line_offset_index") as build:
            total = await store.open(str(self.path))

        self.assertEqual(total, 25)
        build.assert_not_called()
        self.assertEqual(await store.get_line(24), '{"id": 24}')

    async def test_disabled_index_cache_writes_nothing(self) -> None:
        store = FileLineStore(use_index_cache=False)

        await store.open(str(self.path))

        self.assertFalse((self.root / "cache").exists())

    async def test_file_truncated_after_indexing_fails_reads(self) -> None:
        store = FileLineStore(use_index_cache=False)
        await store.open(str(self.path))
        with self.path.open("r+b") as handle:
            handle.truncate(20)
            handle.flush()
            os.fsync(handle.fileno())

        with self.assertRaises(LineStoreError):
            await store.get_lines(0, 10)


if __name__ == "__main__":
    unittest.main()
