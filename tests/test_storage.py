"""Tests for storage backends."""

from __future__ import annotations

import threading

from pyide_terminal.storage.files import FileStorage, MemoryStorage


class TestFileStorage:
    def test_read_missing_file(self, tmp_path):
        storage = FileStorage(tmp_path / "missing.txt")
        assert storage.read_all() == []

    def test_append_and_read(self, tmp_path):
        storage = FileStorage(tmp_path / "log.txt")
        storage.append("first\n")
        storage.append("second\nthird\n")
        assert storage.read_all() == ["first", "second", "third"]

    def test_append_creates_parent(self, tmp_path):
        storage = FileStorage(tmp_path / "nested" / "dir" / "log.txt")
        storage.append("x\n")
        assert (tmp_path / "nested" / "dir" / "log.txt").exists()

    def test_concurrent_appends_do_not_interleave(self, tmp_path):
        storage = FileStorage(tmp_path / "errors.txt")
        threads_count, blocks_per_thread = 8, 50

        def writer(worker: int) -> None:
            for i in range(blocks_per_thread):
                storage.append(f"[{worker}-{i}] header\n{worker}-{i} body " + "x" * 200 + "\n---\n")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        lines = storage.read_all()
        assert len(lines) == threads_count * blocks_per_thread * 3
        keys = set()
        for start in range(0, len(lines), 3):
            header, body, separator = lines[start : start + 3]
            key = header[1 : header.index("]")]
            keys.add(key)
            assert header == f"[{key}] header"
            assert body == f"{key} body " + "x" * 200
            assert separator == "---"
        assert keys == {f"{n}-{i}" for n in range(threads_count) for i in range(blocks_per_thread)}

    def test_replace(self, tmp_path):
        path = tmp_path / "history.txt"
        storage = FileStorage(path)
        storage.append("old\n")
        storage.replace(["a", "b"])
        assert path.read_text() == "a\nb\n"

    def test_truncate_removes_file(self, tmp_path):
        path = tmp_path / "history.txt"
        storage = FileStorage(path)
        storage.append("x\n")
        storage.truncate()
        assert not path.exists()
        assert storage.read_all() == []

    def test_rotation(self, tmp_path):
        path = tmp_path / "errors.txt"
        storage = FileStorage(path, max_bytes=20, backup_count=2)
        storage.append("a" * 15 + "\n")
        storage.append("b" * 15 + "\n")
        storage.append("c" * 15 + "\n")

        assert path.read_text() == "c" * 15 + "\n"
        assert (tmp_path / "errors.txt.1").read_text() == "b" * 15 + "\n"
        assert (tmp_path / "errors.txt.2").read_text() == "a" * 15 + "\n"

    def test_rotation_drops_oldest_backup(self, tmp_path):
        path = tmp_path / "errors.txt"
        storage = FileStorage(path, max_bytes=10, backup_count=1)
        for ch in "xyz":
            storage.append(ch * 8 + "\n")

        assert path.read_text() == "zzzzzzzz\n"
        assert (tmp_path / "errors.txt.1").read_text() == "yyyyyyyy\n"
        assert not (tmp_path / "errors.txt.2").exists()

    def test_rotation_without_backups_truncates(self, tmp_path):
        path = tmp_path / "errors.txt"
        storage = FileStorage(path, max_bytes=10, backup_count=0)
        storage.append("12345678\n")
        storage.append("abcdefgh\n")
        assert path.read_text() == "abcdefgh\n"

    def test_no_rotation_when_disabled(self, tmp_path):
        path = tmp_path / "errors.txt"
        storage = FileStorage(path, max_bytes=0)
        for _ in range(50):
            storage.append("0123456789\n")
        assert len(storage.read_all()) == 50


class TestMemoryStorage:
    def test_roundtrip(self):
        storage = MemoryStorage(["a"])
        storage.append("b\n")
        assert storage.read_all() == ["a", "b"]
        storage.replace(["c"])
        assert storage.text == "c\n"
        storage.truncate()
        assert storage.read_all() == []
