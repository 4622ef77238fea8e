from __future__ import annotations

import os
import sys
import zipfile
from pathlib import Path

import pytest

from unizip.archiver import build_archive, create_archive, create_archive_from_strings


def _write(p: Path, data: bytes) -> Path:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(data)
    return p


def test_empty_input_produces_empty_archive():
    z = create_archive([])
    try:
        assert z.exists()
        with zipfile.ZipFile(z, "r") as zf:
            assert zf.namelist() == []
            assert zf.testzip() is None
    finally:
        z.unlink()


def test_regular_files_become_top_level_entries(tmp_path: Path):
    a = _write(tmp_path / "in" / "a.txt", b"alpha")
    b = _write(tmp_path / "in" / "deep" / "nested" / "b.bin", bytes(range(256)) * 10)
    d1 = tmp_path / "in" / "somedir"
    d1.mkdir()
    d2 = tmp_path / "in" / "otherdir"
    d2.mkdir()

    z = create_archive([a, d1, b, d2])
    try:
        with zipfile.ZipFile(z, "r") as zf:
            assert zf.namelist() == ["a.txt", "b.bin"]
    finally:
        z.unlink()


def test_round_trip_content_is_identical(tmp_path: Path):
    payloads = {
        "empty.dat": b"",
        "text.txt": "hello world\n".encode("utf-8") * 500,
        "zeros.bin": b"\x00" * 100_000,
        "mixed.bin": bytes(range(256)) * 37 + b"tail",
    }
    files = [_write(tmp_path / name, data) for name, data in payloads.items()]

    z = create_archive(files)
    try:
        with zipfile.ZipFile(z, "r") as zf:
            for name, data in payloads.items():
                assert zf.read(name) == data
    finally:
        z.unlink()


def test_entries_are_deflated(tmp_path: Path):
    f = _write(tmp_path / "zeros.bin", b"\x00" * 50_000)

    z = create_archive([f])
    try:
        with zipfile.ZipFile(z, "r") as zf:
            info = zf.getinfo("zeros.bin")
            assert info.compress_type == zipfile.ZIP_DEFLATED
            assert info.compress_size < info.file_size
    finally:
        z.unlink()


def test_non_ascii_names_are_preserved(tmp_path: Path):
    names = ["café.txt", "日本語.txt", "Ωmega ßeta.md"]
    files = [_write(tmp_path / n, n.encode("utf-8")) for n in names]

    z = create_archive(files)
    try:
        with zipfile.ZipFile(z, "r") as zf:
            assert zf.namelist() == names
            for n in names:
                assert zf.read(n) == n.encode("utf-8")
    finally:
        z.unlink()


def test_same_basename_is_not_deduplicated(tmp_path: Path):
    a = _write(tmp_path / "one" / "report.csv", b"first")
    b = _write(tmp_path / "two" / "report.csv", b"second")

    z = create_archive([a, b])
    try:
        with zipfile.ZipFile(z, "r") as zf:
            infos = zf.infolist()
            assert [i.filename for i in infos] == ["report.csv", "report.csv"]
            assert [zf.open(i).read() for i in infos] == [b"first", b"second"]
    finally:
        z.unlink()


def test_missing_and_directory_inputs_are_skipped(tmp_path: Path):
    keep = _write(tmp_path / "keep.txt", b"kept")
    missing = tmp_path / "does-not-exist.txt"
    directory = tmp_path / "folder"
    directory.mkdir()

    result = build_archive([missing, keep, directory])
    z = Path(result.archive_path)
    try:
        assert [e.name for e in result.entries] == ["keep.txt"]
        assert [(s.source_path, s.reason) for s in result.skipped] == [
            (str(missing), "missing"),
            (str(directory), "directory"),
        ]
        with zipfile.ZipFile(z, "r") as zf:
            assert zf.namelist() == ["keep.txt"]
    finally:
        z.unlink()


def test_build_archive_reports_entry_metadata(tmp_path: Path):
    data = b"abc" * 1000
    f = _write(tmp_path / "abc.txt", data)

    result = build_archive([f])
    z = Path(result.archive_path)
    try:
        (entry,) = result.entries
        with zipfile.ZipFile(z, "r") as zf:
            info = zf.getinfo("abc.txt")
        assert entry.source_path == str(f)
        assert entry.file_size == len(data) == info.file_size
        assert entry.compress_size == info.compress_size
        assert entry.crc32 == info.CRC
        assert entry.utf8_flag is True
        assert entry.unicode_extra_field is True
        assert result.total_bytes == len(data)
    finally:
        z.unlink()


def test_string_paths_delegate(tmp_path: Path):
    a = _write(tmp_path / "a.txt", b"a")
    b = _write(tmp_path / "b.txt", b"b")

    z = create_archive_from_strings([str(a), str(tmp_path), str(b)])
    try:
        assert isinstance(z, Path)
        with zipfile.ZipFile(z, "r") as zf:
            assert zf.namelist() == ["a.txt", "b.txt"]
    finally:
        z.unlink()


def test_each_call_creates_a_new_archive(tmp_path: Path):
    f = _write(tmp_path / "a.txt", b"a")

    z1 = create_archive([f])
    z2 = create_archive([f])
    try:
        assert z1 != z2
        assert z1.name.startswith("zip") and z1.suffix == ".zip"
    finally:
        z1.unlink()
        z2.unlink()


@pytest.mark.skipif(sys.platform != "linux", reason="needs a filesystem that accepts non-UTF-8 names")
def test_undecodable_filename_is_archived_lossily(tmp_path: Path):
    raw = os.fsencode(tmp_path) + b"/bad\xff.txt"
    with open(raw, "wb") as f:
        f.write(b"payload")
    src = Path(os.fsdecode(raw))

    result = build_archive([src])
    z = Path(result.archive_path)
    try:
        (entry,) = result.entries
        assert entry.name == "bad?.txt"
        assert "\udcff" not in entry.source_path
        result.model_dump_json()
        with zipfile.ZipFile(z, "r") as zf:
            assert zf.namelist() == ["bad?.txt"]
            assert zf.read("bad?.txt") == b"payload"
    finally:
        z.unlink()
