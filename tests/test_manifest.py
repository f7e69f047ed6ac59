"""Tests for FileRecord serialization and manifest load/save."""

from datetime import datetime, timedelta, timezone

import pytest

from smartcopy import (
    FAST_HASH,
    ChangeError,
    FileRecord,
    ManifestError,
    ManifestFormat,
    format_manifest_line,
    load_manifest,
    parse_manifest_line,
    save_manifest,
)
from smartcopy.manifest import format_mtime, mtime_from_ns, parse_mtime

from conftest import T0, rec


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

class TestTimestamps:
    def test_mtime_from_ns_keeps_microseconds(self):
        ns = 1_700_000_000_123_456_789
        dt = mtime_from_ns(ns)
        assert dt.tzinfo is not None
        assert dt.microsecond == 123456
        assert int(dt.timestamp()) == 1_700_000_000

    def test_mtime_from_ns_before_epoch(self):
        dt = mtime_from_ns(-1_000)
        assert dt == datetime(1970, 1, 1, tzinfo=timezone.utc) - timedelta(microseconds=1)

    def test_format_parse_round_trip(self):
        assert parse_mtime(format_mtime(T0)) == T0

    def test_round_trip_whole_seconds(self):
        t = datetime(2020, 5, 5, 5, 5, 5, tzinfo=timezone.utc)
        assert parse_mtime(format_mtime(t)) == t

    def test_parse_nanoseconds_and_z(self):
        dt = parse_mtime("2024-01-15T14:30:00.123456789Z")
        assert dt == T0

    def test_parse_short_fraction_with_offset(self):
        dt = parse_mtime("2024-01-15T15:30:00.5+01:00")
        assert dt == datetime(2024, 1, 15, 14, 30, 0, 500000, tzinfo=timezone.utc)

    def test_parse_naive_is_utc(self):
        assert parse_mtime("2024-01-15T14:30:00").tzinfo is not None

    def test_parse_garbage(self):
        with pytest.raises(ManifestError):
            parse_mtime("yesterday")


# ---------------------------------------------------------------------------
# Line codec
# ---------------------------------------------------------------------------

class TestManifestLine:
    def test_format(self):
        line = format_manifest_line(rec("dir/a.txt", "abc123", size=42))
        assert line == "dir/a.txt::abc123::42::2024-01-15T14:30:00.123456+00:00"

    def test_round_trip(self):
        r = rec("dir/a.txt", "d41d8cd98f00b204e9800998ecf8427e", size=1234)
        assert parse_manifest_line(format_manifest_line(r)) == r

    def test_round_trip_name_with_delimiter(self):
        r = rec("odd::name.txt", "ff00", size=7)
        assert parse_manifest_line(format_manifest_line(r)) == r

    def test_blank_line_skipped(self):
        assert parse_manifest_line("") is None

    def test_missing_hash_skipped(self):
        assert parse_manifest_line("a.txt::::5::2024-01-15T14:30:00+00:00") is None

    def test_truncated_line_skipped(self):
        assert parse_manifest_line("a.txt::abc1") is None

    def test_bad_timestamp_raises(self):
        with pytest.raises(ManifestError):
            parse_manifest_line("a.txt::abc::5::not-a-time")

    def test_empty_size_raises(self):
        with pytest.raises(ManifestError):
            parse_manifest_line("a.txt::abc::::2024-01-15T14:30:00+00:00")

    def test_format_rejects_line_breaks(self):
        with pytest.raises(ManifestError, match="line break"):
            format_manifest_line(rec("two\nlines.txt", "abc"))

    def test_crlf_tolerated(self):
        r = parse_manifest_line("a.txt::abc::5::2024-01-15T14:30:00.123456+00:00\r\n")
        assert r == rec("a.txt", "abc", size=5)

    def test_custom_delimiter(self):
        fmt = ManifestFormat(delimiter="|")
        r = rec("a.txt", "abc", size=3)
        line = format_manifest_line(r, fmt)
        assert line.startswith("a.txt|abc|3|")
        assert parse_manifest_line(line, fmt) == r


class TestFileRecord:
    def test_same_stat(self):
        assert rec("a", "x", 3).same_stat(rec("a", "y", 3))
        assert not rec("a", size=3).same_stat(rec("a", size=4))
        assert not rec("a").same_stat(rec("a", mtime=T0 + timedelta(seconds=1)))

    def test_is_fast(self):
        assert rec("a", FAST_HASH).is_fast
        assert not rec("a", "abc").is_fast


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------

class TestLoadSave:
    def test_save_then_load(self, tmp_path):
        records = {
            "a.txt": rec("a.txt", "aa", size=1),
            "sub/b.txt": rec("sub/b.txt", "bb", size=2),
        }
        path = tmp_path / "smartcopy.md5"
        save_manifest(path, records)
        assert load_manifest(path) == records

    def test_line_break_names_not_written(self, tmp_path):
        path = tmp_path / "smartcopy.md5"
        save_manifest(path, {
            "a.txt": rec("a.txt", "aa"),
            "evil\nb.txt::ff::1::2024-01-01T00:00:00Z": rec(
                "evil\nb.txt::ff::1::2024-01-01T00:00:00Z", "bb"),
        })
        assert set(load_manifest(path)) == {"a.txt"}
        assert path.read_text().count("\n") == 1

    def test_save_is_full_rewrite(self, tmp_path):
        path = tmp_path / "smartcopy.md5"
        save_manifest(path, {"a.txt": rec("a.txt", "aa")})
        save_manifest(path, {"b.txt": rec("b.txt", "bb")})
        assert set(load_manifest(path)) == {"b.txt"}

    def test_save_sorted_and_no_temp_left(self, tmp_path):
        path = tmp_path / "smartcopy.md5"
        save_manifest(path, {"z": rec("z", "01"), "a": rec("a", "02")})
        lines = path.read_text().splitlines()
        assert [ln.split("::")[0] for ln in lines] == ["a", "z"]
        assert not (tmp_path / "smartcopy.md5.tmp").exists()

    def test_unhashed_record_dropped_on_load(self, tmp_path):
        path = tmp_path / "smartcopy.md5"
        save_manifest(path, {"a": rec("a", ""), "b": rec("b", "0b")})
        assert set(load_manifest(path)) == {"b"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_manifest(tmp_path / "nope.md5")

    def test_unreadable_is_manifest_error(self, tmp_path):
        d = tmp_path / "smartcopy.md5"
        d.mkdir()
        with pytest.raises(ManifestError):
            load_manifest(d)

    def test_malformed_lines_reported_and_skipped(self, tmp_path):
        path = tmp_path / "smartcopy.md5"
        path.write_text(
            "a.txt::aa::1::2024-01-15T14:30:00.123456+00:00\n"
            "garbage line\n"
            "b.txt::bb::2::not-a-time\n"
            "\n"
        )
        warnings: list[ChangeError] = []
        records = load_manifest(path, warnings=warnings)
        assert set(records) == {"a.txt"}
        assert len(warnings) == 1
        assert warnings[0].path.endswith(":3")

    def test_non_utf8_names_survive(self, tmp_path):
        name = "caf\udce9.txt"
        path = tmp_path / "smartcopy.md5"
        save_manifest(path, {name: rec(name, "ab")})
        assert set(load_manifest(path)) == {name}

    def test_format_path_helpers(self, tmp_path):
        fmt = ManifestFormat()
        assert fmt.path_for(tmp_path) == tmp_path / "smartcopy.md5"
        assert fmt.is_manifest_name("SmartCopy.MD5")
        assert fmt.is_manifest_name("smartcopy.md5.tmp")
        assert not fmt.is_manifest_name("sub/smartcopy.md5")
