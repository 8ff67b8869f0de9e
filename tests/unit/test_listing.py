"""Unit tests for Unix-style listing decoding."""

from datetime import datetime

import pytest

from ftpsclient.ftp.listing import ListEntry, parse_list_line, parse_listing


NOW = datetime(2024, 3, 15, 12, 0)

SAMPLE_LISTING = """total 12
drwxr-xr-x   2 ftp      ftp          4096 Mar 10 09:30 d1
-rw-r--r--   1 ftp      ftp          1234 Jan  2  2023 f1
-rw-r--r--   1 ftp      ftp             0 Mar 14 23:59 empty file.txt
lrwxrwxrwx   1 ftp      ftp            11 Feb 29 10:00 latest -> f1
drwxr-xr-x   3 ftp      ftp          4096 Mar 15 08:00 .
drwxr-xr-x   3 ftp      ftp          4096 Mar 15 08:00 ..
"""


class TestParseListLine:
    """Tests for single listing lines."""

    def test_directory(self):
        """Test a directory entry with a time-of-day stamp."""
        entry = parse_list_line(
            "drwxr-xr-x   2 ftp      ftp          4096 Mar 10 09:30 d1", NOW
        )

        assert entry.name == "d1"
        assert entry.is_dir is True
        assert entry.size == 4096
        assert entry.modified == datetime(2024, 3, 10, 9, 30)
        assert entry.permissions == "drwxr-xr-x"

    def test_file_with_year(self):
        """Test a file entry with an explicit year."""
        entry = parse_list_line("-rw-r--r-- 1 ftp ftp 1234 Jan  2  2023 f1", NOW)

        assert entry.is_dir is False
        assert entry.size == 1234
        assert entry.modified == datetime(2023, 1, 2)

    def test_name_with_spaces(self):
        """Test that everything after the time field is the name."""
        entry = parse_list_line("-rw-r--r-- 1 ftp ftp 5 Mar 14 23:59 my  report.txt", NOW)
        assert entry.name == "my  report.txt"

    @pytest.mark.parametrize("line,name", [
        ("-rw-r--r-- 1 ftp ftp 5 Mar 14 23:59   spaced", "  spaced"),
        ("-rw-r--r-- 1 ftp ftp 5 Jan  2  2023  lead", " lead"),
        ("-rw-r--r-- 1 ftp ftp 5 Mar 14 23:59 trail ", "trail "),
    ])
    def test_name_whitespace_preserved(self, line, name):
        """Test only one separator is taken from before the name."""
        assert parse_list_line(line, NOW).name == name

    def test_missing_name(self):
        """Test a line with only the fixed fields is not an entry."""
        assert parse_list_line("-rw-r--r-- 1 ftp ftp 5 Mar 14 23:59", NOW) is None

    def test_symlink_target_stripped(self):
        """Test symlinks keep only the link name."""
        entry = parse_list_line("lrwxrwxrwx 1 ftp ftp 11 Feb 29 10:00 latest -> f1", NOW)

        assert entry.name == "latest"
        assert entry.is_link is True
        assert entry.is_dir is False

    def test_future_stamp_belongs_to_last_year(self):
        """Test a month/day far in the future is read as the previous year."""
        entry = parse_list_line("-rw-r--r-- 1 ftp ftp 5 Dec 24 18:00 gift", NOW)
        assert entry.modified == datetime(2023, 12, 24, 18, 0)

    def test_unparsable_size(self):
        """Test a non-numeric size falls back to zero."""
        entry = parse_list_line("-rw-r--r-- 1 ftp ftp ??? Mar 10 09:30 odd", NOW)

        assert entry.name == "odd"
        assert entry.size == 0

    def test_unknown_month(self):
        """Test an unknown month leaves the timestamp unset."""
        entry = parse_list_line("-rw-r--r-- 1 ftp ftp 5 Foo 10 09:30 odd", NOW)
        assert entry.modified is None

    @pytest.mark.parametrize("line", [
        "total 12",
        "",
        "-rw-r--r-- 1 ftp ftp 5 Mar 10",
        "drwxr-xr-x 2 ftp ftp 4096 Mar 10 09:30 .",
        "drwxr-xr-x 2 ftp ftp 4096 Mar 10 09:30 ..",
    ])
    def test_non_entries(self, line):
        """Test headers, short lines and dot entries are skipped."""
        assert parse_list_line(line, NOW) is None

    def test_raw_line_kept(self):
        """Test the original line is preserved without CRLF."""
        line = "-rw-r--r-- 1 ftp ftp 5 Mar 10 09:30 a\r\n"
        assert parse_list_line(line, NOW).raw == line.rstrip("\r\n")


class TestParseListing:
    """Tests for complete LIST payloads."""

    def test_sample_listing(self):
        """Test entries are returned in order with non-entries skipped."""
        entries = parse_listing(SAMPLE_LISTING, NOW)

        assert [entry.name for entry in entries] == ["d1", "f1", "empty file.txt", "latest"]
        assert [entry.is_dir for entry in entries] == [True, False, False, False]

    def test_crlf_payload(self):
        """Test CRLF line endings."""
        text = SAMPLE_LISTING.replace("\n", "\r\n")
        assert len(parse_listing(text, NOW)) == 4

    def test_empty_payload(self):
        """Test an empty listing gives no entries."""
        assert parse_listing("", NOW) == []

    def test_entries_are_list_entries(self):
        """Test the entry type."""
        assert all(isinstance(entry, ListEntry) for entry in parse_listing(SAMPLE_LISTING, NOW))
