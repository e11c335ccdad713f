import re

import pytest

from common.clock import format_duration, is_finite_number, to_clock, wall_clock
from common.schemas import Chunk, FormatSegment
from common.transcript import NormalizedLine, format_stamp, normalize, render_lines

STAMP = re.compile(r"^\[\d{2,}:\d{2}:\d{2}–\d{2,}:\d{2}:\d{2}\]$")


def chunk(text, start, end, cid="c"):
    return Chunk(id=cid, text=text, started_at=start, ended_at=end)


class TestClock:
    def test_to_clock(self):
        assert to_clock(0) == "00:00:00"
        assert to_clock(1999) == "00:00:01"
        assert to_clock(3_723_000) == "01:02:03"
        assert to_clock(100 * 3600 * 1000) == "100:00:00"

    @pytest.mark.parametrize("value", [None, float("nan"), float("inf"), "12", True])
    def test_to_clock_rejects_non_finite(self, value):
        assert to_clock(value) == ""
        assert not is_finite_number(value)

    def test_format_duration(self):
        assert format_duration(0) == "0:00"
        assert format_duration(65_400) == "1:05"
        assert format_duration(-5000) == "0:00"

    def test_wall_clock_shape(self):
        assert re.match(r"^\d{2}:\d{2}:\d{2}$", wall_clock(1_700_000_000_000))
        assert wall_clock(None) == ""


class TestNormalize:
    def test_one_line_per_chunk_in_order(self):
        lines = normalize([chunk("  first ", 0, 1000, "a"), chunk("second", 2000, 4500, "b")])
        assert [line.text for line in lines] == ["first", "second"]
        assert lines[0].stamp == "[00:00:00–00:00:01]"
        assert lines[1].stamp == "[00:00:02–00:00:04]"

    def test_stamp_pattern_for_finite_endpoints(self):
        lines = normalize([chunk("x", 3_600_000, 3_725_000)])
        assert STAMP.match(lines[0].stamp)

    @pytest.mark.parametrize("start, end", [(None, 1000), (1000, None), (None, None)])
    def test_missing_endpoint_gives_empty_stamp(self, start, end):
        lines = normalize([FormatSegment(start=start, end=end, text="no time")])
        assert lines == [NormalizedLine(stamp="", text="no time")]

    def test_format_stamp(self):
        assert format_stamp(0, 61_000) == "[00:00:00–00:01:01]"
        assert format_stamp(float("nan"), 1) == ""

    def test_render_lines(self):
        lines = normalize([FormatSegment(start=0, end=1000, text="timed"), FormatSegment(text="untimed")])
        assert render_lines(lines) == "[00:00:00–00:00:01] timed\nuntimed"

    def test_null_text_becomes_empty(self):
        lines = normalize([FormatSegment(start=0, end=1000, text=None)])
        assert lines == [NormalizedLine(stamp="[00:00:00–00:00:01]", text="")]

    def test_empty_input(self):
        assert normalize([]) == []
        assert render_lines([]) == ""
