import httpx
import pytest

from common.results import FormatFailure, FormatSuccess
from common.schemas import Chunk, FormatSegment
from notes.converter import FormatState, NotesConverter, NotesSource, segments_from_chunks
from notes.gateway_client import request_markdown
from notes.heuristic import heuristic_format

URL = "http://formatter.test/api/format"


def chunks(*texts, start=1_000_000.0):
    return [
        Chunk(id=f"c{i}", text=t, started_at=start + i * 2000, ended_at=start + i * 2000 + 1500)
        for i, t in enumerate(texts)
    ]


class TestHeuristicFormat:
    def test_empty_input(self):
        assert heuristic_format([]) == ""
        assert heuristic_format([FormatSegment(text="   ")]) == ""

    def test_short_paragraph_becomes_bullets(self):
        md = heuristic_format(chunks("Hello there. How are you?"), language="en-US")
        assert md == "# Lecture notes\n\n- Hello there.\n- How are you?"

    def test_swedish_title(self):
        md = heuristic_format(chunks("Hej allihop."), language="sv-SE")
        assert md.startswith("# Föreläsningsanteckningar\n\n- Hej allihop.")

    def test_keyword_paragraph_becomes_subheading(self):
        md = heuristic_format(chunks("Definition: a set is a collection of objects."), language="en")
        assert md == "# Lecture notes\n\n## Definition\na set is a collection of objects."

    def test_keyword_match_is_case_insensitive(self):
        md = heuristic_format(chunks("Our METHOD is simple. We measure twice."), language="en")
        assert "## Our METHOD is simple\nWe measure twice." in md

    def test_long_heading_is_truncated_without_losing_text(self):
        text = "An example " + "word " * 30 + "ends here."
        md = heuristic_format(chunks(text), language="en")
        heading = next(line for line in md.splitlines() if line.startswith("## "))
        assert len(heading) <= len("## ") + 80
        assert "ends here." in md

    def test_conclusion_gets_summary_heading(self):
        md = heuristic_format(chunks("In conclusion we are done for today."), language="en")
        assert md == "# Lecture notes\n\n## Summary\nIn conclusion we are done for today."

    def test_long_paragraph_kept_as_text(self):
        text = "One thing. Two things. Three things. Four things."
        md = heuristic_format(chunks(text), language="en")
        assert md == f"# Lecture notes\n\n{text}"

    def test_no_triple_newlines(self):
        md = heuristic_format(
            chunks("Background: history.", "Definition: terms.", "In conclusion, fine."), language="en"
        )
        assert "\n\n\n" not in md
        assert md.count("## ") == 3

    def test_order_preserved(self):
        md = heuristic_format(chunks("First up.", "Second up.", "Third up."), language="en")
        assert md.index("First up.") < md.index("Second up.") < md.index("Third up.")

    def test_never_raises_on_odd_input(self):
        odd = [".", "?!", ":", "definition", "ok... ok!! ok??", "x" * 500]
        assert isinstance(heuristic_format(chunks(*odd), language="en"), str)


class TestSegmentsFromChunks:
    def test_relative_to_origin(self):
        segs = segments_from_chunks(chunks("a", "b"), origin_ms=1_000_000.0)
        assert [(s.start, s.end, s.text) for s in segs] == [(0, 1500, "a"), (2000, 3500, "b")]

    def test_absolute_without_origin(self):
        segs = segments_from_chunks(chunks("a"))
        assert segs[0].start == 1_000_000.0


class TestNotesConverter:
    @pytest.mark.asyncio
    async def test_success_uses_ai_markdown(self):
        seen = {}

        async def gateway(segments, language):
            seen["segments"] = segments
            seen["language"] = language
            return FormatSuccess(markdown="# Notes\n\n- a")

        converter = NotesConverter(gateway, language="en-US")
        notes = await converter.convert(chunks("a"), origin_ms=1_000_000.0)
        assert notes.source == NotesSource.ai
        assert notes.markdown == "# Notes\n\n- a"
        assert notes.error is None
        assert converter.state == FormatState.done
        assert seen["language"] == "en-US"
        assert seen["segments"][0].start == 0

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_heuristic(self):
        async def gateway(segments, language):
            return FormatFailure(kind="formatter_failed", detail="boom")

        converter = NotesConverter(gateway, language="en-US")
        notes = await converter.convert(chunks("Hello there."))
        assert notes.source == NotesSource.heuristic
        assert notes.markdown == "# Lecture notes\n\n- Hello there."
        assert notes.error == FormatFailure(kind="formatter_failed", detail="boom")
        assert converter.state == FormatState.error
        assert converter.current_markdown([]) == notes.markdown

    @pytest.mark.asyncio
    async def test_empty_chunks_skip_gateway(self):
        async def gateway(segments, language):
            raise AssertionError("gateway must not be called")

        notes = await NotesConverter(gateway).convert([])
        assert notes.markdown == ""
        assert notes.source == NotesSource.heuristic

    @pytest.mark.asyncio
    async def test_second_request_while_loading_rejected(self):
        converter = NotesConverter(None)
        converter.state = FormatState.loading
        with pytest.raises(RuntimeError, match="already in progress"):
            await converter.convert(chunks("a"))

    @pytest.mark.asyncio
    async def test_gateway_exception_leaves_converter_usable(self):
        async def gateway(segments, language):
            raise ConnectionError("unexpected")

        converter = NotesConverter(gateway)
        with pytest.raises(ConnectionError):
            await converter.convert(chunks("a"))
        assert converter.state == FormatState.idle

    def test_current_markdown_defaults_to_heuristic(self):
        converter = NotesConverter(None, language="en")
        assert converter.current_markdown(chunks("Short one.")) == "# Lecture notes\n\n- Short one."
        converter.reset()
        assert converter.last is None


class TestGatewayClient:
    @pytest.mark.asyncio
    async def test_success(self):
        def handler(request):
            assert request.url == URL
            body = request.read().decode()
            assert '"language":"en-US"' in body.replace(" ", "")
            return httpx.Response(200, json={"markdown": "# Done"})

        result = await request_markdown(
            [FormatSegment(start=0, end=1, text="a")], "en-US", URL, transport=httpx.MockTransport(handler)
        )
        assert result == FormatSuccess(markdown="# Done")

    @pytest.mark.asyncio
    async def test_server_error_is_failure(self):
        def handler(request):
            return httpx.Response(500, json={"error": "formatter_failed", "detail": "quota exceeded"})

        result = await request_markdown([], "sv-SE", URL, transport=httpx.MockTransport(handler))
        assert result == FormatFailure(kind="formatter_failed", detail="quota exceeded")

    @pytest.mark.asyncio
    async def test_non_json_error(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        result = await request_markdown([], "sv-SE", URL, transport=httpx.MockTransport(handler))
        assert result == FormatFailure(kind="http_502", detail="Bad Gateway")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        result = await request_markdown([], "sv-SE", URL, transport=httpx.MockTransport(handler))
        assert isinstance(result, FormatFailure)
        assert result.kind == "transport"
        assert "connection refused" in result.detail

    @pytest.mark.asyncio
    async def test_missing_markdown_field(self):
        def handler(request):
            return httpx.Response(200, json={"text": "nope"})

        result = await request_markdown([], "sv-SE", URL, transport=httpx.MockTransport(handler))
        assert result.kind == "invalid_response"

    @pytest.mark.asyncio
    async def test_fallback_scenario_end_to_end(self):
        def handler(request):
            return httpx.Response(500, json={"error": "formatter_failed", "detail": "down"})

        async def gateway(segments, language):
            return await request_markdown(segments, language, URL, transport=httpx.MockTransport(handler))

        converter = NotesConverter(gateway, language="en-US")
        notes = await converter.convert(chunks("It works. Mostly."))
        assert notes.markdown == "# Lecture notes\n\n- It works.\n- Mostly."
        assert notes.source == NotesSource.heuristic
        assert notes.error.kind == "formatter_failed"
