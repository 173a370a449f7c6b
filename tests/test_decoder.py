"""
Tests for the event stream decoder.
"""

import pytest

from fedi_http_core.decoder import DEFAULT_EVENT_NAME, EventFrame, EventStreamDecoder


def feed_all(decoder: EventStreamDecoder, *chunks: bytes):
    frames = []
    for chunk in chunks:
        frames.extend(decoder.feed(chunk))
    return frames


class TestFrames:
    """Frame assembly."""

    def test_single_frame(self):
        decoder = EventStreamDecoder()
        frames = decoder.feed(b"event: update\ndata: {\"id\": \"1\"}\n\n")
        assert frames == [EventFrame("update", '{"id": "1"}')]
        assert frames[0].json() == {"id": "1"}

    def test_default_name(self):
        decoder = EventStreamDecoder()
        assert decoder.feed(b"data: hello\n\n") == [EventFrame(DEFAULT_EVENT_NAME, "hello")]
        assert DEFAULT_EVENT_NAME == "message"

    def test_multiline_data(self):
        decoder = EventStreamDecoder()
        frames = decoder.feed(b"event: update\ndata: line one\ndata: line two\n\n")
        assert frames == [EventFrame("update", "line one\nline two")]

    def test_several_frames_in_one_chunk(self):
        decoder = EventStreamDecoder()
        frames = decoder.feed(b"event: update\ndata: 1\n\nevent: delete\ndata: 2\n\n")
        assert frames == [EventFrame("update", "1"), EventFrame("delete", "2")]

    def test_name_does_not_leak_into_next_frame(self):
        decoder = EventStreamDecoder()
        frames = decoder.feed(b"event: delete\ndata: 1\n\ndata: 2\n\n")
        assert frames[1] == EventFrame(DEFAULT_EVENT_NAME, "2")

    def test_no_space_after_colon(self):
        decoder = EventStreamDecoder()
        assert decoder.feed(b"event:update\ndata:x\n\n") == [EventFrame("update", "x")]

    def test_only_first_space_stripped(self):
        decoder = EventStreamDecoder()
        assert decoder.feed(b"data:  padded\n\n") == [EventFrame("message", " padded")]

    def test_empty_data_line(self):
        decoder = EventStreamDecoder()
        assert decoder.feed(b"data\n\n") == [EventFrame("message", "")]

    def test_frame_without_data_not_emitted(self):
        decoder = EventStreamDecoder()
        assert decoder.feed(b"event: update\n\n") == []
        # The name does not carry over to the next frame.
        assert decoder.feed(b"data: x\n\n") == [EventFrame("message", "x")]


class TestLines:
    """Comments, unknown fields and line endings."""

    def test_comments_ignored(self):
        decoder = EventStreamDecoder()
        assert decoder.feed(b":thump\n\n") == []
        frames = decoder.feed(b":)\nevent: update\n: keepalive\ndata: x\n\n")
        assert frames == [EventFrame("update", "x")]

    def test_unknown_fields_ignored(self):
        decoder = EventStreamDecoder()
        frames = decoder.feed(b"id: 42\nretry: 1000\nevent: update\ndata: x\n\n")
        assert frames == [EventFrame("update", "x")]

    def test_crlf(self):
        decoder = EventStreamDecoder()
        assert decoder.feed(b"event: update\r\ndata: x\r\n\r\n") == [EventFrame("update", "x")]

    def test_cr_only(self):
        decoder = EventStreamDecoder()
        assert decoder.feed(b"event: update\rdata: x\r\r") == [EventFrame("update", "x")]

    def test_crlf_split_across_chunks(self):
        decoder = EventStreamDecoder()
        frames = feed_all(decoder, b"data: x\r", b"\n", b"\r", b"\ndata: y\r\n\r\n")
        assert frames == [EventFrame("message", "x"), EventFrame("message", "y")]


class TestChunking:
    """Arbitrary chunk boundaries."""

    def test_split_inside_field(self):
        decoder = EventStreamDecoder()
        frames = feed_all(decoder, b"eve", b"nt: upd", b"ate\nda", b"ta: x\n", b"\n")
        assert frames == [EventFrame("update", "x")]

    def test_byte_by_byte(self):
        raw = b"event: notification\ndata: {\"type\": \"follow\"}\n\n"
        decoder = EventStreamDecoder()
        frames = feed_all(decoder, *(raw[i:i + 1] for i in range(len(raw))))
        assert frames == [EventFrame("notification", '{"type": "follow"}')]

    def test_split_utf8_sequence(self):
        raw = "data: café \U0001f418\n\n".encode("utf-8")
        split = raw.index(b"\xc3") + 1
        decoder = EventStreamDecoder()
        assert decoder.feed(raw[:split]) == []
        assert decoder.feed(raw[split:]) == [EventFrame("message", "café \U0001f418")]

    def test_empty_chunk(self):
        decoder = EventStreamDecoder()
        assert decoder.feed(b"") == []

    def test_incomplete_frame_waits(self):
        decoder = EventStreamDecoder()
        assert decoder.feed(b"event: update\ndata: x\n") == []
        assert decoder.feed(b"\n") == [EventFrame("update", "x")]


class TestClose:
    """Discarding partial input."""

    def test_close_discards_partial_frame(self):
        decoder = EventStreamDecoder()
        decoder.feed(b"event: update\ndata: half")
        decoder.close()
        assert decoder.feed(b"data: fresh\n\n") == [EventFrame("message", "fresh")]

    def test_close_discards_pending_cr(self):
        decoder = EventStreamDecoder()
        decoder.feed(b"data: x\r")
        decoder.close()
        assert decoder.feed(b"\ndata: y\n\n") == [EventFrame("message", "y")]


class TestEventFrame:
    def test_json_invalid(self):
        with pytest.raises(ValueError):
            EventFrame("delete", "not json").json()

    def test_frozen(self):
        frame = EventFrame("update", "x")
        with pytest.raises(AttributeError):
            frame.name = "delete"
