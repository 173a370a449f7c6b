"""
Incremental decoder for the server-sent events wire format.

Bytes arrive in arbitrary chunks; the decoder buffers partial lines and
partial UTF-8 sequences until a blank line completes a frame.
"""

import codecs
import json
from dataclasses import dataclass
from typing import Any, List, Optional

DEFAULT_EVENT_NAME = "message"


@dataclass(frozen=True)
class EventFrame:
    """One decoded event: its name and its (newline joined) data."""
    name: str
    payload: str

    def json(self) -> Any:
        """Decode the payload as JSON."""
        return json.loads(self.payload)


class EventStreamDecoder:
    """
    Turns a chunked byte stream into EventFrames.

    ``event:`` sets the frame name, ``data:`` lines accumulate, lines
    starting with ``:`` are comments and other fields are ignored.
    A frame is emitted on the blank line that ends it, and only if it
    carried at least one ``data:`` line.
    """

    def __init__(self) -> None:
        self._text_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._skip_lf = False
        self._event_name: Optional[str] = None
        self._data_lines: List[str] = []

    def feed(self, chunk: bytes) -> List[EventFrame]:
        """
        Consume one chunk of the stream.

        Args:
            chunk: Raw bytes as read from the connection

        Returns:
            Frames completed by this chunk, in order
        """
        text = self._text_decoder.decode(chunk)
        if not text:
            return []

        # A CR at the end of the previous chunk may be half of a CRLF.
        if self._skip_lf:
            if text.startswith("\n"):
                text = text[1:]
            self._skip_lf = False

        self._buffer += text
        frames: List[EventFrame] = []

        while True:
            cr = self._buffer.find("\r")
            lf = self._buffer.find("\n")
            if cr == -1 and lf == -1:
                break

            if cr == -1 or (lf != -1 and lf < cr):
                line, self._buffer = self._buffer[:lf], self._buffer[lf + 1:]
            else:
                line, rest = self._buffer[:cr], self._buffer[cr + 1:]
                if rest.startswith("\n"):
                    rest = rest[1:]
                elif not rest:
                    self._skip_lf = True
                self._buffer = rest

            frame = self._process_line(line)
            if frame is not None:
                frames.append(frame)

        return frames

    def _process_line(self, line: str) -> Optional[EventFrame]:
        if not line:
            return self._dispatch()

        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event_name = value
        elif field == "data":
            self._data_lines.append(value)

        return None

    def _dispatch(self) -> Optional[EventFrame]:
        name = self._event_name or DEFAULT_EVENT_NAME
        data_lines = self._data_lines
        self._event_name = None
        self._data_lines = []

        if not data_lines:
            return None
        return EventFrame(name=name, payload="\n".join(data_lines))

    def close(self) -> None:
        """Discard any incomplete trailing frame and reset the decoder."""
        self._text_decoder.reset()
        self._buffer = ""
        self._skip_lf = False
        self._event_name = None
        self._data_lines = []
