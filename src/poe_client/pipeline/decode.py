"""
Stream decoders for the supported wire formats.

Implements:
- PoeSSEDecoder: Server-Sent Events as emitted by the bot query endpoint
- LineFrameDecoder: compact one-line-per-event frames
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from poe_client.pipeline.base import DEFAULT_MAX_FRAME_SIZE, Decoder
from poe_client.types.events import (
    Done,
    Error,
    Meta,
    Replace,
    Suggestion,
    TextDelta,
    parse_event,
)

if TYPE_CHECKING:
    from poe_client.types.events import ProtocolEvent


class PoeSSEDecoder(Decoder):
    """Server-Sent Events decoder for bot responses.

    Parses:
    ```
    event: text
    data: {"text": "Hel"}

    event: replace_response
    data: {"text": "Hello"}

    event: done
    data: {}
    ```

    Events ``text``, ``replace_response``, ``suggested_reply``, ``meta``,
    ``error`` and ``done`` map to their ProtocolEvent variants; any other
    event becomes ``Meta(key=<event>, value=<data>)``.
    """

    name = "sse"
    delimiter = "\n\n"

    def _parse_frame(self, frame: str) -> list[ProtocolEvent]:
        event_type = "message"
        data_lines: list[str] = []
        seen_field = False

        for line in frame.split("\n"):
            # Skip empty lines and comments
            if not line or line.startswith(":"):
                continue

            field, _, value = line.partition(":")
            if value.startswith(" "):
                value = value[1:]

            if field == "event":
                event_type = value.strip()
                seen_field = True
            elif field == "data":
                data_lines.append(value)
                seen_field = True
            # id, retry and unknown fields carry nothing for us

        if not seen_field:
            return []

        data = "\n".join(data_lines)
        payload: Any = {}
        if data.strip():
            try:
                payload = json.loads(data)
            except json.JSONDecodeError as e:
                raise self._malformed(f"Invalid JSON in '{event_type}' event: {e}", frame) from e

        try:
            return self._to_events(event_type, payload, frame)
        except ValidationError as e:
            raise self._malformed(f"Invalid '{event_type}' event payload: {e}", frame) from e

    def _to_events(self, event_type: str, payload: Any, frame: str) -> list[ProtocolEvent]:
        if event_type not in _SSE_EVENT_TYPES:
            return [Meta(key=event_type, value=payload)]

        if not isinstance(payload, dict):
            raise self._malformed(f"'{event_type}' event data must be an object", frame)

        if event_type == "meta":
            return [
                parse_event({"type": "meta", "key": str(k), "value": v})
                for k, v in payload.items()
            ]

        data: dict[str, Any] = {"type": _SSE_EVENT_TYPES[event_type]}
        if event_type == "error":
            code = payload.get("error_type") or payload.get("code")
            data["code"] = None if code is None else str(code)
            data["detail"] = payload.get("text") or payload.get("message") or ""
        elif event_type != "done":
            data["text"] = payload.get("text", "")
        return [parse_event(data)]


# SSE event name -> ProtocolEvent type tag
_SSE_EVENT_TYPES = {
    "text": "text_delta",
    "replace_response": "replace",
    "suggested_reply": "suggestion",
    "meta": "meta",
    "error": "error",
    "done": "done",
}


class LineFrameDecoder(Decoder):
    """Decoder for compact line frames.

    One frame per line. Fields are ``name:value`` tokens separated by a
    single space, ``ev:`` comes first, and ``txt:`` is always last and
    takes the remainder of the line (``\\n``, ``\\r`` and ``\\\\``
    escapes are decoded):
    ```
    ev:delta txt:Hello, world
    ev:replace txt:Hi
    ev:suggestion txt:Tell me more
    ev:meta key:content_type txt:text/markdown
    ev:error code:429 txt:retry_after=5
    ev:done
    ```
    """

    name = "lines"
    delimiter = "\n"

    def _parse_frame(self, frame: str) -> list[ProtocolEvent]:
        line = frame.rstrip("\r")
        if line.startswith(":"):
            return []
        if not line.startswith("ev:"):
            raise self._malformed("Frame does not start with an 'ev:' field", frame)

        fields: dict[str, str] = {}
        text: str | None = None
        pos = 0
        while pos < len(line):
            if line.startswith("txt:", pos):
                text = _unescape(line[pos + 4 :])
                break
            end = line.find(" ", pos)
            token = line[pos:] if end < 0 else line[pos:end]
            name, sep, value = token.partition(":")
            if not sep or not name:
                raise self._malformed(f"Malformed field '{token}'", frame)
            fields[name] = value
            pos = len(line) if end < 0 else end + 1

        tag = fields.get("ev", "")
        if not tag:
            raise self._malformed("Empty event tag", frame)

        if tag == "delta":
            return [TextDelta(text=text or "")]
        if tag == "replace":
            return [Replace(text=text or "")]
        if tag == "suggestion":
            return [Suggestion(text=text or "")]
        if tag == "meta":
            if "key" not in fields:
                raise self._malformed("Meta frame without 'key:' field", frame)
            return [Meta(key=fields["key"], value=text)]
        if tag == "error":
            return [Error(code=fields.get("code"), detail=text or "")]
        if tag == "done":
            return [Done()]
        return [Meta(key=tag, value=text)]


_ESCAPE_PATTERN = re.compile(r"\\(.)")
_ESCAPES = {"n": "\n", "r": "\r", "\\": "\\"}


def _unescape(text: str) -> str:
    return _ESCAPE_PATTERN.sub(lambda m: _ESCAPES.get(m.group(1), m.group(0)), text)


DECODERS: dict[str, type[Decoder]] = {
    PoeSSEDecoder.name: PoeSSEDecoder,
    LineFrameDecoder.name: LineFrameDecoder,
}


def create_decoder(
    format: str = "sse", max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
) -> Decoder:
    """Create a fresh decoder for one exchange.

    Args:
        format: Wire format name ('sse' or 'lines')
        max_frame_size: Bounded buffering window

    Returns:
        New decoder instance

    Raises:
        ValueError: If the format is unknown
    """
    try:
        decoder_cls = DECODERS[format.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown stream format {format!r}; expected one of {sorted(DECODERS)}"
        ) from None
    return decoder_cls(max_frame_size=max_frame_size)
