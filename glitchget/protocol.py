# glitchget/protocol.py
"""
Wire format of the glitchy server: request rendering and response parsing.

Only the two request shapes and the one response header the server is known
to emit are understood. This is not a general HTTP implementation.
"""

import re
from typing import Optional, Tuple

from glitchget.errors import ProtocolError
from glitchget.models import FullRequest, HeaderBlock, RangeRequest, Request, ResponseFragment

TERMINATOR = b"\r\n\r\n"
CONTENT_LENGTH = "Content-Length: "
REQUEST_LINE = "GET / HTTP/1.0\r\n"

_DIGITS = re.compile(r"[0-9]+")


def parse(raw: bytes) -> Tuple[HeaderBlock, int]:
    """Split raw response bytes into the header block and the body offset.

    The body starts right after the first ``\\r\\n\\r\\n`` in ``raw``.
    Raises ProtocolError if there is no terminator or the header bytes
    are not valid UTF-8.
    """
    pos = raw.find(TERMINATOR)
    if pos == -1:
        raise ProtocolError(f"No header terminator in {len(raw)} received bytes")
    try:
        text = raw[:pos].decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolError(f"Header block is not valid text: {e}") from e
    return HeaderBlock(text=text), pos + len(TERMINATOR)


def parse_fragment(raw: bytes) -> ResponseFragment:
    headers, body_offset = parse(raw)
    return ResponseFragment(raw=raw, body_offset=body_offset, headers=headers)


def content_length(headers: HeaderBlock) -> Optional[int]:
    """Return the first parseable ``Content-Length`` value, or None.

    Lines end at ``\\n`` or ``\\r\\n`` only. Lines whose value is not a plain
    decimal number are skipped, so a later well-formed line can still supply
    the length.
    """
    for line in headers.text.split("\n"):
        line = line.removesuffix("\r")
        if not line.startswith(CONTENT_LENGTH):
            continue
        value = line[len(CONTENT_LENGTH):]
        if not _DIGITS.fullmatch(value):
            continue
        try:
            return int(value)
        except ValueError:
            # Longer than the interpreter's integer string conversion limit.
            continue
    return None


def render(request: Request) -> str:
    """Render a request descriptor to its wire text."""
    if isinstance(request, FullRequest):
        return REQUEST_LINE + "\r\n"
    if isinstance(request, RangeRequest):
        if request.start < 0 or request.end < 0:
            raise ValueError(f"Negative range bounds: {request.start}-{request.end}")
        return f"{REQUEST_LINE}Range: bytes={request.start}-{request.end}\r\n\r\n"
    raise TypeError(f"Unknown request type: {type(request).__name__}")
