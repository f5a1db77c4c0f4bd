# glitchget/transport.py
"""
A single stream connection to the glitchy server.

The server closes the connection after every response, whole or truncated,
so "read until end of stream" is the only response boundary used here.
That is a property of this server, not of HTTP in general.
"""

import asyncio
import logging
from typing import Optional, Tuple

from glitchget import protocol
from glitchget.errors import ConnectError, TransportIOError
from glitchget.models import Request, ResponseFragment

logger = logging.getLogger(__name__)

Address = Tuple[str, int]


class TransportSession:
    """Owns at most one live connection at a time."""

    def __init__(self):
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None

    @classmethod
    async def open(cls, address: Address) -> "TransportSession":
        session = cls()
        await session.reconnect(address)
        return session

    async def send(self, request: Request):
        """Render the request and write all of it to the connection."""
        data = protocol.render(request).encode("ascii")
        try:
            self.writer.write(data)
            await self.writer.drain()
        except OSError as e:
            raise TransportIOError(f"Failed to send request: {e}") from e
        logger.debug("Sent %r", data)

    async def receive(self) -> ResponseFragment:
        """Read until the server closes the stream and parse what arrived."""
        try:
            raw = await self.reader.read()
        except OSError as e:
            raise TransportIOError(f"Failed to read response: {e}") from e
        logger.debug("Received %d bytes", len(raw))
        return protocol.parse_fragment(raw)

    async def reconnect(self, address: Address):
        """Drop the current connection, if any, and open a new one."""
        await self.close()
        host, port = address
        try:
            self.reader, self.writer = await asyncio.open_connection(host, port)
        except OSError as e:
            raise ConnectError(f"Could not connect to {host}:{port}: {e}") from e
        logger.debug("Connected to %s:%d", host, port)

    async def close(self):
        writer, self.reader, self.writer = self.writer, None, None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            # The server routinely resets connections it has finished with.
            logger.debug("Ignoring error while closing connection: %s", e)
