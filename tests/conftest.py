"""
pytest configuration and shared fixtures.

ScriptedServer stands in for the glitchy server when a test needs exact
control over every response.
"""

import asyncio
import socket
import struct
from typing import List, Optional

import pytest
import pytest_asyncio

from glitchget.protocol import parse_fragment

# Canned "response" that resets the connection instead of answering.
RESET = object()


def build_response(body: bytes, content_length: Optional[int] = None, extra: str = "") -> bytes:
    """Build a raw response the way the glitchy server frames it."""
    headers = "HTTP/1.0 200 OK\r\n" + extra
    if content_length is not None:
        headers += f"Content-Length: {content_length}\r\n"
    return headers.encode() + b"\r\n" + body


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def reset_response():
    """Canned response that makes the server reset the connection."""
    return RESET


@pytest.fixture
def make_fragment():
    def make(body: bytes, content_length: Optional[int] = None):
        return parse_fragment(build_response(body, content_length))
    return make


class ScriptedServer:
    """Raw TCP server answering the n-th connection with the n-th canned response.

    With ``listen_for`` set, the server stops accepting connections once it
    has read that many requests.
    """

    def __init__(self, responses, listen_for: Optional[int] = None):
        self.responses = list(responses)
        self.listen_for = listen_for
        self.requests: List[str] = []
        self.server: Optional[asyncio.AbstractServer] = None

    @property
    def address(self):
        return "127.0.0.1", self._port

    async def handle(self, reader, writer):
        request = await reader.readuntil(b"\r\n\r\n")
        self.requests.append(request.decode("ascii"))
        if len(self.requests) == self.listen_for:
            self.server.close()

        response = self.responses[len(self.requests) - 1]
        if response is RESET:
            sock = writer.get_extra_info("socket")
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
            writer.transport.abort()
            return

        writer.write(response)
        await writer.drain()
        writer.close()
        await writer.wait_closed()

    async def start(self):
        self.server = await asyncio.start_server(self.handle, "127.0.0.1", 0)
        self._port = self.server.sockets[0].getsockname()[1]

    async def stop(self):
        self.server.close()
        await self.server.wait_closed()


@pytest_asyncio.fixture
async def scripted_server():
    """Factory fixture: ``await scripted_server(resp1, resp2, ..., listen_for=None)``."""
    servers = []

    async def start(*responses, listen_for: Optional[int] = None):
        server = ScriptedServer(responses, listen_for)
        await server.start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        await server.stop()


@pytest.fixture
def refused_address():
    """Address of a loopback port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return "127.0.0.1", port
