# glitchget/server.py
"""
Glitchy reference server for exercising the client locally.

Serves one payload over HTTP/1.0. Every response declares the full length
of what was asked for but only delivers a random prefix of it before the
connection is closed.
"""

import argparse
import asyncio
import hashlib
import logging
import random
from pathlib import Path
from typing import List, Optional, Tuple

from aiohttp import hdrs, web

from glitchget.log import setup_logging
from glitchget.utils import format_bytes

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_SIZE = 1024 * 1024
DEFAULT_MAX_CHUNK = 64 * 1024

logger = logging.getLogger(__name__)


class GlitchyServer:
    """Serves a payload in truncated responses."""

    def __init__(self, payload: bytes, max_chunk: int = DEFAULT_MAX_CHUNK, seed: Optional[int] = None):
        if max_chunk < 1:
            raise ValueError("max_chunk must be at least 1")
        self.payload = payload
        self.max_chunk = max_chunk
        self.random = random.Random(seed)
        self.requests = 0
        self.runner: Optional[web.AppRunner] = None

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.payload).hexdigest()

    @property
    def address(self) -> Tuple[str, int]:
        host, port = self.runner.addresses[0][:2]
        return host, port

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get('/', self.handle_get)
        return app

    async def handle_get(self, request: web.Request) -> web.StreamResponse:
        """Answer a full or ranged GET with a truncated body."""
        self.requests += 1
        ranged = hdrs.RANGE in request.headers
        try:
            selection = range(len(self.payload))[request.http_range]
        except ValueError:
            selection = range(0)
        if ranged and not selection:
            raise web.HTTPRequestRangeNotSatisfiable(
                headers={hdrs.CONTENT_RANGE: f"bytes */{len(self.payload)}"})

        body = self.payload[selection.start:selection.stop]
        sent = min(len(body), self.random.randint(1, self.max_chunk)) if body else 0

        response = web.StreamResponse(status=206 if ranged else 200)
        response.content_type = "application/octet-stream"
        response.content_length = len(body)
        if ranged:
            response.headers[hdrs.CONTENT_RANGE] = (
                f"bytes {selection.start}-{selection.stop - 1}/{len(self.payload)}")
        response.force_close()

        await response.prepare(request)
        await response.write(body[:sent])
        await response.write_eof()
        logger.info("Request %d: %s, sent %d of %d bytes",
                    self.requests, request.headers.get(hdrs.RANGE, "full"), sent, len(body))
        return response

    async def start(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        """Initializes and starts the server."""
        self.runner = web.AppRunner(self.create_app())
        await self.runner.setup()
        site = web.TCPSite(self.runner, host, port)
        await site.start()
        logger.info("Glitchy server listening on %s:%d", *self.address)

    async def stop(self):
        """Stops the server gracefully."""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None


def load_payload(path: Optional[Path], size: int, seed: Optional[int]) -> bytes:
    if path is not None:
        return path.read_bytes()
    return random.Random(seed).randbytes(size)


async def serve(server: GlitchyServer, host: str, port: int):
    await server.start(host, port)
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glitchget-server",
        description="Serve a payload in randomly truncated responses")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--file", type=Path, help="serve this file instead of random bytes")
    parser.add_argument("--size", type=int, default=DEFAULT_SIZE, help="size of the random payload")
    parser.add_argument("--seed", type=int, help="seed for the payload and the truncation points")
    parser.add_argument("--max-chunk", type=int, default=DEFAULT_MAX_CHUNK,
                        help="most bytes delivered by a single response")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.max_chunk < 1:
        parser.error("--max-chunk must be at least 1")
    setup_logging(args.verbose)

    server = GlitchyServer(load_payload(args.file, args.size, args.seed), args.max_chunk, args.seed)
    print(f"Serving {format_bytes(len(server.payload))}")
    print(f"SHA-256: {server.sha256}")
    try:
        asyncio.run(serve(server, args.host, args.port))
    except KeyboardInterrupt:
        logger.info("Server stopped after %d requests", server.requests)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
