# glitchget/engine.py
"""
Core transfer engine: resumable sequential fetching and reassembly.
"""

import logging
import time
from pathlib import Path
from typing import List, Optional

from glitchget import protocol
from glitchget.errors import PersistenceError, ProtocolError
from glitchget.models import FullRequest, RangeRequest, ResponseFragment
from glitchget.transport import Address, TransportSession

logger = logging.getLogger(__name__)


class TransferAccumulator:
    """Collects response fragments in arrival order until the target length is reached.

    Each range request starts exactly at ``received``, so arrival order is byte
    order and the fragments' bodies tile ``[0, received)`` without gaps or overlap.
    The target is fixed at construction; headers of later fragments are never
    consulted again.
    """

    def __init__(self, target: int):
        self.target = target
        self.received = 0
        self.fragments: List[ResponseFragment] = []

    def append(self, fragment: ResponseFragment) -> bool:
        """Store the fragment; return True once the target length is reached."""
        self.received += fragment.body_size
        self.fragments.append(fragment)
        return self.received == self.target

    def to_bytes(self) -> bytes:
        return b"".join(fragment.body for fragment in self.fragments)

    def persist(self, destination: Path):
        """Append every fragment body, in order, to the destination file."""
        try:
            with open(destination, "ab") as f:
                for fragment in self.fragments:
                    body = fragment.body
                    written = f.write(body)
                    if written != len(body):
                        raise PersistenceError(
                            f"Short write to {destination}: {written} of {len(body)} bytes")
        except OSError as e:
            raise PersistenceError(f"Failed to write {destination}: {e}") from e


class DownloadEngine:
    """Manages the entire transfer of one payload from one server."""

    def __init__(self, address: Address, output_path: str):
        self.address = address
        self.output_path = Path(output_path)

        self.total_size = 0
        self.downloaded_size = 0
        self.cycles = 0
        self.elapsed = 0.0
        self.accumulator: Optional[TransferAccumulator] = None
        self.session: Optional[TransportSession] = None

        # Callbacks for console updates
        self.progress_callback = None
        self.status_callback = None

    async def download(self):
        """Fetch the whole payload, then write it to the output path."""
        start_time = time.monotonic()
        try:
            complete = await self.fetch_initial()
            while not complete:
                complete = await self.fetch_range()
        finally:
            if self.session:
                await self.session.close()
        self.elapsed = time.monotonic() - start_time

        self._update_status(f"Writing {self.total_size} bytes to {self.output_path}")
        self.accumulator.persist(self.output_path)

    async def fetch_initial(self) -> bool:
        """Request the whole resource and learn its length from the first response."""
        self.session = await TransportSession.open(self.address)
        await self.session.send(FullRequest())
        fragment = await self.session.receive()

        target = protocol.content_length(fragment.headers)
        if target is None:
            raise ProtocolError("First response has no usable Content-Length header")

        self.total_size = target
        self.accumulator = TransferAccumulator(target)
        return self._record(fragment)

    async def fetch_range(self) -> bool:
        """Reconnect and ask for the bytes from the current offset onwards."""
        await self.session.reconnect(self.address)
        await self.session.send(RangeRequest(self.accumulator.received, self.total_size))
        fragment = await self.session.receive()
        if fragment.body_size == 0:
            logger.warning("Cycle %d returned no new bytes", self.cycles + 1)
        return self._record(fragment)

    def _record(self, fragment: ResponseFragment) -> bool:
        complete = self.accumulator.append(fragment)
        self.cycles += 1
        self.downloaded_size = self.accumulator.received
        logger.debug("Cycle %d: +%d bytes, %d / %d",
                     self.cycles, fragment.body_size, self.downloaded_size, self.total_size)

        if self.downloaded_size > self.total_size:
            raise ProtocolError(
                f"Received {self.downloaded_size} bytes but the server declared {self.total_size}")

        if self.progress_callback:
            self.progress_callback(self.downloaded_size, self.total_size)
        return complete

    def _update_status(self, message: str):
        """Send a status update via callback."""
        logger.debug(message)
        if self.status_callback:
            self.status_callback(message)
