"""
GlitchGet - Resumable transfer client for the glitchy server
Command line entry point
"""

import argparse
import asyncio
import logging
import sys
from datetime import timedelta
from typing import List, Optional

from tqdm import tqdm

from glitchget.engine import DownloadEngine
from glitchget.errors import TransferError
from glitchget.log import setup_logging
from glitchget.utils import parse_address, to_kb

DEFAULT_ADDRESS = "127.0.0.1:8080"
DEFAULT_OUTPUT = "data"
HASH_REMINDER = ("Please manually compare the SHA-256 hash printed by the server "
                 "with the downloaded file")

logger = logging.getLogger(__name__)


def address_type(value: str):
    try:
        return parse_address(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glitchget",
        description="Application that downloads the binary data from the glitchy server")
    parser.add_argument("-a", "--address", type=address_type, default=DEFAULT_ADDRESS,
                        metavar="HOST:PORT", help=f"server address (default: {DEFAULT_ADDRESS})")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT, metavar="PATH",
                        help=f"file the payload is appended to (default: {DEFAULT_OUTPUT})")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every transfer cycle")
    return parser


class ConsoleProgress:
    """Single-line progress bar, created once the total size is known."""

    def __init__(self):
        self.bar: Optional[tqdm] = None

    def update(self, received: int, total: int):
        if self.bar is None:
            print(f"Downloading {to_kb(total):.2f}Kb")
            self.bar = tqdm(total=total, unit="B", unit_scale=True, unit_divisor=1024,
                            dynamic_ncols=True, mininterval=0)
        self.bar.update(received - self.bar.n)

    def write(self, message: str):
        if self.bar is None:
            print(message)
        else:
            self.bar.write(message)

    def close(self):
        if self.bar is not None:
            self.bar.close()


def run(address, output: str) -> int:
    engine = DownloadEngine(address, output)
    progress = ConsoleProgress()
    engine.progress_callback = progress.update
    engine.status_callback = progress.write

    try:
        asyncio.run(engine.download())
    except TransferError as e:
        progress.close()
        logger.error("Transfer failed after %d cycles (%d / %d bytes): %s",
                     engine.cycles, engine.downloaded_size, engine.total_size, e)
        return 1
    progress.close()

    print(f"Download complete in {engine.cycles} cycles, time: {timedelta(seconds=engine.elapsed)}")
    print(f"Data written to {engine.output_path}")
    print(HASH_REMINDER)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    return run(args.address, args.output)


if __name__ == "__main__":
    sys.exit(main())
