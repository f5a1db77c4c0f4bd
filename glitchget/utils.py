# glitchget/utils.py
"""
Shared helper functions for formatting and address parsing.
"""
from typing import Tuple


def format_bytes(size: int) -> str:
    """Converts bytes into a human-readable format (KB, MB, GB)."""
    if not isinstance(size, (int, float)):
        return "0 B"
    power = 1024
    n = 0
    power_labels = {0: '', 1: 'K', 2: 'M', 3: 'G', 4: 'T'}
    while size > power and n < len(power_labels) - 1:
        size /= power
        n += 1
    return f"{size:.2f} {power_labels[n]}B"


def to_kb(size: int) -> float:
    return size / 1024


def parse_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` into its parts; raises ValueError if malformed."""
    host, sep, port = address.rpartition(':')
    if not sep or not host or not port.isdigit():
        raise ValueError(f"Expected HOST:PORT, got {address!r}")
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValueError(f"Port out of range: {port_number}")
    return host.strip('[]'), port_number
