# glitchget/models.py
"""
Data Models for the GlitchGet transfer client
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class HeaderBlock:
    """Header text of one response, without the terminating blank line"""
    text: str


@dataclass(frozen=True)
class ResponseFragment:
    """Everything read off one connection cycle"""
    raw: bytes
    body_offset: int
    headers: HeaderBlock

    @property
    def body(self) -> memoryview:
        return memoryview(self.raw)[self.body_offset:]

    @property
    def body_size(self) -> int:
        return len(self.raw) - self.body_offset


@dataclass(frozen=True)
class FullRequest:
    """Fetch the whole resource"""


@dataclass(frozen=True)
class RangeRequest:
    """Fetch from start up to the declared end of the resource"""
    start: int
    end: int


Request = Union[FullRequest, RangeRequest]
