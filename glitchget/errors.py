# glitchget/errors.py
"""
Exceptions raised by the transfer client.

Every failure is fatal to a run; nothing here is retried internally.
"""


class TransferError(Exception):
    """Base class for all transfer failures."""


class ConnectError(TransferError):
    """A connection to the server could not be established."""


class TransportIOError(TransferError):
    """Writing to or reading from an established connection failed."""


class ProtocolError(TransferError):
    """The server's response could not be understood."""


class PersistenceError(TransferError):
    """The reassembled payload could not be written to its destination."""
