"""
Exceptions for the Banker's Algorithm Simulator.

Request-time rejections (exceeding the claim, insufficient resources,
unsafe state) are NOT exceptions - they are returned as Decision values.
Only construction failures and caller misuse are raised.
"""

from typing import Optional


class BankerError(Exception):
    """Base class for all simulator errors."""

    def __init__(
        self,
        message: str,
        process: Optional[int] = None,
        resource: Optional[int] = None
    ):
        super().__init__(message)
        self.process = process
        self.resource = resource


class InvalidStateError(BankerError, ValueError):
    """Raised when initial Available/Max/Allocation values are inconsistent."""
    pass


class IndexOutOfRangeError(BankerError, IndexError):
    """Raised when a process or resource index lies outside the system."""
    pass


class MalformedRequestError(IndexOutOfRangeError):
    """
    Raised when a request vector is malformed.

    Covers wrong length, negative components and non-integer components.
    """
    pass
