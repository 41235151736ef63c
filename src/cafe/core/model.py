"""Byte ranges, serving phases, lifecycle results and café errors."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, NamedTuple


class ByteRange(NamedTuple):
    """A contiguous ``(start, length)`` window into a resource."""
    start: int
    length: int

    @property
    def end(self) -> int:
        """Inclusive index of the last byte."""
        return self.start + self.length - 1


class RangeSet(tuple):
    """Ordered, immutable sequence of ByteRange produced once per request."""

    partial: bool

    def __new__(cls, ranges: Iterable[ByteRange], *, partial: bool = True):
        self = super().__new__(cls, tuple(ByteRange(*r) for r in ranges))
        if not self:
            raise ValueError("RangeSet needs at least one range")
        self.partial = partial
        return self

    @classmethod
    def whole(cls, size: int) -> RangeSet:
        # length is a count, not an end index
        return cls([ByteRange(0, size)], partial=False)

    @property
    def total_length(self) -> int:
        return sum(r.length for r in self)


class InternalStatus(Enum):
    """Serving phase of a request, used to classify failures."""

    RESOLVING_PATH = ("Resolving path...", "The path is not on the menu.")
    ACQUIRING_HANDLE = ("Acquiring file handle...", "Failed to acquire file handle.")
    STATING_HANDLE = ("Getting file stats...", "Failed to get file stats.")
    VALIDATING_TYPE = ("Validating handle type...", "The filesystem handle did not refer to a file.")
    VALIDATING_RANGE = ("Validating requested range...", "Invalid range.")
    SERVING = ("Serving file...", "Failed to serve file.")
    SERVED = ("Served.", "")

    def __init__(self, progress: str, failure: str):
        self.progress = progress
        self.failure = failure


class StatusTracker:
    """Holds the active InternalStatus of a single request."""

    __slots__ = ("status",)

    def __init__(self, status: InternalStatus = InternalStatus.RESOLVING_PATH):
        self.status = status

    def enter(self, status: InternalStatus) -> None:
        self.status = status


@dataclass(slots=True)
class StartResult:
    success: bool
    port: int | None
    error: str | None


class CafeError(RuntimeError):
    """Base class for café errors."""
    pass


class NotAFileError(CafeError):
    """Raised when a path exists but is neither a regular file nor a usable directory."""
    pass


class InvalidRangeError(CafeError):
    """Raised when a Range header cannot be satisfied for a resource."""

    def __init__(self, header: str, size: int):
        super().__init__(f"Invalid range {header!r} for resource of {size} bytes")
        self.header = header
        self.size = size


class CafeClosedError(CafeError):
    """Raised when querying a café that is not open for business."""
    pass
