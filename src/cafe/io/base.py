"""Base protocols and shared constants for the chunked I/O layer."""

from typing import AsyncIterator, Iterator, Protocol, runtime_checkable


DEFAULT_CHUNK_SIZE = 16 * 1024  # 16 KB


@runtime_checkable
class ChunkSource(Protocol):
    """Protocol for synchronous, pull-driven chunk producers."""

    bytes_read: int  # running total

    def __iter__(self) -> Iterator[bytes]:
        ...

    def close(self) -> None:
        """Release the underlying handle. Safe to call more than once."""
        ...


@runtime_checkable
class AsyncChunkSource(Protocol):
    """Protocol for asynchronous chunk producers."""

    bytes_read: int  # running total

    def __aiter__(self) -> AsyncIterator[bytes]:
        ...

    async def aclose(self) -> None:
        """Release the underlying handle. Safe to call more than once."""
        ...
