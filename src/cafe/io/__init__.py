"""I/O layer for cafe - streams exact byte windows of local files."""

# Re-export these for import convenience
from .base import ChunkSource, AsyncChunkSource, DEFAULT_CHUNK_SIZE
from .local import ChunkedFileReader, AsyncChunkedFileReader, open_range, open_range_async

__all__ = [
    "ChunkSource", "AsyncChunkSource", "DEFAULT_CHUNK_SIZE",
    "ChunkedFileReader", "AsyncChunkedFileReader", "open_range", "open_range_async",
]
