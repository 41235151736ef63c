"""Tests for chunked local file I/O."""

import pytest
import tempfile
from pathlib import Path

from cafe.io import ChunkSource, AsyncChunkSource
from cafe.io.local import ChunkedFileReader, AsyncChunkedFileReader, open_range, open_range_async


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"0123456789")
    return path


class TestChunkedFileReader:
    """Test synchronous chunked reader."""

    def test_whole_file(self, data_file):
        """Without a length the reader runs to end of file."""
        reader = ChunkedFileReader(data_file)
        assert b"".join(reader) == b"0123456789"
        assert reader.bytes_read == 10
        assert reader.closed

    def test_window(self, data_file):
        """Test offset and length select a slice."""
        reader = ChunkedFileReader(data_file, 2, 5)
        assert b"".join(reader) == b"23456"
        assert reader.bytes_read == 5

    def test_chunk_boundaries(self, data_file):
        """Test chunks never exceed chunk_size and stop at the window end."""
        reader = ChunkedFileReader(data_file, 1, 7, chunk_size=3)
        assert list(reader) == [b"123", b"456", b"7"]

    def test_closes_on_exhaustion_without_extra_pull(self, data_file):
        """The handle is released as soon as the last byte is yielded."""
        reader = ChunkedFileReader(data_file, 0, 4, chunk_size=2)
        assert next(reader) == b"01"
        assert not reader.closed
        assert next(reader) == b"23"
        assert reader.closed
        with pytest.raises(StopIteration):
            next(reader)

    def test_zero_length(self, data_file):
        reader = ChunkedFileReader(data_file, 0, 0)
        assert list(reader) == []
        assert reader.closed

    def test_early_close(self, data_file):
        """Test a consumer that stops pulling releases the handle."""
        reader = ChunkedFileReader(data_file, chunk_size=2)
        assert next(reader) == b"01"
        reader.close()
        assert reader.closed
        assert list(reader) == []
        reader.close()  # idempotent

    def test_not_restartable(self, data_file):
        reader = ChunkedFileReader(data_file)
        assert b"".join(reader) == b"0123456789"
        assert b"".join(reader) == b""

    def test_independent_handles(self, data_file):
        """Two readers over the same file do not share position."""
        first = ChunkedFileReader(data_file, 0, 4, chunk_size=2)
        second = ChunkedFileReader(data_file, 0, 4, chunk_size=2)
        assert next(first) == b"01"
        assert next(second) == b"01"
        assert next(first) == b"23"
        first.close()
        second.close()

    def test_context_manager(self, data_file):
        """Test context manager usage."""
        with ChunkedFileReader(data_file, chunk_size=4) as reader:
            assert next(reader) == b"0123"
        assert reader.closed

    def test_error_conditions(self, data_file):
        """Test error conditions."""
        # Negative start
        with pytest.raises(IOError, match="Start offset cannot be negative"):
            ChunkedFileReader(data_file, -1, 5)

        with pytest.raises(IOError, match="Length cannot be negative"):
            ChunkedFileReader(data_file, 0, -5)

        with pytest.raises(ValueError):
            ChunkedFileReader(data_file, chunk_size=0)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ChunkedFileReader(tmp_path / "missing.bin")

    def test_read_past_eof(self, data_file):
        """A window beyond the end of file fails once data runs out."""
        reader = ChunkedFileReader(data_file, 5, 10, chunk_size=4)
        assert next(reader) == b"5678"
        assert next(reader) == b"9"
        with pytest.raises(IOError, match="Not enough data"):
            next(reader)
        assert reader.closed

    def test_truncated_while_reading(self, tmp_path):
        """Test a file shrinking after open ends the stream with an error."""
        path = tmp_path / "shrinking.bin"
        path.write_bytes(b"x" * 100)
        reader = ChunkedFileReader(path, chunk_size=10)
        assert next(reader) == b"x" * 10
        path.write_bytes(b"x" * 15)
        assert next(reader) == b"x" * 5
        with pytest.raises(IOError, match="Not enough data"):
            next(reader)
        assert reader.closed

    def test_protocol(self, data_file):
        with ChunkedFileReader(data_file) as reader:
            assert isinstance(reader, ChunkSource)


class TestAsyncChunkedFileReader:
    """Test asynchronous chunked reader."""

    @pytest.mark.asyncio
    async def test_iterates(self, data_file):
        """Test basic async iteration."""
        reader = await open_range_async(data_file, 2, 6, chunk_size=4)
        chunks = [chunk async for chunk in reader]
        assert chunks == [b"2345", b"67"]
        assert reader.bytes_read == 6
        assert reader.closed

    @pytest.mark.asyncio
    async def test_context_manager(self, data_file):
        """Test async context manager usage."""
        async with await open_range_async(data_file, chunk_size=3) as reader:
            assert await reader.__anext__() == b"012"
        assert reader.closed

    @pytest.mark.asyncio
    async def test_aclose(self, data_file):
        reader = await open_range_async(data_file, chunk_size=3)
        await reader.read_chunk()
        await reader.aclose()
        assert reader.closed
        assert await reader.read_chunk() is None

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            await open_range_async(tmp_path / "missing.bin")

    @pytest.mark.asyncio
    async def test_protocol(self, data_file):
        reader = await open_range_async(data_file)
        assert isinstance(reader, AsyncChunkSource)
        await reader.aclose()


class TestFactoryFunctions:
    """Test factory functions."""

    def test_open_range(self):
        """Test sync factory function."""
        test_data = b"0123456789"

        with tempfile.NamedTemporaryFile() as f:
            f.write(test_data)
            f.flush()

            reader = open_range(f.name, 0, 5)
            assert isinstance(reader, ChunkedFileReader)
            assert b"".join(reader) == b"01234"

    def test_open_range_path_object(self, data_file):
        reader = open_range(Path(data_file), 5)
        assert reader.length == 5
        assert b"".join(reader) == b"56789"

    @pytest.mark.asyncio
    async def test_open_range_async(self, data_file):
        """Test async factory function."""
        reader = await open_range_async(str(data_file), 0, 5)
        assert isinstance(reader, AsyncChunkedFileReader)
        assert await reader.read_chunk() == b"01234"
        await reader.aclose()
