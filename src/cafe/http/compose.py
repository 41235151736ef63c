"""Build werkzeug responses for single-range and multipart byte-range bodies."""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from typing import Callable, Iterator, Sequence

from werkzeug.wrappers import Response

from ..core.model import ByteRange, InternalStatus
from ..core.util import NOT_ON_MENU, content_range, guess_mime_type
from ..io.base import ChunkSource
from ..io.local import open_range

logger = logging.getLogger(__name__)

FAILURE_REASON_HEADER = "Cafe-Failure-Reason"

ReaderFactory = Callable[[str, int, int], ChunkSource]


@dataclass(slots=True)
class ResourceMeta:
    path: str
    size: int
    mime_type: str

    @classmethod
    def for_path(cls, path: str, size: int) -> ResourceMeta:
        return cls(path, size, guess_mime_type(path))


def text_response(body: str, status: int, *, reason: InternalStatus | None = None) -> Response:
    """Plain-text response; ``reason`` adds the diagnostic failure header."""
    response = Response(body, status=status, mimetype="text/plain")
    if reason is not None:
        response.headers[FAILURE_REASON_HEADER] = reason.name
    return response


def compose_single(meta: ResourceMeta, byte_range: ByteRange, *, partial: bool,
                   reader_factory: ReaderFactory = open_range, with_body: bool = True) -> Response:
    """Stream one byte range, or the whole resource when ``partial`` is False.

    With ``with_body`` False (HEAD) the headers are identical but no reader
    is opened.
    """
    body = reader_factory(meta.path, byte_range.start, byte_range.length) if with_body else []
    headers = {
        "Content-Length": str(byte_range.length),
        "Accept-Ranges": "bytes",
    }
    if partial:
        headers["Content-Range"] = content_range(byte_range, meta.size)

    return Response(
        body,
        status=206 if partial else 200,
        headers=headers,
        content_type=meta.mime_type,
        direct_passthrough=True,
    )


def _part_head(boundary: str, mime_type: str, byte_range: ByteRange, size: int) -> bytes:
    return (
        f"--{boundary}\r\n"
        f"Content-Type: {mime_type}\r\n"
        f"Content-Range: {content_range(byte_range, size)}\r\n\r\n"
    ).encode("latin-1")


def _iter_parts(path: str, ranges: Sequence[ByteRange], heads: Sequence[bytes], closing: bytes,
                reader_factory: ReaderFactory) -> Iterator[bytes]:
    # the next reader is opened only after the previous part is fully emitted
    for byte_range, head in zip(ranges, heads):
        yield head
        reader = reader_factory(path, byte_range.start, byte_range.length)
        try:
            yield from reader
        finally:
            reader.close()
        yield b"\r\n"
    yield closing


def compose_multipart(meta: ResourceMeta, ranges: Sequence[ByteRange], *,
                      reader_factory: ReaderFactory = open_range, debug: bool = False) -> Response:
    """Stream several byte ranges as a ``multipart/byteranges`` body."""
    try:
        size = os.stat(meta.path).st_size
    except OSError as e:
        logger.warning("Could not stat %s for multipart response: %s", meta.path, e)
        return text_response(NOT_ON_MENU, 404, reason=InternalStatus.STATING_HANDLE if debug else None)

    boundary = uuid.uuid4().hex
    heads = [_part_head(boundary, meta.mime_type, r, size) for r in ranges]
    closing = f"--{boundary}--\r\n".encode("latin-1")
    content_length = sum(len(head) + r.length + 2 for head, r in zip(heads, ranges)) + len(closing)

    return Response(
        _iter_parts(meta.path, ranges, heads, closing, reader_factory),
        status=206,
        headers={
            "Content-Length": str(content_length),
            "Accept-Ranges": "bytes",
        },
        content_type=f"multipart/byteranges; boundary={boundary}",
        direct_passthrough=True,
    )
