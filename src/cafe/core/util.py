from __future__ import annotations
import mimetypes

from .model import ByteRange

DEFAULT_MIME_TYPE = "application/octet-stream"

# Generic response bodies; never include paths or error details.
NOT_ON_MENU = "It seems the item you ordered is not on the menu."
IN_DISARRAY = "Umm... It seems the café is in disarray at the moment."
UNKNOWN_ORDER = "Sorry. The chef doesn't know how to make that."
STAFF_GREETING = "Hello from staff!"


def guess_mime_type(path: str) -> str:
    mime_type, _ = mimetypes.guess_type(path, strict=False)
    return mime_type or DEFAULT_MIME_TYPE


def content_range(byte_range: ByteRange, size: int) -> str:
    """``Content-Range`` value for a satisfied range."""
    return f"bytes {byte_range.start}-{byte_range.end}/{size}"


def unsatisfied_range(size: int) -> str:
    return f"bytes */{size}"
