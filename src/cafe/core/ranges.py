from __future__ import annotations

import re

from .model import ByteRange, RangeSet

_SPLIT_RE = re.compile(r",\s*")
# start-[end]
_BOUNDED_RE = re.compile(r"\s*(\d+)-(\d*)\s*")
# -lastN
_SUFFIX_RE = re.compile(r"\s*-(\d+)\s*")


def _parse_spec(spec: str, size: int) -> ByteRange | None:
    if m := _BOUNDED_RE.fullmatch(spec):
        start = int(m.group(1))
        end = int(m.group(2)) if m.group(2) else size - 1
        if start > end or start < 0 or end < 0:
            return None
        if start > size - 1 or end > size - 1:
            return None
        return ByteRange(start, end - start + 1)

    if m := _SUFFIX_RE.fullmatch(spec):
        last_n = int(m.group(1))
        start = size - last_n
        if start < 0 or last_n == 0:
            return None
        return ByteRange(start, last_n)

    return None


def parse_range(header: str | None, size: int) -> RangeSet | None:
    """Parse a ``Range`` header value against a resource of ``size`` bytes.

    Returns the whole-resource RangeSet when the header is absent or empty,
    ``None`` when any range spec is malformed or unsatisfiable. Ranges are
    kept in header order, overlaps are not merged.
    """
    if not header:
        return RangeSet.whole(size)

    value = header.strip()
    if value.lower().startswith("bytes="):
        value = value[len("bytes="):]

    ranges = []
    for spec in _SPLIT_RE.split(value):
        byte_range = _parse_spec(spec, size)
        if byte_range is None:
            return None
        ranges.append(byte_range)
    return RangeSet(ranges)
