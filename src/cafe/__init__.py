"""cafe - A small static file server with HTTP range support."""

from .core.config import CafeConfig, MenuConfig, create_config                    # re-export
from .core.model import (ByteRange, RangeSet, InternalStatus, StartResult,
                         CafeError, InvalidRangeError, NotAFileError, CafeClosedError)
from .core.menu import is_servable
from .core.ranges import parse_range
from .io import open_range, open_range_async
from .http import CafeApp
from .server import Cafe


def create_app(config: CafeConfig | None = None, *, version: str = "0.0.0", **partial) -> CafeApp:
    """Create the café WSGI application, e.g. for an external WSGI server."""
    if config is None:
        config = create_config(**partial)
    elif partial:
        raise TypeError("Pass either a CafeConfig or partial settings, not both")
    return CafeApp(config, version=version)


__all__ = [
    "Cafe", "CafeApp", "create_app",
    "CafeConfig", "MenuConfig", "create_config",
    "ByteRange", "RangeSet", "InternalStatus", "StartResult",
    "CafeError", "InvalidRangeError", "NotAFileError", "CafeClosedError",
    "is_servable", "parse_range", "open_range", "open_range_async",
]
