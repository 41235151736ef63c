"""HTTP layer for cafe - werkzeug responses and request dispatch."""

from .compose import ResourceMeta, compose_single, compose_multipart
from .dispatch import CafeApp

__all__ = ["CafeApp", "ResourceMeta", "compose_single", "compose_multipart"]
