"""WSGI application routing requests to the café's file-serving state machine."""

from __future__ import annotations

import errno
import logging
import os
import posixpath
import stat

from werkzeug.exceptions import HTTPException
from werkzeug.routing import Map, Rule
from werkzeug.utils import redirect
from werkzeug.wrappers import Request, Response

from ..core.config import CafeConfig, create_config
from ..core.menu import is_servable, resolve_path
from ..core.model import InternalStatus, InvalidRangeError, NotAFileError, RangeSet, StatusTracker
from ..core.ranges import parse_range
from ..core.util import IN_DISARRAY, NOT_ON_MENU, STAFF_GREETING, UNKNOWN_ORDER, unsatisfied_range
from ..io.local import open_range
from .compose import ReaderFactory, ResourceMeta, compose_multipart, compose_single, text_response

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"
SERVED_BY = "cafe"

_HANDLE_PHASES = (
    InternalStatus.ACQUIRING_HANDLE,
    InternalStatus.STATING_HANDLE,
    InternalStatus.VALIDATING_TYPE,
)
_NOT_FOUND_ERRNOS = (errno.ENOENT, errno.ENOTDIR)


class CafeApp:
    """The café as a WSGI application.

    Routes ``/_cafe_/`` to a greeting, configured aliases to redirects and
    everything else to file serving under ``config.base_path``.
    """

    def __init__(self, config: CafeConfig | None = None, *, version: str = "0.0.0",
                 reader_factory: ReaderFactory = open_range):
        self.config = config if config is not None else create_config()
        self.version = version
        self.reader_factory = reader_factory
        self.url_map = self._build_url_map()

    def _build_url_map(self) -> Map:
        rules = [Rule("/_cafe_/", endpoint="staff", methods=["GET"])]
        for route, target in self.config.alias.items():
            if not route.startswith("/"):
                route = "/" + route
            rules.append(Rule(route, endpoint="alias", defaults={"target": target}))
        rules += [
            Rule("/", endpoint="serve", defaults={"path": ""}, methods=["GET"]),
            Rule("/<path:path>", endpoint="serve", methods=["GET"]),
        ]
        return Map(rules, redirect_defaults=False)

    # --- routing ---
    def dispatch_request(self, request: Request) -> Response:
        adapter = self.url_map.bind_to_environ(request.environ)
        try:
            endpoint, values = adapter.match()
            return getattr(self, f"on_{endpoint}")(request, **values)
        except HTTPException as e:
            return e.get_response(request.environ)

    def wsgi_app(self, environ, start_response):
        request = Request(environ)
        response = self.dispatch_request(request)
        response.headers["Served-By"] = SERVED_BY
        if self.config.broadcast_version:
            response.headers["Cafe-Version"] = self.version
        return response(environ, start_response)

    def __call__(self, environ, start_response):
        return self.wsgi_app(environ, start_response)

    # --- endpoints ---
    def on_staff(self, request: Request) -> Response:
        return text_response(STAFF_GREETING, 200)

    def on_alias(self, request: Request, target: str) -> Response:
        return redirect(target)

    def on_serve(self, request: Request, path: str) -> Response:
        if not is_servable(self.config, path):
            return self._not_on_menu(InternalStatus.RESOLVING_PATH)
        return self.serve_file(request, path)

    # --- file serving ---
    def serve_file(self, request: Request, relative_path: str, *, fallback: bool = True) -> Response:
        """Serve ``relative_path``, falling back once to a directory's index file."""
        tracker = StatusTracker(InternalStatus.RESOLVING_PATH)
        if not is_servable(self.config, relative_path):
            return self._not_on_menu(tracker.status)

        path = resolve_path(self.config, relative_path)
        size = -1
        try:
            tracker.enter(InternalStatus.ACQUIRING_HANDLE)
            fd = os.open(path, os.O_RDONLY)
            try:
                tracker.enter(InternalStatus.STATING_HANDLE)
                stats = os.fstat(fd)
            finally:
                os.close(fd)

            tracker.enter(InternalStatus.VALIDATING_TYPE)
            if stat.S_ISDIR(stats.st_mode) and fallback:
                return self.serve_file(request, posixpath.join(relative_path, INDEX_FILE), fallback=False)
            if not stat.S_ISREG(stats.st_mode):
                raise NotAFileError(f"Not a file: {path}")
            size = stats.st_size

            range_header = request.headers.get("Range")
            if range_header:
                tracker.enter(InternalStatus.VALIDATING_RANGE)
                ranges = parse_range(range_header, size)
                if ranges is None:
                    raise InvalidRangeError(range_header, size)
            else:
                ranges = RangeSet.whole(size)

            tracker.enter(InternalStatus.SERVING)
            meta = ResourceMeta.for_path(path, size)
            if len(ranges) > 1:
                response = compose_multipart(meta, ranges, reader_factory=self.reader_factory,
                                             debug=self.config.debug_response_headers)
            else:
                response = compose_single(meta, ranges[0], partial=ranges.partial,
                                          reader_factory=self.reader_factory,
                                          with_body=request.method != "HEAD")
            tracker.enter(InternalStatus.SERVED)
            return response
        except Exception as e:
            return self._handle_failure(tracker.status, e, relative_path, size)

    # --- failures ---
    def _reason(self, status: InternalStatus) -> InternalStatus | None:
        return status if self.config.debug_response_headers else None

    def _not_on_menu(self, status: InternalStatus) -> Response:
        return text_response(NOT_ON_MENU, 404, reason=self._reason(status))

    def _handle_failure(self, status: InternalStatus, error: Exception, relative_path: str,
                        size: int) -> Response:
        if status in _HANDLE_PHASES:
            if isinstance(error, OSError) and error.errno in _NOT_FOUND_ERRNOS:
                logger.info("%s: %s not found", status.name, relative_path)
                return self._not_on_menu(status)
            logger.error("%s: %s (%s)", status.name, status.failure, error)
            return text_response(IN_DISARRAY, 500, reason=self._reason(status))

        if status is InternalStatus.VALIDATING_RANGE:
            logger.info("%s: %s", status.name, error)
            response = text_response(UNKNOWN_ORDER, 416, reason=self._reason(status))
            response.headers["Content-Range"] = unsatisfied_range(size)
            response.headers["Accept-Ranges"] = "bytes"
            return response

        logger.exception("%s: failed to serve %s", status.name, relative_path)
        return text_response(IN_DISARRAY, 500, reason=self._reason(status))
