"""Café server lifecycle: bind with retries, serve in a thread, stop."""

from __future__ import annotations

import errno
import logging
import math
import socket
import threading
import time

from werkzeug.serving import BaseWSGIServer, make_server

from .core.config import CafeConfig, create_config
from .core.model import CafeClosedError, StartResult
from .http.dispatch import CafeApp

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3333
MAX_PORT = 65535


class Cafe:
    """A static file server over a base directory.

    ``start`` returns a StartResult instead of raising on bind failures;
    ``stop`` returns whether the café was open.
    """

    def __init__(self, config: CafeConfig | None = None, *, version: str = "0.0.0",
                 host: str = "127.0.0.1"):
        self.config = config if config is not None else create_config()
        self.version = version
        self.host = host
        self.app = CafeApp(self.config, version=version)
        self._server: BaseWSGIServer | None = None
        self._thread: threading.Thread | None = None
        self._port: int | None = None

    @property
    def is_open(self) -> bool:
        return self._server is not None

    @property
    def port(self) -> int:
        if self._port is None:
            raise CafeClosedError("The cafe is not open for business... yet.")
        return self._port

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"http://{host}:{self.port}"

    def _bind(self, port: int) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, port))
            sock.listen(socket.SOMAXCONN)
        except OSError:
            sock.close()
            raise
        return sock

    def start(self, port: int = DEFAULT_PORT, *, retry_count: int = 2, retry_interval: float = 1.0,
              incremental: bool = False) -> StartResult:
        """Open the café on ``port``.

        While the port is in use, wait ``retry_interval`` seconds and try
        again up to ``retry_count`` more times (-1 retries forever), moving to
        the next port when ``incremental`` is set. Port 0 binds any free port.
        """
        if self.is_open:
            return StartResult(True, self._port, None)

        attempts_left = math.inf if retry_count == -1 else retry_count
        last_error: OSError | None = None
        while port <= MAX_PORT:
            try:
                sock = self._bind(port)
            except OSError as e:
                if e.errno != errno.EADDRINUSE:
                    logger.error("Could not bind %s:%d: %s", self.host, port, e)
                    return StartResult(False, None, str(e))
                last_error = e
                if attempts_left <= 0:
                    break
                attempts_left -= 1
                logger.warning("Port %d is in use, retrying in %.1fs", port, retry_interval)
                time.sleep(retry_interval)
                if incremental:
                    port += 1
                continue

            with sock:
                bound_port = sock.getsockname()[1]
                # werkzeug duplicates the descriptor
                self._server = make_server(self.host, bound_port, self.app, threaded=True, fd=sock.fileno())
            self._port = bound_port
            self._thread = threading.Thread(
                target=self._server.serve_forever, name=f"cafe-{bound_port}", daemon=True
            )
            self._thread.start()
            logger.info("A café just opened for business at %s", self.url)
            return StartResult(True, bound_port, None)

        message = "I'm afraid we couldn't open the cafe today."
        if last_error is not None:
            message = f"{message} ({last_error.strerror})"
        return StartResult(False, None, message)

    def stop(self) -> bool:
        """Close the café; returns False when it was not open."""
        if self._server is None:
            return False
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join()
        logger.info("The café at port %s closed", self._port)
        self._server = None
        self._thread = None
        self._port = None
        return True

    def wait(self, timeout: float | None = None) -> None:
        """Block until the serving thread exits or ``timeout`` passes."""
        if self._thread is not None:
            self._thread.join(timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
