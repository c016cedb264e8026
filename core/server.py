"""
Streaming File Server - listener lifecycle

@.architecture
Incoming: main.py, tests --- {storage directory, port (0 = ephemeral), host, Settings}
Processing: FileStreamingServer.__init__(), start(), stop(), run(), _bind_socket() --- {4 jobs: socket_binding, background_serving, graceful_shutdown, forced_cancellation}
Outgoing: uvicorn, app.py, data/storage/local.py --- {bound listening socket, running uvicorn.Server, FastAPI app}

Each server instance owns its storage root, its FastAPI app, its socket and
its uvicorn server; nothing is process-wide. uvicorn runs one asyncio task
per connection, which is the worker-per-request model.
"""

import socket
import threading
import time
from pathlib import Path
from typing import Optional, Union

import uvicorn

from app import create_app
from config.settings import Settings
from data.storage import LocalFileStorage
from monitoring import get_logger

logger = get_logger(__name__)

STARTUP_TIMEOUT_SECONDS = 10.0
# Extra time allowed for the serving thread to unwind after the grace period
STOP_JOIN_MARGIN_SECONDS = 5.0


class FileStreamingServer:
    """
    HTTP file-streaming server with an explicit start/stop lifecycle.

    The listening socket is bound in the constructor, so ``port`` is valid
    (including an OS-assigned one when ``port=0``) before ``start()``.

    Example:
        server = FileStreamingServer("/tmp/files", port=0)
        server.start()
        ...
        server.stop(grace=0)
    """

    def __init__(
        self,
        storage_dir: Union[str, Path],
        port: int = 0,
        host: str = "0.0.0.0",
        settings: Optional[Settings] = None
    ):
        """
        Create storage root and bind the listener.

        Args:
            storage_dir: Storage root, created if missing
            port: TCP port; 0 lets the OS pick one
            host: Interface to bind
            settings: Application settings (schema defaults when omitted)

        Raises:
            OSError: If the port cannot be bound
        """
        self.settings = settings or Settings()
        self.storage = LocalFileStorage(storage_dir, chunk_size=self.settings.storage.chunk_size)
        self.app = create_app(storage=self.storage, settings=self.settings)
        self.host = host

        self._socket = self._bind_socket(host, port)
        self._server = uvicorn.Server(uvicorn.Config(
            self.app,
            log_config=None,
            access_log=False,
            lifespan="on",
        ))
        self._thread: Optional[threading.Thread] = None

    @staticmethod
    def _bind_socket(host: str, port: int) -> socket.socket:
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family=family)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
            sock.listen(2048)
        except OSError:
            sock.close()
            raise
        return sock

    @property
    def port(self) -> int:
        """Port the listener is bound to."""
        return self._socket.getsockname()[1]

    @property
    def storage_directory(self) -> Path:
        return self.storage.base_dir

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """
        Serve in a background thread; returns once connections are accepted.

        Raises:
            RuntimeError: If already started or the server fails to come up
        """
        if self._thread is not None:
            raise RuntimeError("Server already started")

        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={"sockets": [self._socket]},
            name=f"file-streaming-server-{self.port}",
            daemon=True,
        )
        self._thread.start()

        deadline = time.monotonic() + STARTUP_TIMEOUT_SECONDS
        while not self._server.started:
            if not self._thread.is_alive():
                raise RuntimeError("HTTP streaming server failed to start")
            if time.monotonic() > deadline:
                raise RuntimeError("HTTP streaming server did not start in time")
            time.sleep(0.01)

        logger.info(f"HTTP streaming server started on http://localhost:{self.port}")
        logger.info(f"Storage directory: {self.storage.base_dir}")

    def run(self) -> None:
        """
        Serve in the calling thread until SIGINT/SIGTERM.

        Shutdown waits ``settings.server.shutdown_grace_seconds`` for
        in-flight requests before cancelling them.
        """
        self._server.config.timeout_graceful_shutdown = self.settings.server.shutdown_grace_seconds
        logger.info(f"HTTP streaming server listening on http://{self.host}:{self.port}")
        logger.info(f"Storage directory: {self.storage.base_dir}")
        self._server.run(sockets=[self._socket])

    def stop(self, grace: float = 0.0) -> None:
        """
        Stop accepting connections and shut down.

        In-flight requests get ``grace`` seconds to finish; whatever is
        still running after that is cancelled. ``grace=0`` cancels at once.
        """
        if grace < 0:
            raise ValueError("grace must be >= 0")

        if self._thread is None:
            self._socket.close()
            return

        self._server.config.timeout_graceful_shutdown = grace
        self._server.should_exit = True
        self._thread.join(grace + STOP_JOIN_MARGIN_SECONDS)

        if self._thread.is_alive():
            logger.warning("Server thread still running after shutdown; forcing exit")
            self._server.force_exit = True
            self._thread.join(STOP_JOIN_MARGIN_SECONDS)

        self._socket.close()
        logger.info("HTTP streaming server stopped")

    def __enter__(self) -> "FileStreamingServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop(self.settings.server.shutdown_grace_seconds)
