import logging
import socket
import threading
from typing import Optional, Tuple

from .config import Config
from .encoder import ResponseEncoder
from .engine import HTTPEngine
from .errors import BindFailure
from .handler import FileHandler
from .pool import WorkerPool, close_quietly

logger = logging.getLogger(__name__)


class ThreadedHTTPServer:
    """Accepts connections and hands each one to the worker pool.

    The accept loop runs in the thread that calls run(); stop() may be called
    from any other thread.
    """

    ACCEPT_BACKOFF = 0.1

    def __init__(self, config: Config) -> None:
        self.config = config
        self.server_address: Optional[Tuple[str, int]] = None
        self._sock: Optional[socket.socket] = None
        self._pool: Optional[WorkerPool] = None
        self._stopping = threading.Event()
        self._ready = threading.Event()

    def run(self) -> None:
        self._stopping.clear()
        self._sock = self._listen()

        encoder = ResponseEncoder(self.config.content_types, self.config.compress_level)
        engine = HTTPEngine(self.config, FileHandler(self.config, encoder), encoder)
        self._pool = WorkerPool(self.config, engine)
        self._pool.start()

        host, port = self.server_address
        logger.info("Listening on %s:%d, serving %s", host, port, self.config.root)
        self._ready.set()
        try:
            self._serve()
        finally:
            self._shutdown()

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def stop(self) -> None:
        self._stopping.set()
        # wakes accept() up right away
        if self._sock is not None:
            close_quietly(self._sock)

    def _listen(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            raise BindFailure(f"cannot listen on {self.config.host}:{self.config.port}: {e}") from e
        sock.settimeout(self.config.accept_timeout)
        self.server_address = sock.getsockname()[:2]
        return sock

    def _serve(self) -> None:
        while not self._stopping.is_set():
            try:
                conn, addr = self._sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._stopping.is_set() or self._sock.fileno() == -1:
                    break
                logger.error("Accept failed: %s", e)
                # e.g. EMFILE: give the workers a moment to free descriptors
                self._stopping.wait(self.ACCEPT_BACKOFF)
                continue
            self._dispatch(conn, addr)

    def _dispatch(self, conn: socket.socket, addr: Tuple[str, int]) -> None:
        try:
            conn.settimeout(self.config.recv_timeout)
            conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError as e:
            logger.warning("Dropping connection from %s:%s: %s", addr[0], addr[1], e)
            close_quietly(conn)
            return
        try:
            self._pool.submit(conn, addr)
        except Exception:
            logger.exception("Could not dispatch connection from %s:%s", addr[0], addr[1])
            close_quietly(conn)

    def _shutdown(self) -> None:
        if self._sock is not None:
            close_quietly(self._sock)
        if self._pool is not None:
            self._pool.stop()
        self._sock = None
        self._pool = None
        self._ready.clear()
        logger.info("Server stopped")
