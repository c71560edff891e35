from __future__ import annotations

import logging
import queue
import socket
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import Config
from .engine import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Job:
    conn: socket.socket
    addr: Tuple[str, int]

    @property
    def peer(self) -> str:
        return f"{self.addr[0]}:{self.addr[1]}"


def close_quietly(conn: socket.socket) -> None:
    try:
        conn.close()
    except OSError:
        pass


class WorkerPool:
    """A fixed number of threads draining a bounded queue of connections.

    Each job is handed to the engine on its own; whatever happens inside one
    job, the worker closes the connection and moves on to the next one.
    """

    POLL_INTERVAL = 0.2

    def __init__(self, config: Config, engine: Engine) -> None:
        self.config = config
        self.engine = engine
        self._jobs: queue.Queue[Job] = queue.Queue(maxsize=config.queue_size or 0)
        self._workers: list[threading.Thread] = []
        self._shutdown = threading.Event()
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return bool(self._workers) and not self._shutdown.is_set()

    def start(self) -> None:
        with self._lock:
            if self._workers:
                return
            self._shutdown.clear()
            for n in range(self.config.workers):
                worker = threading.Thread(target=self._work, name=f"worker-{n}", daemon=True)
                worker.start()
                self._workers.append(worker)
        logger.debug("Started %d workers", self.config.workers)

    def submit(self, conn: socket.socket, addr: Tuple[str, int]) -> None:
        job = Job(conn, addr)
        if self._shutdown.is_set():
            close_quietly(conn)
            return
        try:
            self._jobs.put_nowait(job)
        except queue.Full:
            logger.warning("Worker queue full; dropping connection from %s", job.peer)
            close_quietly(conn)
            return
        logger.debug("Queued connection from %s", job.peer)

    def stop(self) -> None:
        self._shutdown.set()
        with self._lock:
            workers, self._workers = self._workers, []
        for worker in workers:
            worker.join(timeout=5)

        # connections nobody picked up
        while True:
            job = self._next(block=False)
            if job is None:
                break
            close_quietly(job.conn)
        logger.debug("Worker pool stopped")

    def _next(self, block: bool = True) -> Optional[Job]:
        try:
            job = self._jobs.get(block=block, timeout=self.POLL_INTERVAL if block else None)
        except queue.Empty:
            return None
        self._jobs.task_done()
        return job

    def _work(self) -> None:
        while not self._shutdown.is_set():
            job = self._next()
            if job is not None:
                self._run(job)

    def _run(self, job: Job) -> None:
        logger.debug("Handling connection from %s", job.peer)
        try:
            self.engine.handle_connection(job.conn)
        except (socket.timeout, TimeoutError):
            logger.warning("Connection from %s timed out", job.peer)
        except Exception:
            logger.exception("Unhandled exception while serving %s", job.peer)
        finally:
            close_quietly(job.conn)
