import logging
import queue
import socket
import threading
from typing import List, Optional, Tuple

from .config import Config, SiteConfig
from .engine import HTTPEngine
from .handler import FileHandler

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.2


class ThreadedHTTPServer:
    """
    Serves one site from a listen socket.

    The thread calling run() accepts connections and queues them; a fixed set
    of worker threads takes them off the queue and answers them through the
    HTTPEngine. stop() may be called from any thread or a signal handler.
    """

    def __init__(self, config: Config, site_config: SiteConfig) -> None:
        self.config = config
        self.site_config = site_config
        self.engine = HTTPEngine(config, FileHandler(site_config))

        self.server_address: Optional[Tuple[str, int]] = None
        self.ready = threading.Event()

        self._sock: Optional[socket.socket] = None
        self._stopping = threading.Event()
        self._queue: "queue.Queue[Tuple[socket.socket, tuple]]" = queue.Queue(maxsize=config.queue_size)
        self._workers: List[threading.Thread] = []

    def run(self) -> None:
        self._stopping.clear()
        self._sock = socket.create_server((self.config.host, self.config.port), backlog=self.config.backlog)
        self._sock.settimeout(self.config.accept_timeout)
        self.server_address = self._sock.getsockname()[:2]

        for i in range(self.config.workers):
            worker = threading.Thread(target=self._work, name=f"worker-{i}", daemon=True)
            worker.start()
            self._workers.append(worker)

        logger.info("Serving '%s' on %s:%d", self.site_config.site, *self.server_address)
        self.ready.set()
        try:
            self._accept_until_stopped()
        finally:
            self._shutdown()

    def stop(self) -> None:
        self._stopping.set()
        sock = self._sock
        if sock is not None:
            sock.close()

    def submit(self, conn: socket.socket, addr) -> bool:
        """Queue an accepted connection; it is closed right away if it cannot be queued."""
        if self._stopping.is_set():
            conn.close()
            return False
        try:
            self._queue.put_nowait((conn, addr))
        except queue.Full:
            logger.warning("Worker queue full; dropping connection from %s", addr)
            conn.close()
            return False
        return True

    def _accept_until_stopped(self) -> None:
        while not self._stopping.is_set():
            try:
                conn, addr = self._sock.accept()
            except TimeoutError:
                continue
            except OSError:
                break
            conn.settimeout(self.config.recv_timeout)
            self.submit(conn, addr)

    def _work(self) -> None:
        while not self._stopping.is_set():
            try:
                conn, addr = self._queue.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            logger.debug("Handling connection from %s", addr)
            try:
                self.engine.handle_connection(conn)
            except Exception:
                logger.exception("Unhandled exception in worker thread")

    def _shutdown(self) -> None:
        self._stopping.set()
        if self._sock is not None:
            self._sock.close()
            self._sock = None

        for worker in self._workers:
            worker.join(timeout=5)
        self._workers.clear()

        while True:
            try:
                conn, _ = self._queue.get_nowait()
            except queue.Empty:
                break
            conn.close()

        self.ready.clear()
        logger.info("Server stopped")
