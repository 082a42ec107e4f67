"""
Echo responder for NetCheck.
Mirrors every received datagram back to its sender so that peers can time
the round trip.
"""

import logging
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple

from ..protocol import RECV_BUFFER_SIZE


class EchoResponder:
    """Passive UDP reflector. Holds no per-client state.

    With an empty ``host`` it listens on every IPv4 and IPv6 address. At most
    ``backlog`` datagrams wait for a worker; anything beyond that is dropped.
    """

    # How often the receive loop checks for stop()
    POLL_INTERVAL = 0.5

    def __init__(self, port: int, host: str = "", workers: int = 8, backlog: int = 256):
        if backlog < workers:
            raise ValueError(f"Backlog ({backlog}) must be at least workers ({workers})")
        self.port = port
        self.host = host
        self.logger = logging.getLogger(__name__)

        self._running = False
        self._sock: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._pool: Optional[ThreadPoolExecutor] = None
        self._workers = workers
        self._slots = threading.BoundedSemaphore(backlog)
        self.dropped = 0

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """Bound (host, port), or None before start()."""
        if self._sock is None:
            return None
        return self._sock.getsockname()[:2]

    def start(self) -> None:
        """Bind the socket and start serving.

        Raises OSError if the port cannot be bound.
        """
        if self._running:
            self.logger.warning("Echo responder already running")
            return

        try:
            sock = self._bind()
        except OSError as e:
            self.logger.error(f"Error listening on UDP port {self.port}: {e}")
            raise

        sock.settimeout(self.POLL_INTERVAL)
        self._sock = sock
        self._pool = ThreadPoolExecutor(max_workers=self._workers,
                                        thread_name_prefix="echo")
        self._running = True
        self._thread = threading.Thread(target=self._run, name="echo-responder", daemon=True)
        self._thread.start()

        host, port = self.address
        self.logger.info(f"Echo responder listening on [{host}]:{port}")

    def _bind(self) -> socket.socket:
        """Open the listening socket, dual-stack when no host is given."""
        if not self.host and socket.has_ipv6:
            try:
                sock = socket.socket(socket.AF_INET6, socket.SOCK_DGRAM)
            except OSError as e:
                self.logger.warning(f"IPv6 unavailable, listening on IPv4 only: {e}")
            else:
                try:
                    sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
                    sock.bind(("::", self.port))
                except OSError:
                    sock.close()
                    raise
                return sock

        family, socktype, proto, _, sockaddr = socket.getaddrinfo(
            self.host or None, self.port, type=socket.SOCK_DGRAM, flags=socket.AI_PASSIVE
        )[0]
        sock = socket.socket(family, socktype, proto)
        try:
            sock.bind(sockaddr)
        except OSError:
            sock.close()
            raise
        return sock

    def stop(self) -> None:
        """Stop serving and release the socket."""
        self._running = False

        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

        if self._pool:
            self._pool.shutdown(wait=True)
            self._pool = None

        if self._sock:
            self._sock.close()
            self._sock = None

        self.logger.info("Echo responder stopped")

    def _run(self) -> None:
        """Main receive loop."""
        sock = self._sock
        while self._running:
            try:
                data, addr = sock.recvfrom(RECV_BUFFER_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break
                self.logger.info(f"Error reading datagram: {e}")
                continue

            if not self._running:
                break

            if not self._slots.acquire(blocking=False):
                self.dropped += 1
                self.logger.debug(f"Backlog full, dropping datagram from {addr[0]}:{addr[1]}")
                continue

            try:
                self._pool.submit(self._handle, sock, addr, data)
            except RuntimeError:
                # Pool shut down underneath us
                self._slots.release()
                break

    def _handle(self, sock: socket.socket, addr: Tuple, data: bytes) -> None:
        try:
            self._serve(sock, addr, data)
        finally:
            self._slots.release()

    def _serve(self, sock: socket.socket, addr: Tuple, data: bytes) -> None:
        """Send one datagram back to where it came from."""
        self.logger.debug(f"Echo to {addr[0]}:{addr[1]}: {data[:64]!r}")
        try:
            sock.sendto(data, addr)
        except OSError as e:
            self.logger.info(f"Error echoing to {addr[0]}:{addr[1]}: {e}")
