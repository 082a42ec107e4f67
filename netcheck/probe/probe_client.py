"""
Probe client for NetCheck.
Runs one measurement round against a remote site's echo responder.
"""

import logging
import socket
import time
from typing import Callable, Optional

from ..core.config import Site
from ..protocol import (
    RECV_BUFFER_SIZE,
    ProtocolError,
    Sample,
    decode_timestamp,
    encode_timestamp,
)
from .window import WINDOW_SIZE, MeasurementWindow

SAMPLE_INTERVAL = 1.0
SAMPLE_TIMEOUT = 10.0


class RoundAborted(Exception):
    """The current round cannot produce a full window."""


class ProbeClient:
    """Measures RTT to one remote site over a single connected UDP socket.

    Samples are taken strictly one after another. The first sample that
    goes unanswered within ``timeout`` seconds aborts the whole round.
    """

    def __init__(self, local_site: Site, remote_site: Site, port: int,
                 samples: int = WINDOW_SIZE,
                 interval: float = SAMPLE_INTERVAL,
                 timeout: float = SAMPLE_TIMEOUT,
                 clock: Callable[[], int] = time.time_ns,
                 sleep: Callable[[float], None] = time.sleep):
        self.local_site = local_site
        self.remote_site = remote_site
        self.port = port
        self.samples = samples
        self.interval = interval
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self.logger = logging.getLogger(__name__)

    def run(self) -> Optional[MeasurementWindow]:
        """Run one round. Returns the full window, or None if it was aborted."""
        site = self.remote_site
        self.logger.debug(f"[{site}] Checking {site.address}")

        try:
            sock = self._connect()
        except OSError as e:
            self.logger.debug(f"[{site}] Failed to reach {site.address}:{self.port}: {e}")
            return None

        window = MeasurementWindow(self.samples)
        with sock:
            try:
                for i in range(self.samples):
                    sample = self._exchange(sock)
                    window.add(sample.rtt_us)
                    if i < self.samples - 1:
                        self._sleep(self.interval)
            except RoundAborted as e:
                self.logger.debug(f"[{site}] Round aborted after {window.count} samples: {e}")
                return None

        return window

    def _connect(self) -> socket.socket:
        """Resolve the remote site and open a connected UDP socket."""
        infos = socket.getaddrinfo(self.remote_site.address, self.port,
                                   type=socket.SOCK_DGRAM)
        if not infos:
            raise OSError(f"no address for {self.remote_site.address}")

        family, socktype, proto, _, sockaddr = infos[0]
        sock = socket.socket(family, socktype, proto)
        try:
            sock.connect(sockaddr)
        except OSError:
            sock.close()
            raise
        sock.settimeout(self.timeout)
        return sock

    def _exchange(self, sock: socket.socket) -> Sample:
        """Send one timestamp and wait for its echo."""
        site = self.remote_site
        try:
            sock.send(encode_timestamp(self._clock()))
            # A late echo lands on a socket that is closed once the round aborts
            payload = sock.recv(RECV_BUFFER_SIZE)
        except socket.timeout:
            raise RoundAborted(f"no response within {self.timeout}s")
        except OSError as e:
            raise RoundAborted(f"socket error: {e}")
        received = self._clock()

        try:
            sent = decode_timestamp(payload)
        except ProtocolError as e:
            raise RoundAborted(str(e))

        self.logger.debug(f"[{site}] Got response from {site.address}")
        return Sample(sent_ns=sent, received_ns=received)
