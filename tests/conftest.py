import logging
import socket
import sys
from pathlib import Path

import pytest

# Ensure the package is importable without installation
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from netcheck.core.config import Config, InfluxDBConfig, LoggingConfig, Site  # noqa: E402
from netcheck.responder.echo_responder import EchoResponder  # noqa: E402


LOCAL = Site(address="127.0.0.1", region="eu-west", site="dublin")
REMOTE_A = Site(address="127.0.0.1", region="us-east", site="virginia")
REMOTE_B = Site(address="127.0.0.1", region="ap-northeast", site="tokyo")


@pytest.fixture
def local_site():
    return LOCAL


@pytest.fixture
def remote_sites():
    return (REMOTE_A, REMOTE_B)


@pytest.fixture
def make_config():
    def _make(remote_sites=(REMOTE_A, REMOTE_B), port=5555, period=60, parallel=False):
        return Config(
            period=period,
            port=port,
            local_site=LOCAL,
            remote_sites=tuple(remote_sites),
            influxdb=InfluxDBConfig(
                url="http://localhost:8086",
                bucket="netcheck",
                organization="netcheck",
                token="token"
            ),
            logging=LoggingConfig(),
            parallel_checks=parallel
        )
    return _make


@pytest.fixture
def echo_responder():
    responder = EchoResponder(port=0, host="127.0.0.1")
    responder.start()
    yield responder
    responder.stop()


@pytest.fixture
def ipv6_loopback():
    if not socket.has_ipv6:
        pytest.skip("IPv6 not supported")
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_DGRAM) as sock:
            sock.bind(("::1", 0))
    except OSError as e:
        pytest.skip(f"IPv6 loopback unavailable: {e}")


@pytest.fixture
def wildcard_responder():
    responder = EchoResponder(port=0)
    responder.start()
    yield responder
    responder.stop()


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
