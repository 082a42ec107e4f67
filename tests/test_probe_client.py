import socket
import threading

import pytest

from netcheck.core.config import Site
from netcheck.probe.probe_client import ProbeClient

LOCAL = Site("127.0.0.1", "eu-west", "dublin")


def remote():
    return Site("127.0.0.1", "us-east", "virginia")


def scripted_clock(rtts_us, base=1_700_000_000_000_000_000):
    """Alternate send/receive readings so each exchange sees the given RTT."""
    readings = []
    for i, rtt in enumerate(rtts_us):
        sent = base + i * 1_000_000_000
        readings += [sent, sent + rtt * 1000]
    it = iter(readings)
    return lambda: next(it)


@pytest.fixture
def silent_peer():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    yield sock.getsockname()[1]
    sock.close()


@pytest.fixture
def garbage_peer(request):
    reply = getattr(request, "param", b"garbage")
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(5.0)

    def serve():
        try:
            _, addr = sock.recvfrom(9000)
            sock.sendto(reply, addr)
        except OSError:
            pass

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield sock.getsockname()[1]
    thread.join(timeout=5)
    sock.close()


def test_full_round_against_responder(echo_responder):
    sleeps = []
    probe = ProbeClient(LOCAL, remote(), echo_responder.address[1],
                        interval=1.0, timeout=2.0, sleep=sleeps.append)

    window = probe.run()

    assert window is not None
    assert window.complete
    assert window.count == 10
    assert window.jitter >= 0
    assert window.average >= 0
    # One pause between consecutive samples
    assert sleeps == [1.0] * 9


def test_rtts_are_measured_on_the_local_clock(echo_responder):
    rtts = [100, 200, 150, 300, 120, 110, 180, 90, 250, 200]
    probe = ProbeClient(LOCAL, remote(), echo_responder.address[1],
                        timeout=2.0, clock=scripted_clock(rtts), sleep=lambda s: None)

    window = probe.run()

    assert window.average == 170
    assert window.jitter == 210


def test_timeout_aborts_round(silent_peer):
    sleeps = []
    probe = ProbeClient(LOCAL, remote(), silent_peer,
                        timeout=0.2, sleep=sleeps.append)

    assert probe.run() is None
    # Remaining samples are abandoned
    assert sleeps == []


@pytest.mark.parametrize("garbage_peer", [b"garbage", b"9" * 5000], indirect=True)
def test_malformed_echo_aborts_round(garbage_peer):
    probe = ProbeClient(LOCAL, remote(), garbage_peer,
                        timeout=2.0, sleep=lambda s: None)

    assert probe.run() is None


def test_resolution_failure(monkeypatch):
    def fail(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(socket, "getaddrinfo", fail)
    probe = ProbeClient(LOCAL, Site("nowhere.invalid", "xx", "nowhere"), 5555,
                        timeout=0.2, sleep=lambda s: None)

    assert probe.run() is None


def test_socket_closed_on_every_exit(monkeypatch, silent_peer, echo_responder):
    opened = []
    real_socket = socket.socket

    class TrackingSocket(real_socket):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            opened.append(self)

    monkeypatch.setattr(socket, "socket", TrackingSocket)

    ProbeClient(LOCAL, remote(), silent_peer, timeout=0.2, sleep=lambda s: None).run()
    ProbeClient(LOCAL, remote(), echo_responder.address[1], timeout=2.0,
                sleep=lambda s: None).run()

    assert len(opened) == 2
    assert all(sock.fileno() == -1 for sock in opened)


@pytest.mark.parametrize("address", ["::1", "127.0.0.1"])
def test_wildcard_responder_answers_both_families(ipv6_loopback, wildcard_responder, address):
    probe = ProbeClient(LOCAL, Site(address, "us-east", "virginia"),
                        wildcard_responder.address[1], timeout=2.0, sleep=lambda s: None)

    window = probe.run()

    assert window is not None
    assert window.complete
