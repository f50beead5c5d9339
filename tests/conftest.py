"""Shared fixtures: a fake KVM listening on localhost."""

import socket
import socketserver
import threading

import pytest

from kvmctl.client import KVMClient
from kvmctl.config import DeviceConfig
from kvmctl.protocol import FRAME_LENGTH, PREAMBLE, RESPONSE_TOKEN, TERMINATOR


def reply(value: int) -> bytes:
    """Build the reply the KVM sends for a result byte."""
    return PREAMBLE + bytes([RESPONSE_TOKEN, value, TERMINATOR])


class FakeKVM:
    """Records every frame it receives and answers from a script.

    Each queued reply is used for one connection, in order. ``None`` closes
    the connection without answering. Once the script runs out the
    ``default`` reply is used.
    """

    def __init__(self):
        self.frames = []
        self.replies = []
        self.default = None
        self.host = "127.0.0.1"
        self.port = 0
        self._lock = threading.Lock()

    def queue(self, *replies):
        with self._lock:
            self.replies.extend(replies)

    def next_reply(self, frame: bytes):
        with self._lock:
            self.frames.append(frame)
            if self.replies:
                return self.replies.pop(0)
            return self.default


class _Handler(socketserver.BaseRequestHandler):
    def handle(self):
        frame = b""
        while len(frame) < FRAME_LENGTH:
            chunk = self.request.recv(FRAME_LENGTH - len(frame))
            if not chunk:
                break
            frame += chunk
        answer = self.server.kvm.next_reply(frame)
        if answer:
            self.request.sendall(answer)


@pytest.fixture
def fake_kvm():
    kvm = FakeKVM()
    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), _Handler)
    server.daemon_threads = True
    server.kvm = kvm
    kvm.port = server.server_address[1]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield kvm
    server.shutdown()
    server.server_close()


@pytest.fixture
def sleeps(monkeypatch):
    """Record the client's inter-command delays instead of sleeping.

    Only KVMClient._pause is replaced; time.sleep stays untouched for the
    fake server and everything else.
    """
    calls = []
    monkeypatch.setattr(KVMClient, "_pause", lambda self: calls.append(self.config.delay))
    return calls


@pytest.fixture
def config(fake_kvm):
    return DeviceConfig(host=fake_kvm.host, port=fake_kvm.port, timeout=2.0)


@pytest.fixture
def closed_port():
    """A localhost port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return port


@pytest.fixture
def make_reply():
    return reply
