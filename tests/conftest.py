import socket
import threading

import pytest

from staticserver.config import Config
from staticserver.server import ThreadedHTTPServer

INDEX = b"hello"
STYLE = b"body { color: red; }\n" * 50
BINARY = bytes(range(256)) * 8


@pytest.fixture
def site(tmp_path):
    """A served root plus a secret file next to it that must never be served."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX)
    (root / "style.css").write_bytes(STYLE)
    (root / "app.js").write_bytes(b"console.log('hi');")
    (root / "data.bin").write_bytes(BINARY)
    (root / "empty.txt").write_bytes(b"")
    (root / "about.html").write_bytes(b"<h1>about</h1>")
    (root / "noext").write_bytes(b"plain file without extension")
    docs = root / "docs"
    docs.mkdir()
    (docs / "index.html").write_bytes(b"<h1>docs</h1>")
    (docs / "guide.txt").write_bytes(b"read me")
    (root / "empty-dir").mkdir()
    (tmp_path / "secret.txt").write_bytes(b"top secret")
    return root


@pytest.fixture
def config(site):
    return Config(host="127.0.0.1", port=0, root=str(site), workers=2,
                  accept_timeout=0.1, recv_timeout=2.0)


@pytest.fixture
def live_server(config):
    server = ThreadedHTTPServer(config)
    thread = threading.Thread(target=server.run, name="test-server", daemon=True)
    thread.start()
    assert server.wait_ready(5), "server did not start"
    yield server
    server.stop()
    thread.join(5)


@pytest.fixture
def base_url(live_server):
    host, port = live_server.server_address
    return f"http://{host}:{port}"


def split_response(raw):
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    version, status, reason = lines[0].split(" ", 2)
    headers = {}
    for line in lines[1:]:
        k, v = line.split(":", 1)
        headers[k.strip()] = v.strip()
    return int(status), headers, body


@pytest.fixture
def raw_http(live_server):
    """Send raw bytes to the live server; returns (status, headers, body)."""

    def send(data, timeout=5):
        with socket.create_connection(live_server.server_address, timeout=timeout) as sock:
            sock.sendall(data)
            chunks = []
            while True:
                try:
                    chunk = sock.recv(65536)
                except ConnectionResetError:
                    break
                if not chunk:
                    break
                chunks.append(chunk)
        raw = b"".join(chunks)
        if not raw:
            return None
        return split_response(raw)

    return send


@pytest.fixture
def exchange():
    """Run one engine round trip over a socketpair; returns the raw reply."""

    def run(engine, data, shutdown=True, timeout=None):
        client, server_side = socket.socketpair()
        try:
            if timeout is not None:
                server_side.settimeout(timeout)
            client.sendall(data)
            if shutdown:
                client.shutdown(socket.SHUT_WR)
            engine.handle_connection(server_side)
            client.settimeout(5)
            chunks = []
            while True:
                try:
                    chunk = client.recv(65536)
                except ConnectionResetError:
                    break
                if not chunk:
                    break
                chunks.append(chunk)
            return b"".join(chunks)
        finally:
            client.close()
            server_side.close()

    return run


@pytest.fixture
def parse_reply():
    return split_response
