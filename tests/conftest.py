import pathlib
import socket
import sys
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

# Ensure project root is on sys.path so 'import probing' works when pytest runs
# from different working directories or when running individual tests.
_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from probing.client import ProbeResponse
from probing.errors import TransportError
import probing.reporter as reporter


class FakeClient:
    """Stands in for ProbeClient.

    ``responses`` maps URL -> body bytes (status 200) or (status, body).
    URLs not in the map are unreachable.
    """

    def __init__(self, responses=None, delay: float = 0.0):
        self.responses = responses or {}
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def fetch(self, url, read_body=True):
        with self._lock:
            self.calls.append((url, read_body))
        if self.delay:
            time.sleep(self.delay)
        if url not in self.responses:
            raise TransportError(url, "connection refused")
        entry = self.responses[url]
        status, body = entry if isinstance(entry, tuple) else (200, entry)
        return ProbeResponse(url=url, status=status, body=body if read_body else b"")

    @property
    def urls(self):
        return [url for url, _ in self.calls]


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture(autouse=True)
def _reset_reporter():
    yield
    reporter.configure()


# ── Local HTTP server ─────────────────────────────────────────────────────────

class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        route = self.server.routes.get(self.path, {"status": 404, "body": b"not found"})
        if route.get("delay"):
            time.sleep(route["delay"])

        body = route.get("body", b"")
        self.send_response(route.get("status", 200))
        for name, value in route.get("headers", {}).items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()

        drip = route.get("drip")
        if drip:
            for i in range(0, len(body), drip["size"]):
                self.wfile.write(body[i:i + drip["size"]])
                self.wfile.flush()
                time.sleep(drip["interval"])
        else:
            self.wfile.write(body)

    def log_message(self, format, *args):
        pass


class _QuietServer(ThreadingHTTPServer):
    daemon_threads = True

    def handle_error(self, request, client_address):
        # clients in these tests hang up on purpose (timeouts, TLS probes)
        pass


@pytest.fixture
def http_server():
    server = _QuietServer(("127.0.0.1", 0), _Handler)
    server.routes = {}
    server.host = f"127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def closed_port():
    """A local port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


# ── Raw TCP server for responses that arrive too slowly ──────────────────────

class TrickleServer:
    """Answers every request by sending ``script`` pieces, ``interval`` seconds apart."""

    def __init__(self):
        self.script = []
        self.interval = 0.2
        self._stop = threading.Event()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(16)
        self._sock.settimeout(0.1)
        self.host = f"127.0.0.1:{self._sock.getsockname()[1]}"
        self._thread = threading.Thread(target=self._accept, daemon=True)

    def start(self):
        self._thread.start()

    def stop(self):
        self._stop.set()
        self._thread.join(2)
        self._sock.close()

    def _accept(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            threading.Thread(target=self._serve, args=(conn,), daemon=True).start()

    def _serve(self, conn):
        with conn:
            try:
                conn.settimeout(5)
                conn.recv(65536)
                for piece in self.script:
                    if self._stop.is_set():
                        return
                    conn.sendall(piece)
                    time.sleep(self.interval)
            except OSError:
                # the client hung up, which is what these tests expect
                return


@pytest.fixture
def trickle_server():
    server = TrickleServer()
    server.start()
    try:
        yield server
    finally:
        server.stop()


def header_trickle(lines=20):
    return [b"HTTP/1.1 200 OK\r\n"] + [b"X-Pad-%d: x\r\n" % i for i in range(lines)] + [b"Content-Length: 0\r\n\r\n"]


def body_trickle(size=20, content_length=True):
    head = b"HTTP/1.1 200 OK\r\nConnection: close\r\n"
    if content_length:
        head += b"Content-Length: %d\r\n" % size
    return [head + b"\r\n"] + [b"x"] * size


@pytest.fixture
def trickle():
    return {"headers": header_trickle, "body": body_trickle}
