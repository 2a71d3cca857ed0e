"""
ProbeClient — one GET per candidate URL, reachability over correctness.

Uses requests with:
  - certificate verification off (recon, not trust decisions)
  - redirects off (a 3xx is itself a reachable response)
  - a fresh single-connection session per fetch, ``Connection: close``
  - no retries; a failed attempt is final

Any HTTP response, whatever its status, is returned. Only transport-level
failures raise ``TransportError``.

requests' timeout restarts on every socket read, so a server trickling
bytes could hold an attempt open forever. Each fetch therefore runs under
a ``Deadline``: a timer that shuts down the attempt's sockets once the
timeout has elapsed, wherever the attempt is blocked (connect, headers or
body). An attempt that outlives its deadline is a transport failure.
"""

from dataclasses import dataclass
import socket
import threading
import time

import requests
from requests.adapters import DEFAULT_POOLBLOCK, HTTPAdapter
import urllib3
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool
from urllib3.exceptions import HTTPError as Urllib3Error, InsecureRequestWarning
from urllib3.poolmanager import PoolManager

from probing.config import ProbeConfig
from probing.errors import TransportError

urllib3.disable_warnings(InsecureRequestWarning)

CHUNK_SIZE = 4 * 1024


@dataclass(frozen=True)
class ProbeResponse:
    url:    str
    status: int
    body:   bytes = b""


class Deadline:
    """Wall-clock bound for one attempt; shuts down watched connections on expiry."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        self.expired = False
        self._conns = []
        self._lock = threading.Lock()
        self._timer = threading.Timer(timeout, self._expire)
        self._timer.daemon = True

    def __enter__(self):
        self._timer.start()
        return self

    def __exit__(self, *exc_info):
        self._timer.cancel()

    def watch(self, conn):
        with self._lock:
            self._conns.append(conn)
            expired = self.expired
        if expired:
            _shutdown(conn)

    def check(self, url: str):
        if self.expired:
            raise TransportError(url, f"no complete response within {self.timeout * 1000:.0f} ms")

    def _expire(self):
        with self._lock:
            self.expired = True
            conns = list(self._conns)
        for conn in conns:
            _shutdown(conn)


def _shutdown(conn):
    sock = getattr(conn, "sock", None)
    if sock is None:
        return
    try:
        # plain socket shutdown, also under TLS: wakes any thread blocked in recv
        socket.socket.shutdown(sock, socket.SHUT_RDWR)
    except OSError:
        # already closed by the attempt itself
        return


# ── Connection plumbing: register every new connection with the deadline ─────

class _WatchedPoolMixin:
    deadline: Deadline | None = None

    def _new_conn(self):
        conn = super()._new_conn()
        if self.deadline is not None:
            self.deadline.watch(conn)
        return conn


class _WatchedHTTPPool(_WatchedPoolMixin, HTTPConnectionPool):
    pass


class _WatchedHTTPSPool(_WatchedPoolMixin, HTTPSConnectionPool):
    pass


class _WatchedPoolManager(PoolManager):
    def __init__(self, deadline: Deadline, **kwargs):
        super().__init__(**kwargs)
        self.deadline = deadline
        self.pool_classes_by_scheme = {"http": _WatchedHTTPPool, "https": _WatchedHTTPSPool}

    def _new_pool(self, scheme, host, port, request_context=None):
        pool = super()._new_pool(scheme, host, port, request_context)
        pool.deadline = self.deadline
        return pool


class DeadlineAdapter(HTTPAdapter):
    def __init__(self, deadline: Deadline, **kwargs):
        self.deadline = deadline
        super().__init__(**kwargs)

    def init_poolmanager(self, connections, maxsize, block=DEFAULT_POOLBLOCK, **pool_kwargs):
        self._pool_connections = connections
        self._pool_maxsize = maxsize
        self._pool_block = block
        self.poolmanager = _WatchedPoolManager(
            self.deadline,
            num_pools=connections,
            maxsize=maxsize,
            block=block,
            **pool_kwargs,
        )


def _make_session(user_agent: str, deadline: Deadline) -> requests.Session:
    session = requests.Session()
    adapter = DeadlineAdapter(deadline, max_retries=0, pool_connections=1, pool_maxsize=1)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({
        "User-Agent": user_agent,
        "Accept": "*/*",
        "Connection": "close",
    })
    return session


class ProbeClient:
    def __init__(self, config: ProbeConfig):
        self.config = config

    def fetch(self, url: str, read_body: bool = True) -> ProbeResponse:
        """GET ``url``; return status and (optionally) the full body."""
        with Deadline(self.config.timeout) as deadline, _make_session(self.config.user_agent, deadline) as session:
            try:
                resp = session.get(
                    url,
                    timeout=self.config.timeout,
                    allow_redirects=False,
                    verify=False,
                    stream=True,
                )
                with resp:
                    deadline.check(url)
                    body = self._read_body(resp, url, deadline) if read_body else b""
            except (requests.exceptions.RequestException, Urllib3Error) as exc:
                deadline.check(url)
                raise TransportError(url, exc) from exc

        return ProbeResponse(url=url, status=resp.status_code, body=body)

    def _read_body(self, resp: requests.Response, url: str, deadline: Deadline) -> bytes:
        chunks = []
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            chunks.append(chunk)
            deadline.check(url)
        # a shutdown socket can look like a clean end of a close-delimited body
        deadline.check(url)
        return b"".join(chunks)
