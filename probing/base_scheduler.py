"""
BaseScheduler — bounded admission control for probes drawn from a stream.

Every scheduler must:
    - never run more than ``config.concurrency`` probes at once
    - keep reading input while a slot is free, and block reading only
      when all slots are busy
    - dispatch hosts in arrival order (completion order is free)
    - wait for every dispatched probe before ``run()`` returns

Subclasses implement ``_dispatch(hosts)``: feed every host to
``_process`` under the concurrency cap, and return only when all of them
have finished.

A fatal error inside a probe (e.g. the output stream is gone) stops
dispatching new hosts; it is re-raised from ``run()`` once in-flight
probes have drained.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import threading
import time
from typing import Iterable, Iterator

from probing.config import ProbeConfig
from probing.prober import HostProber
from probing.reporter import ResultSink


@dataclass(frozen=True)
class RunSummary:
    scheduler:  str
    dispatched: int
    emitted:    int
    elapsed:    float

    @property
    def dropped(self) -> int:
        return self.dispatched - self.emitted


class BaseScheduler(ABC):
    name: str = "UnnamedScheduler"
    description: str = ""

    def __init__(self, config: ProbeConfig, prober: HostProber | None = None, sink: ResultSink | None = None):
        self.config = config
        self.prober = prober or HostProber(config)
        self.sink = sink or ResultSink()
        self._dispatched = 0
        self._failure: BaseException | None = None
        self._failed = threading.Event()
        self._failure_lock = threading.Lock()

    @abstractmethod
    def _dispatch(self, hosts: Iterator[str]) -> None:
        ...

    def run(self, lines: Iterable[str]) -> RunSummary:
        """Probe every host in ``lines``; return once all probes are done."""
        started = time.monotonic()
        emitted_before = self.sink.emitted
        self._dispatched = 0
        self._failure = None
        self._failed.clear()

        self._dispatch(self._clean(lines))

        if self._failure is not None:
            raise self._failure

        return RunSummary(
            scheduler=self.name,
            dispatched=self._dispatched,
            emitted=self.sink.emitted - emitted_before,
            elapsed=time.monotonic() - started,
        )

    # ── Shared helpers ────────────────────────────────────────────────────────

    @property
    def aborted(self) -> bool:
        return self._failed.is_set()

    def _clean(self, lines: Iterable[str]) -> Iterator[str]:
        for line in lines:
            if self.aborted:
                return
            host = line.strip()
            if host:
                self._dispatched += 1
                yield host

    def _process(self, host: str):
        result = self.prober.run(host)
        if result is not None:
            self.sink.emit(result)

    def _fail(self, exc: BaseException):
        with self._failure_lock:
            if self._failure is None:
                self._failure = exc
        self._failed.set()
