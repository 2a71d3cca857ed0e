"""
GatedSpawnScheduler — one task per host, admitted through N permits.

A permit is taken before each submit and handed back when the probe
finishes, so the executor never holds more than N hosts. When no permit is
free, ``acquire`` blocks the reader. That is the backpressure.
"""

from concurrent.futures import Future, ThreadPoolExecutor
import threading
from typing import Iterator

from probing.base_scheduler import BaseScheduler


class GatedSpawnScheduler(BaseScheduler):
    name = "gated-spawn"
    description = "Task per host behind a counting admission gate"

    def _dispatch(self, hosts: Iterator[str]) -> None:
        gate = threading.BoundedSemaphore(self.config.concurrency)

        def done(future: Future):
            gate.release()
            exc = future.exception()
            if exc is not None:
                self._fail(exc)

        with ThreadPoolExecutor(max_workers=self.config.concurrency, thread_name_prefix="probe") as pool:
            for host in hosts:
                gate.acquire()
                pool.submit(self._process, host).add_done_callback(done)
