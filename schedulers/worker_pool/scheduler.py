"""
WorkerPoolScheduler — N long-lived workers pulling hosts from a bounded queue.

The queue holds at most N hosts; when every worker is busy and the queue is
full, ``put`` blocks the reader. That is the backpressure.
"""

import queue
import threading
from typing import Iterator

from probing.base_scheduler import BaseScheduler

_STOP = object()


class WorkerPoolScheduler(BaseScheduler):
    name = "worker-pool"
    description = "Fixed pool of workers draining a bounded queue"

    def _dispatch(self, hosts: Iterator[str]) -> None:
        jobs: queue.Queue = queue.Queue(maxsize=self.config.concurrency)
        workers = [
            threading.Thread(target=self._work, args=(jobs,), name=f"probe-{i}", daemon=True)
            for i in range(self.config.concurrency)
        ]
        for worker in workers:
            worker.start()

        try:
            for host in hosts:
                jobs.put(host)
        except KeyboardInterrupt:
            # interrupted; workers discard whatever is still queued
            self._failed.set()
            raise
        finally:
            for _ in workers:
                jobs.put(_STOP)
            for worker in workers:
                worker.join()

    def _work(self, jobs: queue.Queue):
        while True:
            host = jobs.get()
            if host is _STOP:
                return
            if self.aborted:
                # keep draining so the reader never blocks on a dead pool
                continue
            try:
                self._process(host)
            except Exception as exc:
                self._fail(exc)
