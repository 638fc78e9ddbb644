# detection_worker.py

import logging
import threading
import queue
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

LOAD = "load"
DETECT = "detect"


@dataclass
class WorkerJob:
    kind: str
    generation: int
    fn: Callable[..., Any]
    args: tuple = ()


@dataclass
class WorkerResult:
    kind: str
    generation: int
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_job(job: WorkerJob) -> WorkerResult:
    try:
        return WorkerResult(job.kind, job.generation, value=job.fn(*job.args))
    except Exception as e:
        logger.warning(f"Worker: {job.kind} job (generation {job.generation}) failed: {e}")
        return WorkerResult(job.kind, job.generation, error=e)


class DetectionWorker(threading.Thread):
    """Runs model loading and inference off the UI thread.

    Results are only read back through ``poll()``, which the render loop calls
    from its own tick, so nothing the worker does touches tracker state.
    """

    def __init__(self, job_queue: Optional[queue.Queue] = None,
                 stop_event: Optional[threading.Event] = None):
        super().__init__(daemon=True)
        self._queue = job_queue or queue.Queue(maxsize=4)
        self._results: queue.Queue = queue.Queue()
        self._stop_event = stop_event or threading.Event()
        self._running = True

    def submit(self, job: WorkerJob) -> bool:
        try:
            self._queue.put_nowait(job)
            return True
        except queue.Full:
            logger.debug(f"DetectionWorker: queue full, dropped {job.kind} job")
            return False

    def poll(self) -> List[WorkerResult]:
        results = []
        while True:
            try:
                results.append(self._results.get_nowait())
            except queue.Empty:
                return results

    def run(self):
        while self._running and not self._stop_event.is_set():
            try:
                job = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue

            if job is None:
                self._queue.task_done()
                break

            try:
                self._results.put(run_job(job))
            finally:
                self._queue.task_done()

    def stop(self):
        self._running = False
        self._stop_event.set()
        try:
            self._queue.put_nowait(None)
        except queue.Full:
            pass


class InlineWorker:
    """Same interface as DetectionWorker, but runs each job inside submit()."""

    def __init__(self):
        self._results: List[WorkerResult] = []

    def start(self):
        pass

    def submit(self, job: WorkerJob) -> bool:
        self._results.append(run_job(job))
        return True

    def poll(self) -> List[WorkerResult]:
        results, self._results = self._results, []
        return results

    def stop(self):
        pass
