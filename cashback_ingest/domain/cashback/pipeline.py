"""
Bounded producer/consumer pipeline that writes cashback records to Postgres.

The caller's thread is the single producer: it submits one ``IngestJob`` per
accepted record onto a bounded queue, so a slow writer pool throttles reading
of the upload. A fixed pool of writer threads drains the queue; each job
borrows one pooled connection for a single insert and returns it right away.

Every submitted job is signalled on the ``CompletionTracker`` exactly once,
whether it was inserted, failed, or cancelled because the request deadline
passed. Failed inserts are logged and never retried.
"""
import logging
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cashback_ingest.domain.cashback.record import IngestJob
from cashback_ingest.domain.cashback.schema import build_insert_statement
from cashback_ingest.domain.cashback.tracker import CompletionTracker

logger = logging.getLogger(__name__)

_STOP = object()
_POLL_SECONDS = 0.1


@dataclass
class PipelineResult:
    jobs_submitted: int = 0
    inserted: int = 0
    failed: int = 0
    cancelled: int = 0
    signalled: int = 0
    timed_out: bool = False


class IngestionPipeline:
    """
    Writer pool for one upload request.

    The destination schema is fixed per instance, so concurrent requests each
    build their own pipeline and never share a target.
    """

    def __init__(
        self,
        engine: Engine,
        schema_name: str,
        *,
        worker_count: int,
        queue_size: int,
        progress_every: int = 100,
        timeout_seconds: Optional[float] = None,
    ):
        if worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")

        self.engine = engine
        self.schema_name = schema_name
        self.worker_count = worker_count
        self.progress_every = progress_every
        self.timeout_seconds = timeout_seconds

        self._statement = build_insert_statement(schema_name)
        self._jobs: "queue.Queue" = queue.Queue(maxsize=queue_size)
        self._tracker = CompletionTracker()
        self._cancelled = threading.Event()
        self._counter_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._deadline: Optional[float] = None
        self._result = PipelineResult()

    @property
    def tracker(self) -> CompletionTracker:
        return self._tracker

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run(self, jobs: Iterable[IngestJob]) -> PipelineResult:
        """Submit every job, then block until all of them have been attempted."""
        self.start()
        try:
            for job in jobs:
                if not self.submit(job):
                    break
        finally:
            self.close()
            self.wait()
        return self.result()

    def start(self) -> None:
        if self._executor is not None:
            raise RuntimeError("Pipeline already started")
        if self.timeout_seconds:
            self._deadline = time.monotonic() + self.timeout_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=self.worker_count,
            thread_name_prefix="cashback-writer",
        )
        for worker_index in range(self.worker_count):
            self._executor.submit(self._worker_loop, worker_index)
        logger.info(
            "Started %d writers for %s (queue size %d)",
            self.worker_count,
            self.schema_name,
            self._jobs.maxsize,
        )

    def submit(self, job: IngestJob) -> bool:
        """
        Queue one job, blocking while the queue is full.

        Returns False once the pipeline is cancelled; the producer should stop.
        """
        if self._check_deadline():
            return False

        # Count before enqueueing so the tracker can never under-report.
        self._tracker.add()
        with self._counter_lock:
            self._result.jobs_submitted += 1

        while True:
            try:
                self._jobs.put(job, timeout=_POLL_SECONDS)
                return True
            except queue.Full:
                if self._check_deadline():
                    self._count("cancelled")
                    self._tracker.done()
                    return False

    def close(self) -> None:
        """Tell every writer to exit once the queue is drained."""
        for _ in range(self.worker_count):
            self._jobs.put(_STOP)

    def wait(self) -> bool:
        """
        Block until every submitted job has been attempted.

        If the deadline passes first the pipeline is cancelled: queued jobs are
        drained without touching the database, and only inserts already in
        flight are waited for. Returns False when that happened.
        """
        remaining = None
        if self._deadline is not None:
            remaining = max(self._deadline - time.monotonic(), 0)

        completed = self._tracker.wait(timeout=remaining)
        if not completed:
            logger.warning(
                "Deadline of %ss passed with %d jobs outstanding; cancelling",
                self.timeout_seconds,
                self._tracker.outstanding,
            )
            self.cancel()
            self._tracker.wait()

        if self._executor is not None:
            self._executor.shutdown(wait=True)
        return completed and not self.cancelled

    def cancel(self) -> None:
        if not self._cancelled.is_set():
            self._cancelled.set()
            with self._counter_lock:
                self._result.timed_out = True

    def result(self) -> PipelineResult:
        with self._counter_lock:
            snapshot = PipelineResult(**vars(self._result))
        snapshot.signalled = self._tracker.signalled
        return snapshot

    def _check_deadline(self) -> bool:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel()
        return self._cancelled.is_set()

    def _count(self, outcome: str) -> None:
        with self._counter_lock:
            setattr(self._result, outcome, getattr(self._result, outcome) + 1)

    def _worker_loop(self, worker_index: int) -> int:
        handled = 0
        while True:
            job = self._jobs.get()
            if job is _STOP:
                return handled

            try:
                if self._check_deadline():
                    self._count("cancelled")
                else:
                    self._attempt(worker_index, job)
            except Exception:
                logger.exception("Worker %d crashed on line %d", worker_index, job.line_number)
                self._count("failed")
            finally:
                self._tracker.done()

            handled += 1
            if handled % self.progress_every == 0:
                logger.info("Worker %d processed %d rows", worker_index, handled)

    def _attempt(self, worker_index: int, job: IngestJob) -> None:
        params = job.as_params()

        try:
            conn = self.engine.connect()
        except SQLAlchemyError as e:
            logger.error(
                "Worker %d failed to acquire connection for line %d: %s",
                worker_index,
                job.line_number,
                e,
            )
            self._count("failed")
            return

        try:
            # Leaving the block commits (or rolls back) and releases the connection.
            with conn, conn.begin():
                conn.execute(self._statement, params)
        except SQLAlchemyError as e:
            logger.error(
                "Worker %d failed to insert line %d: %s | values=%r",
                worker_index,
                job.line_number,
                e,
                list(job.values),
            )
            self._count("failed")
            return

        self._count("inserted")
