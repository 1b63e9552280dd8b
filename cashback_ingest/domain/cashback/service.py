import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, BinaryIO, Dict, Iterator, Optional

from sqlalchemy.engine import Engine

from cashback_ingest.core.config import Settings, settings as default_settings
from cashback_ingest.domain.cashback.mapper import map_row
from cashback_ingest.domain.cashback.pipeline import IngestionPipeline
from cashback_ingest.domain.cashback.reader import ReaderStats, iter_canonical_rows, open_text_stream
from cashback_ingest.domain.cashback.record import IngestJob

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    schema_name: str
    rows_read: int = 0
    rows_skipped: int = 0
    jobs_queued: int = 0
    inserted: int = 0
    failed: int = 0
    cancelled: int = 0
    timed_out: bool = False
    stopped_at_sentinel: bool = False
    stopped_at_error: bool = False
    elapsed_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _iter_jobs(binary_stream: BinaryIO, stats: ReaderStats, result: IngestResult) -> Iterator[IngestJob]:
    text_stream = open_text_stream(binary_stream)
    for line_number, row in iter_canonical_rows(text_stream, stats):
        record = map_row(row, line_number=line_number)
        if record is None:
            result.rows_skipped += 1
            logger.debug("Skipping line %d: %d columns after reassembly", line_number, len(row))
            continue
        yield record.to_job(line_number)


def ingest_cashback_file(
    binary_stream: BinaryIO,
    engine: Engine,
    schema_name: str,
    *,
    config: Optional[Settings] = None,
    worker_count: Optional[int] = None,
) -> IngestResult:
    """
    Load one cashback export into ``<schema_name>.domain``.

    Reading, sanitizing and mapping run on the calling thread; inserts run on
    the writer pool. Returns once every accepted row has been attempted (or
    the request deadline cancelled the rest). Row-level problems are only
    logged, so a result with ``failed > 0`` is still a completed ingestion.
    """
    config = config or default_settings
    start = time.monotonic()

    result = IngestResult(schema_name=schema_name)
    stats = ReaderStats()
    timeout = config.ingest_request_timeout_seconds or None

    pipeline = IngestionPipeline(
        engine,
        schema_name,
        worker_count=worker_count or config.ingest_worker_count,
        queue_size=config.ingest_queue_size,
        progress_every=config.ingest_progress_every,
        timeout_seconds=timeout,
    )
    outcome = pipeline.run(_iter_jobs(binary_stream, stats, result))

    result.rows_read = stats.rows_read
    result.stopped_at_sentinel = stats.stopped_at_sentinel
    result.stopped_at_error = stats.stopped_at_error
    result.jobs_queued = outcome.jobs_submitted
    result.inserted = outcome.inserted
    result.failed = outcome.failed
    result.cancelled = outcome.cancelled
    result.timed_out = outcome.timed_out
    result.elapsed_seconds = time.monotonic() - start

    logger.info(
        "Ingested into %s: read=%d skipped=%d queued=%d inserted=%d failed=%d cancelled=%d in %.2fs",
        schema_name,
        result.rows_read,
        result.rows_skipped,
        result.jobs_queued,
        result.inserted,
        result.failed,
        result.cancelled,
        result.elapsed_seconds,
    )
    return result
