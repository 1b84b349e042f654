"""Chunked enrichment of large detection streams."""

import threading
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import islice
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from .statistics import RunStatistics, summarize
from ..enrich.enricher import SpatialEnricher, default_enrichment
from ..exceptions import IncompleteRunError, NoInputRecordsError
from ..models import DetectionRecord, EnrichedRecord
from ..utils import setup_logger

logger = setup_logger(__name__)

DEFAULT_BATCH_SIZE = 50_000


def iter_batches(records: Iterable[DetectionRecord], batch_size: int) -> Iterator[List[DetectionRecord]]:
    """Slice a record stream into lists of at most `batch_size` records."""
    iterator = iter(records)
    while True:
        batch = list(islice(iterator, batch_size))
        if not batch:
            return
        yield batch


@dataclass
class BatchResult:
    """Enriched records of a run plus its merged statistics."""
    records: List[EnrichedRecord]
    statistics: RunStatistics

    @property
    def cancelled(self) -> bool:
        return self.statistics.cancelled


class BatchProcessor:
    """
    Enrich a detection stream in fixed-size batches.

    Only `workers` batches are held in memory at a time. Each batch produces
    its own partial statistics, merged in batch order, so counts stay valid
    if the run is cancelled between batches.
    """

    def __init__(
        self,
        enricher: SpatialEnricher,
        batch_size: int = DEFAULT_BATCH_SIZE,
        workers: int = 1
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if workers < 1:
            raise ValueError("workers must be >= 1")

        self.enricher = enricher
        self.batch_size = batch_size
        self.workers = workers

    def process_batch(self, batch: List[DetectionRecord]) -> Tuple[List[EnrichedRecord], RunStatistics]:
        """
        Enrich one batch.

        A record whose enrichment raises is kept with default labels and
        counted as failed.

        Returns:
            Tuple of (enriched records, partial statistics)
        """
        enriched = []
        failed = 0

        for record in batch:
            try:
                enriched.append(self.enricher.enrich(record))
            except Exception as e:
                logger.warning(f"Enrichment failed for {record.id}: {e}")
                enriched.append(default_enrichment(record))
                failed += 1

        partial = summarize(enriched)
        partial.failed = failed
        partial.batches = 1
        return enriched, partial

    def run(
        self,
        records: Iterable[DetectionRecord],
        cancel_event: Optional[threading.Event] = None,
        on_batch: Optional[Callable[[int, RunStatistics], None]] = None
    ) -> BatchResult:
        """
        Enrich every record of a stream.

        Args:
            records: Detection stream, consumed once
            cancel_event: When set, stops the run before the next batch
            on_batch: Called with (batch number, partial statistics)

        Returns:
            BatchResult with all enriched records and merged statistics

        Raises:
            NoInputRecordsError: The stream held no records
            IncompleteRunError: The stream raised part way; the error carries
                the BatchResult of the batches enriched before it
        """
        logger.info(f"Enriching detections in batches of {self.batch_size} "
                    f"({self.workers} worker{'s' if self.workers > 1 else ''})")

        start = time.perf_counter()
        statistics = RunStatistics()
        enriched: List[EnrichedRecord] = []
        batches = iter_batches(records, self.batch_size)
        stream_error: Optional[Exception] = None

        def cancelled() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(f"Run cancelled after {statistics.batches} batches")
                statistics.cancelled = True
                return True
            return False

        def next_batch() -> Optional[List[DetectionRecord]]:
            nonlocal stream_error
            try:
                return next(batches, None)
            except Exception as e:
                logger.error(f"Detection stream failed after {number} batches: {e}")
                stream_error = e
                return None

        def collect(number: int, result: Tuple[List[EnrichedRecord], RunStatistics]) -> None:
            batch_records, partial = result
            enriched.extend(batch_records)
            statistics.merge(partial)
            logger.info(f"   Batch {number} processed: {len(batch_records)} detections")
            if on_batch is not None:
                on_batch(number, partial)

        number = 0
        if self.workers == 1:
            while not cancelled():
                batch = next_batch()
                if batch is None:
                    break
                number += 1
                collect(number, self.process_batch(batch))
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                pending = deque()
                while not cancelled():
                    batch = next_batch()
                    if batch is None:
                        break
                    number += 1
                    pending.append((number, executor.submit(self.process_batch, batch)))
                    if len(pending) >= self.workers:
                        done_number, future = pending.popleft()
                        collect(done_number, future.result())

                while pending:
                    done_number, future = pending.popleft()
                    collect(done_number, future.result())

        statistics.elapsed_seconds = time.perf_counter() - start

        if stream_error is not None:
            raise IncompleteRunError(
                f"Detection stream failed after {statistics.total} records: {stream_error}",
                BatchResult(records=enriched, statistics=statistics)
            ) from stream_error

        if statistics.total == 0 and not statistics.cancelled:
            raise NoInputRecordsError("No valid detection records to process")

        logger.info(f"Enriched {statistics.total} detections in {statistics.batches} batches "
                    f"({statistics.failed} failed, {statistics.elapsed_seconds:.1f}s)")

        return BatchResult(records=enriched, statistics=statistics)
