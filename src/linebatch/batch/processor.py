"""
Batch Processor
===============

Bounded, concurrent processing of line records with per-worker partial
summaries that are combined once all workers finish.
"""

import functools
import logging
import re
import sys
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor

import psutil

from src.linebatch.batch.source import SourceLike, load_records
from src.linebatch.core.config import BatchConfig
from src.linebatch.core.exceptions import (
    ControlCharacterError,
    ErrorThresholdExceededError,
    ProcessingError,
    RecordEncodingError,
    RecordTooLongError,
    SourceError,
    ValidationError,
)
from src.linebatch.core.models import Record, RecordErrorSample, RecordKind, Summary

logger = logging.getLogger(__name__)

RecordClassifier = Callable[[Record, BatchConfig], RecordKind]

# Tab is allowed; CR only survives here when it is not part of a CRLF terminator.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")
# Bytes that failed to decode, as produced by errors="surrogateescape".
_ESCAPED_BYTES = re.compile("[\udc80-\udcff]")


class BatchProgressCallback:
    """Base class for batch progress callbacks.

    Hooks other than ``on_start`` may be called from worker threads.
    """

    def on_start(self, source: str, concurrency: int) -> None:
        """Called when the source is open and processing starts."""

    def on_record_error(self, sample: RecordErrorSample) -> None:
        """Called when a record fails validation."""

    def on_worker_complete(self, worker_id: int, partial: Summary) -> None:
        """Called when a worker has drained the source."""

    def on_complete(self, summary: Summary) -> None:
        """Called with the combined summary."""


class ConsoleProgressCallback(BatchProgressCallback):
    """Console-based progress callback writing to stderr."""

    def __init__(self, max_errors_shown: int = 20):
        self.max_errors_shown = max_errors_shown
        self.start_time = None
        self._errors_shown = 0
        self._lock = threading.Lock()

    def on_start(self, source: str, concurrency: int) -> None:
        self.start_time = time.time()
        print(f"Processing {source} with {concurrency} worker(s)...", file=sys.stderr)

    def on_record_error(self, sample: RecordErrorSample) -> None:
        with self._lock:
            self._errors_shown += 1
            shown = self._errors_shown
        if shown <= self.max_errors_shown:
            print(f"✗ line {sample.index + 1}: {sample.reason}", file=sys.stderr)
        elif shown == self.max_errors_shown + 1:
            print("Further record errors suppressed", file=sys.stderr)

    def on_complete(self, summary: Summary) -> None:
        elapsed = time.time() - self.start_time if self.start_time else 0
        print(
            f"Done: {summary.total} records, {summary.malformed} malformed "
            f"in {elapsed:.2f}s",
            file=sys.stderr,
        )


def classify_record(record: Record, config: BatchConfig) -> RecordKind:
    """
    Validate a record and classify it.

    Raises:
        RecordTooLongError: If the record is longer than ``max_record_length``
        ControlCharacterError: If the record contains a control character
        RecordEncodingError: If the record contains undecodable bytes
    """
    if record.length > config.max_record_length:
        raise RecordTooLongError(record.length, config.max_record_length)

    text = record.text

    match = _CONTROL_CHARS.search(text)
    if match:
        raise ControlCharacterError(match.start(), match.group())

    match = _ESCAPED_BYTES.search(text)
    if match:
        raise RecordEncodingError(match.start(), config.encoding)

    if text == config.error_marker:
        return RecordKind.ERROR_MARKER
    return RecordKind.NORMAL


def combine_summaries(partials: Iterable[Summary], max_error_samples: int = 10) -> Summary:
    """
    Merge partial summaries into one.

    The merge is associative and commutative: counters are summed and the
    lowest-indexed error samples are kept.
    """
    return functools.reduce(
        lambda left, right: left.merge(right, max_error_samples), partials, Summary()
    )


class _RecordFeed:
    """Hands out records one at a time to competing workers."""

    def __init__(
        self,
        records: Iterable[Record],
        stop_event: threading.Event | None = None,
        deadline: float | None = None,
    ):
        self._records: Iterator[Record] = iter(records)
        self._lock = threading.Lock()
        self._stop_event = stop_event
        self._deadline = deadline
        self._aborted = threading.Event()
        self.exhausted = False
        self.stopped = False

    def next(self) -> Record | None:
        with self._lock:
            if self.exhausted or self.stopped:
                return None
            if self._should_stop():
                self.stopped = True
                if not self._aborted.is_set():
                    self._check_exhausted()
                return None
            try:
                return next(self._records)
            except StopIteration:
                self.exhausted = True
                return None

    def _should_stop(self) -> bool:
        if self._aborted.is_set():
            return True
        if self._stop_event is not None and self._stop_event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def _check_exhausted(self) -> None:
        """Look one record ahead so a stop after the last record is not an early stop."""
        try:
            next(self._records)
        except StopIteration:
            self.exhausted = True

    def abort(self) -> None:
        """Stop handing out records after a worker failure."""
        self._aborted.set()

    @property
    def stopped_early(self) -> bool:
        return self.stopped and not self.exhausted


def _run_worker(
    worker_id: int,
    feed: _RecordFeed,
    config: BatchConfig,
    classify: RecordClassifier,
    callback: BatchProgressCallback,
) -> Summary:
    """Drain the feed into a private partial summary."""
    partial = Summary()
    try:
        while True:
            record = feed.next()
            if record is None:
                break

            try:
                kind = classify(record, config)
            except ValidationError as e:
                sample = partial.record_malformed(record, e, config.max_error_samples)
                logger.debug(f"Malformed record at line {record.index + 1}: {e}")
                callback.on_record_error(sample)
                continue
            except Exception as e:
                raise ProcessingError(record.index, e) from e

            partial.record_outcome(record, kind)
    except Exception:
        feed.abort()
        raise

    logger.debug(f"Worker {worker_id} finished after {partial.total} records")
    callback.on_worker_complete(worker_id, partial)
    return partial


def process_records(
    records: Iterable[Record],
    config: BatchConfig,
    classify: RecordClassifier | None = None,
    callback: BatchProgressCallback | None = None,
    stop_event: threading.Event | None = None,
) -> Summary:
    """
    Process every record exactly once and summarise the run.

    Args:
        records: Record iterable, consumed once
        config: Run configuration
        classify: Per-record classifier, defaults to :func:`classify_record`
        callback: Optional progress callback
        stop_event: When set, workers stop pulling new records

    Returns:
        Combined summary of all workers

    Raises:
        SourceError: If the source fails while being read
        ProcessingError: If the classifier fails with a non-validation error
        ErrorThresholdExceededError: If malformed records exceed ``error_threshold``
    """
    if classify is None:
        classify = classify_record
    if callback is None:
        callback = BatchProgressCallback()

    deadline = None
    if config.deadline_seconds is not None:
        deadline = time.monotonic() + config.deadline_seconds

    feed = _RecordFeed(records, stop_event=stop_event, deadline=deadline)

    if config.concurrency == 1:
        partials = [_run_worker(0, feed, config, classify, callback)]
    else:
        with ThreadPoolExecutor(
            max_workers=config.concurrency, thread_name_prefix="linebatch"
        ) as executor:
            futures = [
                executor.submit(_run_worker, worker_id, feed, config, classify, callback)
                for worker_id in range(config.concurrency)
            ]
        # All workers have returned; the first failure, if any, is raised here.
        partials = [future.result() for future in futures]

    summary = combine_summaries(partials, config.max_error_samples)
    if feed.stopped_early:
        summary.stopped_early = True
        logger.warning(f"Run stopped early after {summary.total} records")

    callback.on_complete(summary)

    if config.error_threshold is not None and summary.malformed > config.error_threshold:
        raise ErrorThresholdExceededError(summary.malformed, config.error_threshold, summary)

    return summary


class BatchProcessor:
    """
    Line batch processor.

    Opens the input once per run, processes it with a fixed pool of
    workers, and returns the combined :class:`Summary`.
    """

    def __init__(
        self,
        config: BatchConfig | None = None,
        classify: RecordClassifier | None = None,
        callback: BatchProgressCallback | None = None,
    ):
        """
        Initialize batch processor.

        Args:
            config: Run configuration, loaded from the environment if omitted
            classify: Optional per-record classifier
            callback: Optional progress callback
        """
        self.config = config if config is not None else BatchConfig()
        self.classify = classify or classify_record
        self.callback = callback or BatchProgressCallback()

    def run(
        self, source: SourceLike | None = None, stop_event: threading.Event | None = None
    ) -> Summary:
        """
        Process a source of newline-delimited records.

        Args:
            source: Path, ``"-"`` or stream; defaults to ``config.input_path``
            stop_event: When set, workers stop pulling new records

        Returns:
            Summary of the run
        """
        if source is None:
            source = self.config.input_path
        if source is None:
            raise SourceError("<none>", "no input source configured")

        start_time = time.time()

        with load_records(
            source,
            encoding=self.config.encoding,
            max_record_length=self.config.max_record_length,
        ) as records:
            logger.info(
                f"Processing {records.name} with concurrency={self.config.concurrency}"
            )
            self.callback.on_start(records.name, self.config.concurrency)
            summary = process_records(
                records,
                self.config,
                classify=self.classify,
                callback=self.callback,
                stop_event=stop_event,
            )

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Processed {summary.total} records from {records.name} in {elapsed_ms:.1f}ms "
            f"({summary.malformed} malformed, {summary.error_markers} error markers)"
        )

        memory_mb = self._get_memory_usage()
        if memory_mb is not None:
            logger.debug(f"Memory usage after run: {memory_mb:.1f}MB")

        return summary

    def _get_memory_usage(self) -> float | None:
        """Get current memory usage in MB."""
        try:
            process = psutil.Process()
            return process.memory_info().rss / 1024 / 1024
        except psutil.Error as e:
            logger.debug(f"Memory usage unavailable: {e}")
            return None
