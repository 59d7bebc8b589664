"""Concurrent embedding pipeline.

One feeder thread applies middleware to each chunk in input order and admits
it to a bounded feed queue; a fixed pool of worker threads embeds chunks with
retry/backoff; a completion thread closes the result stream once the feeder
and every worker are done. The caller drains results until the stream closes
or its cancellation scope fires.

Per-chunk failures (middleware, embedding, dimension mismatch) come back as
``EmbeddedChunk.error``. Only cancellation aborts the whole call.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

import numpy as np
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_incrementing,
    wait_random,
)

from ragingest.cancellation import CancelScope
from ragingest.chunking.schemas import DocumentChunk
from ragingest.embeddings.base import EmbeddingProvider
from ragingest.embeddings.metrics import PipelineMetrics
from ragingest.embeddings.schemas import EmbeddedChunk
from ragingest.errors import (
    CancellationError,
    DimensionMismatchError,
    EmptyEmbeddingError,
    RedactionError,
    ValidationError,
)
from ragingest.redaction import Middleware

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4
DEFAULT_BATCH_SIZE = 32
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 0.2

COSINE = "cosine"

# Wait slice for queue operations so cancellation is noticed promptly.
_POLL_INTERVAL = 0.05

_STOP = object()
_CLOSED = object()


@dataclass
class RetryPolicy:
    """Retry settings; non-positive values fall back to the defaults.

    The delay before retry ``n`` is ``base_delay * n`` seconds plus a uniform
    random jitter in ``[0, jitter]``.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    jitter: float = 0.0

    def __post_init__(self):
        if self.max_attempts <= 0:
            self.max_attempts = DEFAULT_MAX_ATTEMPTS
        if self.base_delay <= 0:
            self.base_delay = DEFAULT_BASE_DELAY
        self.jitter = max(0.0, self.jitter)


@dataclass
class PipelineConfig:
    """Pipeline knobs; non-positive sizes fall back to the defaults.

    Attributes:
        workers: Number of embedding threads.
        batch_size: Feed queue capacity.
        expected_dims: Required vector length, 0 to skip the check.
        normalize: Scale vectors to unit length when ``similarity_mode`` is cosine.
        similarity_mode: Similarity tag of the downstream store.
        retry: Per-chunk retry policy.
    """

    workers: int = DEFAULT_WORKERS
    batch_size: int = DEFAULT_BATCH_SIZE
    expected_dims: int = 0
    normalize: bool = False
    similarity_mode: str = COSINE
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self):
        if self.workers <= 0:
            self.workers = DEFAULT_WORKERS
        if self.batch_size <= 0:
            self.batch_size = DEFAULT_BATCH_SIZE
        self.expected_dims = max(0, self.expected_dims)


def normalize_vector(vector: list[float]) -> list[float]:
    """Scale ``vector`` in place to unit L2 norm; all-zero vectors are left alone."""
    arr = np.asarray(vector, dtype=np.float64)
    magnitude = float(np.linalg.norm(arr))
    if magnitude == 0.0:
        return vector
    vector[:] = (arr / magnitude).tolist()
    return vector


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Embedding attempt %d failed (%s), retrying in %.2fs",
        retry_state.attempt_number,
        exc,
        retry_state.next_action.sleep if retry_state.next_action else 0.0,
    )


class EmbeddingPipeline:
    """Embed chunks through a bounded worker pool."""

    def __init__(
        self,
        embedder: EmbeddingProvider | None,
        middlewares: Sequence[Middleware] = (),
        config: PipelineConfig | None = None,
        metrics: PipelineMetrics | None = None,
    ):
        self.embedder = embedder
        self.middlewares = [m for m in middlewares if m is not None]
        self.config = config or PipelineConfig()
        self.metrics = metrics

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(
        self,
        chunks: Iterable[DocumentChunk],
        scope: CancelScope | None = None,
    ) -> list[EmbeddedChunk]:
        """Embed every chunk and return one result per chunk.

        Results are in completion order; see ``sort_results``.

        Raises:
            ValidationError: if no embedder is configured.
            CancellationError: if ``scope`` is cancelled or times out.
        """
        return list(self.iter_results(chunks, scope))

    def iter_results(
        self,
        chunks: Iterable[DocumentChunk],
        scope: CancelScope | None = None,
    ) -> Iterator[EmbeddedChunk]:
        """Yield results as workers finish them."""
        if self.embedder is None:
            raise ValidationError("embedding pipeline requires an embedder")

        chunks = list(chunks)
        caller_scope = scope or CancelScope()
        # Cancelled on exit so background threads stop even if the caller
        # abandons the iterator early.
        internal = caller_scope.child()

        feed: queue.Queue = queue.Queue(maxsize=self.config.batch_size)
        results: queue.Queue = queue.Queue()

        workers = [
            threading.Thread(
                target=self._work, args=(feed, results, internal),
                name=f"embed-worker-{i}", daemon=True,
            )
            for i in range(self.config.workers)
        ]
        feeder = threading.Thread(
            target=self._feed, args=(chunks, feed, results, internal),
            name="embed-feeder", daemon=True,
        )
        closer = threading.Thread(
            target=self._close_when_done, args=([feeder, *workers], results),
            name="embed-closer", daemon=True,
        )
        for thread in [*workers, feeder, closer]:
            thread.start()

        succeeded = received = 0
        try:
            while True:
                caller_scope.raise_if_cancelled()
                try:
                    item = results.get(timeout=_POLL_INTERVAL)
                except queue.Empty:
                    continue
                if item is _CLOSED:
                    # Threads also close the stream when the caller cancels.
                    caller_scope.raise_if_cancelled()
                    break
                received += 1
                succeeded += item.ok
                yield item
        finally:
            internal.cancel()

        logger.info("Embedded %d/%d chunks", succeeded, received)

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def _feed(
        self,
        chunks: list[DocumentChunk],
        feed: queue.Queue,
        results: queue.Queue,
        scope: CancelScope,
    ) -> None:
        try:
            for index, original in enumerate(chunks):
                if scope.cancelled:
                    return
                chunk = original.copy()
                try:
                    self._apply_middleware(scope, chunk)
                except Exception as exc:
                    if isinstance(exc, CancellationError) and scope.cancelled:
                        return
                    error = exc if isinstance(exc, RedactionError) else RedactionError(str(exc))
                    if error is not exc:
                        error.__cause__ = exc
                    logger.warning("Middleware failed for chunk %s: %s", chunk.id, exc)
                    results.put(EmbeddedChunk(chunk=chunk, error=error, index=index))
                    continue

                if not self._admit(feed, (index, chunk), scope):
                    return
                if self.metrics is not None:
                    self.metrics.observe_queue_depth(feed.qsize())
        finally:
            for _ in range(self.config.workers):
                if not self._admit(feed, _STOP, scope):
                    break

    def _work(self, feed: queue.Queue, results: queue.Queue, scope: CancelScope) -> None:
        while True:
            try:
                item = feed.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                if scope.cancelled:
                    return
                continue
            if item is _STOP or scope.cancelled:
                return
            index, chunk = item
            results.put(self._embed_with_retry(index, chunk, scope))

    @staticmethod
    def _close_when_done(threads: list[threading.Thread], results: queue.Queue) -> None:
        for thread in threads:
            thread.join()
        results.put(_CLOSED)

    @staticmethod
    def _admit(feed: queue.Queue, item: object, scope: CancelScope) -> bool:
        """Block until ``item`` is queued; ``False`` if cancelled first."""
        while not scope.cancelled:
            try:
                feed.put(item, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    # ------------------------------------------------------------------
    # Per-chunk work
    # ------------------------------------------------------------------

    def _apply_middleware(self, scope: CancelScope, chunk: DocumentChunk) -> None:
        for middleware in self.middlewares:
            middleware.process(scope, chunk)

    def _retrying(self, scope: CancelScope) -> Retrying:
        policy = self.config.retry
        return Retrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=(
                wait_incrementing(start=policy.base_delay, increment=policy.base_delay)
                + wait_random(0, policy.jitter)
            ),
            retry=retry_if_not_exception_type(CancellationError),
            sleep=scope.sleep,
            before_sleep=_log_retry,
            reraise=True,
        )

    def _embed_with_retry(self, index: int, chunk: DocumentChunk, scope: CancelScope) -> EmbeddedChunk:
        start = time.monotonic()
        attempts = 0

        def attempt() -> list[float]:
            nonlocal attempts
            scope.raise_if_cancelled()
            attempts += 1
            began = time.monotonic()
            try:
                vector = self.embedder.embed(chunk.content)
                if vector is None or len(vector) == 0:
                    raise EmptyEmbeddingError(f"empty embedding for chunk {chunk.id}")
            except Exception:
                self._record(time.monotonic() - began, ok=False)
                raise
            self._record(time.monotonic() - began, ok=True)
            # The result owns its vector; providers may hand back shared buffers.
            return [float(v) for v in vector]

        try:
            vector = self._retrying(scope)(attempt)
        except Exception as exc:
            return EmbeddedChunk(
                chunk=chunk, attempts=attempts, duration=time.monotonic() - start,
                error=exc, index=index,
            )

        result = EmbeddedChunk(
            chunk=chunk, vector=vector, attempts=attempts,
            duration=time.monotonic() - start, index=index,
        )
        return self._postprocess(result)

    def _postprocess(self, result: EmbeddedChunk) -> EmbeddedChunk:
        expected = self.config.expected_dims
        if expected > 0 and len(result.vector) != expected:
            result.error = DimensionMismatchError(len(result.vector), expected)
            result.vector = None
            return result
        if self.config.normalize and self.config.similarity_mode == COSINE:
            normalize_vector(result.vector)
        return result

    def _record(self, duration: float, ok: bool) -> None:
        if self.metrics is not None:
            self.metrics.record_embedding(duration, ok)
