"""Client effort embedding pipeline.

Top-level use cases over injected collaborators:

    log source -> LogNormalizer -> analyze -> narrative -> embedding model -> EmbeddingStore

Every stage runs sequentially in the calling thread. Nothing is retried:
an empty fetch raises EmptyResultError, a failed model call raises
UpstreamModelError, a failed durable write raises StoreWriteError.

Usage:
    from effort_engine.core.effort_pipeline import build_default_pipeline

    pipeline = build_default_pipeline()
    vector = pipeline.run_effort_pipeline("client-123", window_hours=24)
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np

from effort_engine.core.config import get_settings
from effort_engine.core.effort_analyzer import analyze, analyze_behavior
from effort_engine.core.effort_narrative import build_activity_summary, build_effort_narrative
from effort_engine.core.embeddings import EmbeddingModel
from effort_engine.core.errors import UpstreamModelError
from effort_engine.core.log_normalizer import LogNormalizer, LogSource
from effort_engine.core.logging import get_logger, log_with_context
from effort_engine.core.schemas_effort import (
    DEFAULT_EMBEDDING_TYPE,
    EMBEDDING_TYPE_ACTIVITY_LOGS,
    EMBEDDING_TYPE_CLIENT_EFFORT,
    AnomalyReport,
    BehaviorAnalysis,
    EffortAnalysis,
    EmbeddingMetadata,
    EmbeddingRecord,
    LogEvent,
)
from effort_engine.db.embedding_store import EmbeddingStore

logger = get_logger(__name__)

__all__ = [
    "EffortPipeline",
    "analyze",
    "build_default_pipeline",
    "cosine_similarity",
]


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 for mismatched lengths or zero vectors."""
    if len(a) == 0 or len(a) != len(b):
        return 0.0
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0:
        return 0.0
    return float(np.dot(va, vb) / norm)


class EffortPipeline:
    """Runs the log -> score -> digest -> embedding -> store use cases."""

    def __init__(
        self,
        log_source: LogSource,
        model: EmbeddingModel,
        store: EmbeddingStore,
        timer: Callable[[], float] = time.perf_counter,
        clock: Callable[[], int] = _epoch_ms,
    ):
        """
        Args:
            log_source: Where subject logs come from
            model: Text -> vector embedding model
            store: Two-tier embedding store
            timer: Monotonic seconds, used to time the model call
            clock: Wall-clock epoch ms, stamped into metadata
        """
        self.log_source = log_source
        self.normalizer = LogNormalizer(log_source)
        self.model = model
        self.store = store
        self.timer = timer
        self.clock = clock

    # =========================
    # Use cases
    # =========================

    def run_effort_pipeline(
        self,
        subject_id: str,
        embedding_type: str = EMBEDDING_TYPE_CLIENT_EFFORT,
        window_hours: int | None = None,
    ) -> list[float]:
        """
        Embed and store a subject's client effort profile.

        Args:
            subject_id: Subject whose logs to analyze
            embedding_type: Type tag to store the vector under
            window_hours: Lookback window (defaults to DEFAULT_WINDOW_HOURS)

        Returns:
            The embedding vector

        Raises:
            EmptyResultError: If no logs exist for the window
            UpstreamModelError: If the embedding model call fails
            StoreWriteError: If the durable tier write fails
        """
        window_hours = self._window(window_hours)
        events = self.normalizer.fetch_events(subject_id, window_hours)

        analysis = analyze(events)
        narrative = build_effort_narrative(events, analysis)

        vector, elapsed_ms = self._embed(narrative, subject_id, embedding_type)

        metadata = self._metadata(embedding_type, events, window_hours, elapsed_ms)
        for field, value in analysis.numeric_fields().items():
            metadata.encoding_details[f"effort_{field}"] = value

        self._store(subject_id, embedding_type, vector, metadata)

        log_with_context(
            logger,
            logging.INFO,
            f"Stored {embedding_type} embedding (effort score {analysis.effort_score:.1f})",
            subject_id=subject_id,
            embedding_type=embedding_type,
            log_count=len(events),
            generation_time_ms=elapsed_ms,
        )
        return vector

    def run_activity_pipeline(
        self,
        subject_id: str,
        window_hours: int | None = None,
    ) -> list[float]:
        """
        Embed and store a general activity summary of a subject's logs.

        Same failure modes as run_effort_pipeline.
        """
        window_hours = self._window(window_hours)
        events = self.normalizer.fetch_events(subject_id, window_hours)

        summary = build_activity_summary(events)
        vector, elapsed_ms = self._embed(summary, subject_id, EMBEDDING_TYPE_ACTIVITY_LOGS)

        metadata = self._metadata(EMBEDDING_TYPE_ACTIVITY_LOGS, events, window_hours, elapsed_ms)
        self._store(subject_id, EMBEDDING_TYPE_ACTIVITY_LOGS, vector, metadata)

        logger.info(
            f"Stored activity embedding for {subject_id} from {len(events)} events",
            extra={"subject_id": subject_id, "embedding_type": EMBEDDING_TYPE_ACTIVITY_LOGS},
        )
        return vector

    def analyze_subject(self, subject_id: str, window_hours: int | None = None) -> EffortAnalysis:
        """Fetch a subject's logs and score them without embedding or storing anything."""
        window_hours = self._window(window_hours)
        return analyze(self.normalizer.fetch_events(subject_id, window_hours))

    def analyze_subject_behavior(
        self,
        subject_id: str,
        window_hours: int | None = None,
    ) -> BehaviorAnalysis:
        """Fetch a subject's logs and summarize their API activity."""
        window_hours = self._window(window_hours)
        events = self.normalizer.fetch_events(subject_id, window_hours)
        return analyze_behavior(events, window_hours)

    def detect_anomalies(
        self,
        subject_id: str,
        window_hours: int | None = None,
        threshold: float | None = None,
    ) -> AnomalyReport:
        """
        Compare a subject's fresh activity embedding with the stored one.

        The stored activity embedding is read first, then replaced by the
        fresh one.

        Args:
            subject_id: Subject to check
            window_hours: Lookback window for the fresh embedding
            threshold: Similarity below which behavior is anomalous
                (defaults to ANOMALY_SIMILARITY_THRESHOLD)

        Returns:
            AnomalyReport

        Raises:
            NotFoundError: If no activity embedding was stored before
            EmptyResultError / UpstreamModelError / StoreWriteError: as run_activity_pipeline
        """
        settings = get_settings()
        window_hours = self._window(window_hours)
        threshold = settings.ANOMALY_SIMILARITY_THRESHOLD if threshold is None else threshold

        historical = self.store.require(subject_id, EMBEDDING_TYPE_ACTIVITY_LOGS)
        current = self.run_activity_pipeline(subject_id, window_hours)

        similarity = cosine_similarity(historical.vector, current)
        behavior = self.analyze_subject_behavior(subject_id, window_hours)

        report = AnomalyReport(
            subject_id=subject_id,
            similarity_score=similarity,
            is_anomaly=similarity < threshold,
            threshold=threshold,
            behavior_analysis=behavior,
        )
        if report.is_anomaly:
            logger.warning(
                f"Anomalous activity for {subject_id}: similarity {similarity:.3f} < {threshold}",
                extra={"subject_id": subject_id},
            )
        return report

    def get_embedding(
        self,
        subject_id: str,
        embedding_type: str = DEFAULT_EMBEDDING_TYPE,
    ) -> EmbeddingRecord | None:
        return self.store.read(subject_id, embedding_type)

    def list_embedding_types(self, subject_id: str) -> list[str]:
        return self.store.list_embedding_types(subject_id)

    # =========================
    # Async wrappers
    # =========================

    async def run_effort_pipeline_async(
        self,
        subject_id: str,
        embedding_type: str = EMBEDDING_TYPE_CLIENT_EFFORT,
        window_hours: int | None = None,
    ) -> list[float]:
        """Async wrapper around run_effort_pipeline using thread pool."""
        return await asyncio.to_thread(
            self.run_effort_pipeline, subject_id, embedding_type, window_hours
        )

    async def detect_anomalies_async(
        self,
        subject_id: str,
        window_hours: int | None = None,
        threshold: float | None = None,
    ) -> AnomalyReport:
        """Async wrapper around detect_anomalies using thread pool."""
        return await asyncio.to_thread(self.detect_anomalies, subject_id, window_hours, threshold)

    # =========================
    # Helpers
    # =========================

    @staticmethod
    def _window(window_hours: int | None) -> int:
        if window_hours is None:
            return get_settings().DEFAULT_WINDOW_HOURS
        return window_hours

    def _embed(self, text: str, subject_id: str, embedding_type: str) -> tuple[list[float], int]:
        """Call the model, timing it. Any failure becomes UpstreamModelError."""
        started = self.timer()
        try:
            vector = list(self.model.embed(text))
        except Exception as e:
            logger.error(
                f"Embedding model {self.model.model_id} failed for {subject_id}: {e}",
                extra={"subject_id": subject_id, "embedding_type": embedding_type},
            )
            raise UpstreamModelError(
                f"Embedding model {self.model.model_id} failed: {e}",
                subject_id=subject_id,
                embedding_type=embedding_type,
            ) from e
        elapsed_ms = int((self.timer() - started) * 1000)

        if not vector:
            raise UpstreamModelError(
                f"Embedding model {self.model.model_id} returned an empty vector",
                subject_id=subject_id,
                embedding_type=embedding_type,
            )
        return vector, elapsed_ms

    def _metadata(
        self,
        embedding_type: str,
        events: list[LogEvent],
        window_hours: int,
        elapsed_ms: int,
    ) -> EmbeddingMetadata:
        now_ms = self.clock()
        return EmbeddingMetadata(
            source_type=embedding_type,
            model_id=self.model.model_id,
            encoding_details={
                "log_source": self.log_source.name,
                "window_hours": window_hours,
                "log_count": len(events),
                "timestamp": now_ms,
            },
            performance_metrics={"generation_time_ms": elapsed_ms},
            timestamp=now_ms,
        )

    def _store(
        self,
        subject_id: str,
        embedding_type: str,
        vector: list[float],
        metadata: EmbeddingMetadata,
    ) -> None:
        record = EmbeddingRecord(
            subject_id=subject_id,
            embedding_type=embedding_type,
            vector=vector,
            metadata=metadata.model_dump(),
        )
        self.store.write(record)


def build_default_pipeline(log_group: str | None = None) -> EffortPipeline:
    """
    Wire the pipeline from settings: Supabase log source and durable tier,
    OpenAI embeddings, and a Redis fast tier when REDIS_URL is set.
    """
    from effort_engine.core.embeddings import OpenAIEmbeddingModel
    from effort_engine.db.embedding_cache import RedisEmbeddingCache
    from effort_engine.db.log_events import SupabaseLogSource
    from effort_engine.db.subject_embeddings import SupabaseEmbeddingTable

    settings = get_settings()
    fast: Any = RedisEmbeddingCache.from_url(settings.REDIS_URL) if settings.REDIS_URL else None
    if fast is None:
        logger.info("REDIS_URL not set; fast tier disabled")

    store = EmbeddingStore(SupabaseEmbeddingTable(), fast)
    return EffortPipeline(SupabaseLogSource(log_group=log_group), OpenAIEmbeddingModel(), store)
