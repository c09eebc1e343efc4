"""Pydantic models for the client effort embedding pipeline.

Log events flow in, an EffortAnalysis is derived from them, and the
resulting vector is persisted as one EmbeddingRecord per
(subject_id, embedding_type).
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Embedding types
# ---------------------------------------------------------------------------

EMBEDDING_TYPE_CLIENT_EFFORT = "client_effort"
EMBEDDING_TYPE_ACTIVITY_LOGS = "activity_logs"
DEFAULT_EMBEDDING_TYPE = "raw_text"


# ---------------------------------------------------------------------------
# Log events
# ---------------------------------------------------------------------------


class LogEvent(BaseModel):
    """One raw log line with its emission time (epoch milliseconds)."""

    model_config = ConfigDict(frozen=True)

    message: str
    timestamp: int
    fields: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Analysis results
# ---------------------------------------------------------------------------


class EffortAnalysis(BaseModel):
    """Friction signals for one event sequence, plus the 0-100 composite score."""

    error_count: int = 0
    repeated_click_count: int = 0
    back_forth_navigation_count: int = 0
    channel_switch_count: int = 0
    effort_score: float = 0.0
    high_error_rate: bool = False
    high_repeated_clicks: bool = False
    high_back_forth_navigation: bool = False
    high_channel_switching: bool = False
    high_effort: bool = False

    def numeric_fields(self) -> dict[str, int | float]:
        """Return the count and score fields, skipping the boolean flags."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if isinstance(value, (int, float)) and not isinstance(value, bool)
        }


class JourneyStep(BaseModel):
    """A single API interaction in a subject's journey."""

    timestamp: int
    path: str | None = None
    method: str | None = None
    status_code: str | None = None


class BehaviorAnalysis(BaseModel):
    """Histogram view of a subject's API activity over a window."""

    total_logs: int
    time_period_hours: int
    api_paths: dict[str, int] = Field(default_factory=dict)
    status_codes: dict[str, int] = Field(default_factory=dict)
    error_types: dict[str, int] = Field(default_factory=dict)
    user_journey: list[JourneyStep] = Field(default_factory=list)
    success_rate: float = 0.0


class AnomalyReport(BaseModel):
    """Result of comparing a subject's fresh activity embedding to the stored one."""

    subject_id: str
    similarity_score: float
    is_anomaly: bool
    threshold: float
    behavior_analysis: BehaviorAnalysis


# ---------------------------------------------------------------------------
# Storage models
# ---------------------------------------------------------------------------


class EmbeddingMetadata(BaseModel):
    """Source, model and timing details stored alongside a vector."""

    source_type: str
    model_id: str
    encoding_details: dict[str, Any] = Field(default_factory=dict)
    performance_metrics: dict[str, Any] = Field(default_factory=dict)
    timestamp: int = 0


class EmbeddingRecord(BaseModel):
    """One stored vector, keyed by (subject_id, embedding_type)."""

    subject_id: str
    embedding_type: str
    vector: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("vector", mode="before")
    @classmethod
    def _parse_vector(cls, value: Any) -> Any:
        # pgvector columns come back from PostgREST as "[0.1,0.2,...]"
        if isinstance(value, str):
            return json.loads(value)
        return value

    def to_row(self) -> dict[str, Any]:
        """Serialize to a durable-tier row."""
        return {
            "subject_id": self.subject_id,
            "embedding_type": self.embedding_type,
            "embedding": self.vector,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> EmbeddingRecord:
        """Build a record from a durable-tier row."""
        return cls(
            subject_id=row["subject_id"],
            embedding_type=row["embedding_type"],
            vector=row["embedding"],
            metadata=row.get("metadata") or {},
            created_at=row.get("created_at") or datetime.now(UTC),
        )
