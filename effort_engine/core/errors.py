"""Error taxonomy for the effort embedding pipeline.

Pure stages (pattern extraction, effort analysis, narrative rendering) never
raise. Only the I/O stages raise these, and nothing retries them internally:
the caller decides whether to try again.
"""


class EffortEngineError(Exception):
    """Base exception for Effort Engine errors."""

    def __init__(
        self,
        message: str,
        subject_id: str | None = None,
        embedding_type: str | None = None,
    ):
        super().__init__(message)
        self.subject_id = subject_id
        self.embedding_type = embedding_type


class EmptyResultError(EffortEngineError):
    """The log source returned no events for the requested subject/window."""

    def __init__(self, subject_id: str, window_hours: int):
        super().__init__(
            f"No logs found for subject {subject_id} in the last {window_hours}h",
            subject_id=subject_id,
        )
        self.window_hours = window_hours


class UpstreamModelError(EffortEngineError):
    """The embedding model call failed or returned an unusable vector."""


class StoreWriteError(EffortEngineError):
    """The durable tier rejected a write."""


class NotFoundError(EffortEngineError):
    """A prior embedding required by a comparison does not exist."""

    def __init__(self, subject_id: str, embedding_type: str):
        super().__init__(
            f"No {embedding_type} embedding stored for subject {subject_id}",
            subject_id=subject_id,
            embedding_type=embedding_type,
        )
