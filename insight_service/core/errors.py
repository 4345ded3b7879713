"""Error kinds raised or returned by the insight engine."""


class InsightServiceError(Exception):
    """Base class for all engine errors."""


class InsufficientData(InsightServiceError):
    """The student has no marks, study sessions or goals at all."""

    def __init__(self, student_id: str):
        super().__init__(f"No academic records found for student {student_id}")
        self.student_id = student_id


class AnalysisError(InsightServiceError):
    """Failure on the remote analysis path. Always recovered by the fallback."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class RemoteAnalysisUnavailable(AnalysisError):
    """Network error, timeout, non-2xx response or disabled remote analyzer."""


class RemoteAnalysisMalformed(AnalysisError):
    """The remote analyzer answered but the payload failed validation."""


class PersistenceFailure(InsightServiceError):
    """A write to the insight/suggestion store failed."""

    def __init__(self, operation: str, detail: str, unsaved=None):
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation
        self.detail = detail
        # Output of the run that could not be stored, kept so the write can be retried
        self.unsaved = unsaved


class RecordStoreError(InsightServiceError):
    """Reading the student's academic records failed."""


class RecordNotFound(InsightServiceError):
    """An insight or suggestion id does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class InvalidStatusTransition(InsightServiceError):
    """Suggestion status change not allowed from its current state."""

    def __init__(self, suggestion_id: str, current: str, requested: str):
        super().__init__(
            f"Suggestion {suggestion_id} cannot move from '{current}' to '{requested}'"
        )
        self.suggestion_id = suggestion_id
        self.current = current
        self.requested = requested
