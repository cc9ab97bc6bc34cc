"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class AnalysisSyncError(Exception):
    """Base class for failures in the holistic-analysis sync engine."""


# ── Storage tier: handled locally, never shown to the user ──────────


class CacheReadFailure(AnalysisSyncError):
    """Raised when the local analysis cache entry cannot be read or parsed."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Cache entry '{key}' unreadable: {reason}")


class RemoteReadFailure(AnalysisSyncError):
    """Raised when the durable store cannot be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Read of '{path}' failed: {reason}")


class RemoteWriteFailure(AnalysisSyncError):
    """Raised when a write to the durable store fails."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Write of '{path}' failed: {reason}")


class VerificationMismatch(AnalysisSyncError):
    """The durable copy does not match the text the generation service returned."""

    def __init__(self, user_id: str, expected_length: int, found_length: int | None):
        self.user_id = user_id
        self.expected_length = expected_length
        self.found_length = found_length
        super().__init__(
            f"Stored analysis for user '{user_id}' does not match generated text "
            f"(expected {expected_length} chars, found {found_length})"
        )


class PersistFallbackFailure(AnalysisSyncError):
    """The engine's own write of a generated artifact could not be confirmed."""

    def __init__(self, user_id: str, reason: str):
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"Could not persist analysis for user '{user_id}': {reason}")


# ── Generation tier: surfaced to the user ───────────────────────────


class GenerationFailure(AnalysisSyncError):
    """Raised when the generation service fails or returns an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"[{status_code}] {message}")
        else:
            super().__init__(message)


class GenerationTimeout(GenerationFailure):
    """Raised when the generation call exceeds its wall-clock budget."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Generation did not complete within {timeout_seconds:g}s")
