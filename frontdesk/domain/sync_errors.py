from __future__ import annotations

from frontdesk.core.errors import ExternalServiceError, PersistenceError, TransientExternalError, ValidationError


class UnknownPartitionError(ValidationError):
    def __init__(self, partition: str) -> None:
        super().__init__(f"Unknown local store partition: {partition!r}")
        self.partition = partition


class StoreUnavailableError(PersistenceError):
    pass


class ReplayRejectedError(ExternalServiceError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApiUnreachableError(TransientExternalError):
    pass
