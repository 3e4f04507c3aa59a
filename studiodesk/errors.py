"""Error taxonomy for appointment reconciliation"""

from typing import Optional


class ReconciliationError(Exception):
    """Base error carrying the sub-step that failed"""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def with_stage(self, stage: str) -> "ReconciliationError":
        if self.stage is None:
            self.stage = stage
        return self

    def __repr__(self):
        return f"{type(self).__name__}(stage={self.stage!r}, message={self.message!r})"


class NotFoundError(ReconciliationError):
    """A lookup returned no row"""


class PermissionDeniedError(ReconciliationError):
    """The acting user does not own the record"""


class PersistenceError(ReconciliationError):
    """The store rejected a read or write"""


class ValidationError(ReconciliationError):
    """The caller supplied an unusable request"""
