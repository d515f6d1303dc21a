from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for all application-level errors."""

    def __init__(self, message: str = "", context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})
        super().__init__(self.message)

    def add_context(self, **context: Any) -> "AppError":
        """Attach request context (operation, page, batch...) without wrapping the error."""
        for key, value in context.items():
            self.context.setdefault(key, value)
        return self

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class InfrastructureError(AppError):
    """Base for infrastructure-related errors (DB, API, etc)."""
    pass

class StoreUnavailable(InfrastructureError):
    """The record store could not be reached or did not answer in time.

    Transient: callers may retry with backoff.
    """
    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        super().__init__(f"Record store unavailable during '{operation}': {detail}", {"operation": operation})

class StoreWriteError(InfrastructureError):
    """A write was rejected (constraint violation or failed transaction). Never retried automatically."""
    def __init__(
        self,
        operation: str,
        detail: str = "",
        batch_number: Optional[int] = None,
        batch_size: Optional[int] = None,
        committed: int = 0,
    ):
        self.operation = operation
        self.batch_number = batch_number
        self.batch_size = batch_size
        self.committed = committed
        context: Dict[str, Any] = {"operation": operation}
        if batch_number is not None:
            context.update(batch_number=batch_number, batch_size=batch_size, committed=committed)
        super().__init__(f"Write rejected during '{operation}': {detail}", context)
