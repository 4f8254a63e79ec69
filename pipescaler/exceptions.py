"""
Custom exception classes for pipescaler.
Every failure inside a tick is turned into one of these and reported as an alert.
"""

from typing import Any, Dict, Optional


class PipeScalerError(Exception):
    """Base exception class for pipescaler."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ConfigurationError(PipeScalerError):
    """Raised when configuration is invalid or missing."""
    pass


class ExternalServiceError(PipeScalerError):
    """Raised when a call to an external service fails."""

    def __init__(self, message: str, status: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        if status is not None:
            context.setdefault("status", status)
        super().__init__(message, context)
        self.status = status


class AuthenticationError(ExternalServiceError):
    """Raised when an access token cannot be obtained."""
    pass


class ProbeError(PipeScalerError):
    """A status probe for one signal failed."""

    def __init__(self, signal: str, message: str, cause: Optional[BaseException] = None,
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        context.setdefault("signal", signal)
        super().__init__(message, context)
        self.signal = signal
        self.cause = cause


class UnexpectedShapeError(ProbeError):
    """A service answered, but without the fields we need."""
    pass


class ActionError(PipeScalerError):
    """A scale command failed."""

    def __init__(self, action: str, message: str, cause: Optional[BaseException] = None,
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        context.setdefault("action", action)
        super().__init__(message, context)
        self.action = action
        self.cause = cause


class ErrorContext:
    """Context manager that tags pipescaler errors with where they happened."""

    def __init__(self, operation: str, component: str = "pipescaler"):
        self.operation = operation
        self.component = component
        self.context = {}

    def add_context(self, **kwargs) -> 'ErrorContext':
        """Add context information."""
        self.context.update(kwargs)
        return self

    def __enter__(self) -> 'ErrorContext':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            return False

        if isinstance(exc_val, PipeScalerError):
            for key, value in {'operation': self.operation,
                               'component': self.component,
                               **self.context}.items():
                exc_val.context.setdefault(key, value)

        return False
