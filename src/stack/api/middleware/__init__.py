"""HTTP middleware."""

from stack.api.middleware.correlation import CorrelationMiddleware

__all__ = ["CorrelationMiddleware"]
