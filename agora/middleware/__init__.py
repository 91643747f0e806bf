"""HTTP middleware."""
from agora.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
