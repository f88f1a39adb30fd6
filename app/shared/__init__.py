# Shared utilities
from .correlation import (
    CorrelationContext,
    CorrelationMiddleware,
    get_correlation_id,
)
from .fallback import with_fallback

__all__ = [
    "CorrelationContext",
    "CorrelationMiddleware",
    "get_correlation_id",
    "with_fallback",
]
