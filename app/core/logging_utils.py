"""
Logging utilities for safe logging of user data and provider calls.

Includes:
- Secret redaction and truncation for tool parameters and meeting text
- Structured usage logging for embedding/completion API calls
"""
import json
import logging
import re
from typing import Any, Optional


# Sensitive keys that should be redacted in logs
SENSITIVE_KEYS = [
    "api_key", "token", "password", "secret", "auth",
    "access_token", "refresh_token", "bearer", "authorization",
]


def sanitize_for_logging(data: Any, max_len: int = 100) -> Any:
    """
    Sanitize data for safe logging - redacts secrets and truncates text.

    Args:
        data: The data to sanitize (can be dict, list, str, or other types)
        max_len: Maximum length for string values before truncation

    Returns:
        Sanitized version of the data safe for logging
    """
    if data is None:
        return "None"

    # Handle dictionaries - recursively sanitize values
    if isinstance(data, dict):
        sanitized = {}
        for k, v in data.items():
            if any(sensitive in str(k).lower() for sensitive in SENSITIVE_KEYS):
                sanitized[k] = "***REDACTED***"
            else:
                sanitized[k] = sanitize_for_logging(v, max_len)
        return sanitized

    if isinstance(data, (list, tuple)):
        return [sanitize_for_logging(item, max_len) for item in data]

    if isinstance(data, str):
        # Remove control characters and newlines for single-line logging
        cleaned = re.sub(r'[\x00-\x1F\x7F]', '', data)
        if len(cleaned) > max_len:
            return cleaned[:max_len] + "..."
        return cleaned

    if isinstance(data, (bool, int, float)):
        return data

    return sanitize_for_logging(str(data), max_len)


def preview(text: Optional[str], max_len: int = 100) -> str:
    """Single-line, truncated preview of meeting text."""
    if not text:
        return ""
    return sanitize_for_logging(text, max_len)


# =============================================================================
# STRUCTURED PROVIDER USAGE LOGGING
# =============================================================================

_usage_logger = logging.getLogger("Converse.Usage")


def log_ai_call(
    logger: Optional[logging.Logger] = None,
    *,
    provider: str,
    model: str,
    operation: str,
    input_tokens: Optional[int] = None,
    output_tokens: Optional[int] = None,
    duration_ms: Optional[float] = None,
) -> None:
    """
    Log a structured usage event for an embedding or completion call.

    Produces a single ``AI_CALL {json}`` line that log aggregation can parse.

    Args:
        logger: Logger to emit on (defaults to the shared usage logger)
        provider: 'openai' or 'anthropic'
        model: Model identifier
        operation: 'embedding', 'keywords', 'summary', ...
        input_tokens: Prompt tokens, when reported
        output_tokens: Completion tokens, when reported
        duration_ms: Request duration in milliseconds
    """
    event = {
        "event": "ai_call",
        "provider": provider,
        "model": model,
        "operation": operation,
    }
    if input_tokens is not None:
        event["input_tokens"] = input_tokens
    if output_tokens is not None:
        event["output_tokens"] = output_tokens
    if duration_ms is not None:
        event["duration_ms"] = int(duration_ms)

    (logger or _usage_logger).info("AI_CALL %s", json.dumps(event))
