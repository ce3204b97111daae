"""Observability module for metrics and monitoring."""

from llm_memory.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_embedding_request,
    track_llm_request,
    track_memorize,
    track_query,
    track_trim,
    track_vectorstore_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "get_metrics_content_type",
    "track_embedding_request",
    "track_llm_request",
    "track_memorize",
    "track_query",
    "track_trim",
    "track_vectorstore_operation",
]
