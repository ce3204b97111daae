"""Prometheus metrics for llm-memory.

Provides metrics instrumentation for:
- HTTP request latency and counts
- Chat provider latency and token usage
- Embedding request latency
- Vector store operations
- Memory ingestion, queries and conversation trimming
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

# HTTP Request Metrics
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

# Chat Provider Metrics
LLM_REQUEST_DURATION = Histogram(
    "llm_request_duration_seconds",
    "Chat provider request duration in seconds",
    ["provider", "model", "status"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

LLM_REQUEST_TOTAL = Counter(
    "llm_requests_total",
    "Total chat provider requests",
    ["provider", "model", "status"],
)

LLM_TOKENS_TOTAL = Counter(
    "llm_tokens_total",
    "Total tokens reported by chat providers",
    ["provider", "model", "type"],  # "type" label values: prompt, completion
)

# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["model", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)

# Vector Store Metrics
VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Vector store operation duration",
    ["operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

# Memory Metrics
MEMORIZED_CHUNKS_TOTAL = Counter(
    "memory_chunks_memorized_total",
    "Total chunks embedded and stored",
    ["index"],
)

QUERY_RESULTS_RETURNED = Histogram(
    "memory_query_results_returned",
    "Number of results returned per memory query",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50],
)

CONVERSATION_MESSAGES_TRIMMED = Counter(
    "conversation_messages_trimmed_total",
    "Messages dropped from conversation windows to fit the token budget",
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware recording HTTP request metrics."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Record duration and count for each request."""
        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        endpoint = self._normalize_endpoint(request.url.path)

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).observe(duration)

        HTTP_REQUEST_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality."""
        if path.startswith("/health"):
            return "/health"
        # Record keys are unbounded; collapse them
        if path.startswith("/api/v1/memories/") and path != "/api/v1/memories/query":
            return "/api/v1/memories/{key}"
        return path


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def track_llm_request(
    provider: str,
    model: str,
    duration: float,
    prompt_tokens: int = 0,
    completion_tokens: int = 0,
    success: bool = True,
) -> None:
    """Track chat provider request metrics.

    Args:
        provider: Provider tag.
        model: Model name.
        duration: Request duration in seconds.
        prompt_tokens: Number of prompt tokens.
        completion_tokens: Number of completion tokens.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    LLM_REQUEST_DURATION.labels(provider=provider, model=model, status=status).observe(
        duration
    )
    LLM_REQUEST_TOTAL.labels(provider=provider, model=model, status=status).inc()

    if success:
        LLM_TOKENS_TOTAL.labels(provider=provider, model=model, type="prompt").inc(
            prompt_tokens
        )
        LLM_TOKENS_TOTAL.labels(provider=provider, model=model, type="completion").inc(
            completion_tokens
        )


def track_embedding_request(
    model: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track embedding request metrics.

    Args:
        model: Embedding model name.
        duration: Request duration in seconds.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()


def track_vectorstore_operation(
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track a vector store operation."""
    status = "success" if success else "error"
    VECTORSTORE_OPERATION_DURATION.labels(operation=operation, status=status).observe(
        duration
    )


def track_memorize(index: str, chunks: int) -> None:
    """Count chunks stored by a memorize call."""
    MEMORIZED_CHUNKS_TOTAL.labels(index=index).inc(chunks)


def track_query(results_returned: int) -> None:
    """Record the size of a memory query result."""
    QUERY_RESULTS_RETURNED.observe(results_returned)


def track_trim(dropped: int) -> None:
    """Count messages dropped by conversation trimming."""
    if dropped > 0:
        CONVERSATION_MESSAGES_TRIMMED.inc(dropped)
