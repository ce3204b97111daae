"""Tests for observability module."""

from httpx import AsyncClient
from prometheus_client import REGISTRY

from llm_memory.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_embedding_request,
    track_llm_request,
    track_memorize,
    track_query,
    track_trim,
    track_vectorstore_operation,
)


def sample(name: str, labels: dict[str, str] | None = None) -> float:
    """Current value of a sample, 0 if it was never recorded."""
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    async def test_metrics_endpoint_returns_prometheus_format(
        self,
        client: AsyncClient,
    ) -> None:
        """Metrics endpoint returns Prometheus format."""
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert b"# HELP" in response.content


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        metrics = get_metrics()
        assert isinstance(metrics, bytes)

    def test_track_llm_request_success(self) -> None:
        """Successful requests count tokens."""
        labels = {"provider": "openai", "model": "metrics-model", "type": "prompt"}
        before = sample("llm_tokens_total", labels)

        track_llm_request(
            "openai",
            "metrics-model",
            duration=1.5,
            prompt_tokens=100,
            completion_tokens=50,
        )

        assert sample("llm_tokens_total", labels) == before + 100

    def test_track_llm_request_failure(self) -> None:
        """Failed requests are counted under the error status."""
        labels = {"provider": "gemini", "model": "metrics-model", "status": "error"}
        before = sample("llm_requests_total", labels)

        track_llm_request("gemini", "metrics-model", duration=0.5, success=False)

        assert sample("llm_requests_total", labels) == before + 1

    def test_track_embedding_request(self) -> None:
        """Embedding requests are counted."""
        labels = {"model": "metrics-embed", "status": "success"}
        before = sample("embedding_requests_total", labels)

        track_embedding_request("metrics-embed", duration=0.1)

        assert sample("embedding_requests_total", labels) == before + 1

    def test_track_vectorstore_operation(self) -> None:
        """Vector store operations are timed."""
        labels = {"operation": "metrics-op", "status": "error"}
        before = sample("vectorstore_operation_duration_seconds_count", labels)

        track_vectorstore_operation("metrics-op", duration=0.02, success=False)

        assert sample("vectorstore_operation_duration_seconds_count", labels) == before + 1

    def test_track_memorize_and_query(self) -> None:
        """Memorized chunks and query sizes are recorded."""
        labels = {"index": "metrics-index"}
        before_chunks = sample("memory_chunks_memorized_total", labels)
        before_queries = sample("memory_query_results_returned_count")

        track_memorize("metrics-index", 3)
        track_query(2)

        assert sample("memory_chunks_memorized_total", labels) == before_chunks + 3
        assert sample("memory_query_results_returned_count") == before_queries + 1

    def test_track_trim(self) -> None:
        """Only actual drops are counted."""
        before = sample("conversation_messages_trimmed_total")

        track_trim(0)
        track_trim(2)

        assert sample("conversation_messages_trimmed_total") == before + 2


class TestMetricsMiddleware:
    """Tests for MetricsMiddleware."""

    async def test_middleware_records_request_metrics(self, client: AsyncClient) -> None:
        """Middleware records HTTP request metrics."""
        labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
        before = sample("http_requests_total", labels)

        await client.get("/health")
        await client.get("/health/live")

        # Both paths are grouped under /health
        assert sample("http_requests_total", labels) == before + 2

    def test_normalizes_record_keys(self) -> None:
        """Record key paths collapse into one endpoint label."""
        middleware = MetricsMiddleware(app=None)

        assert middleware._normalize_endpoint("/api/v1/memories/idx:1:2:abc") == (
            "/api/v1/memories/{key}"
        )
        assert middleware._normalize_endpoint("/api/v1/memories/query") == (
            "/api/v1/memories/query"
        )
        assert middleware._normalize_endpoint("/api/v1/memories") == "/api/v1/memories"
