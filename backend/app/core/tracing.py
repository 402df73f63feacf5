"""
OpenTelemetry tracing configuration for the knowledge base backend.

Spans cover the ingestion and retrieval path:
- Document upload (extract, chunk, embed, store)
- Semantic search
- Document deletion

User queries and document text are truncated before they are attached to
spans, and credentials are masked.
"""

import os
import re
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter


def setup_tracing(service_name: str = "voice-agent-kb") -> TracerProvider:
    """
    Initialize OpenTelemetry tracing.

    Environment variables:
    - OTEL_EXPORTER_OTLP_ENDPOINT: OTLP collector endpoint (default: http://localhost:4317)
    - OTEL_TRACES_EXPORTER: "otlp", "console", or "none" (default: none)

    Args:
        service_name: Name of the service for trace identification

    Returns:
        Configured TracerProvider
    """
    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": "0.1.0",
        }
    )

    provider = TracerProvider(resource=resource)

    exporter_type = os.getenv("OTEL_TRACES_EXPORTER", "none").lower()

    if exporter_type == "otlp":
        endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
        exporter = OTLPSpanExporter(endpoint=endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))
    elif exporter_type == "console":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    return provider


def get_tracer(name: str = __name__) -> trace.Tracer:
    """Get a tracer instance for creating spans."""
    return trace.get_tracer(name)


def mask_secret(value: str | None) -> str:
    """
    Mask an API key or token, keeping the first 4 and last 4 characters.
    """
    if not value:
        return "<none>"

    if len(value) <= 12:
        return "***"

    return f"{value[:4]}...{value[-4:]}"


def truncate_text(content: str | None, max_length: int = 100) -> str:
    """Truncate free text (queries, chunk content) for span attributes."""
    if not content:
        return "<empty>"

    content = re.sub(r"\s+", " ", content).strip()
    if len(content) > max_length:
        content = content[:max_length] + "..."

    return content


def safe_span_attributes(**kwargs: Any) -> dict[str, Any]:
    """
    Create span attributes with automatic sanitization.

    - keys containing token/secret/key/password are masked
    - keys containing query/text/content/snippet are truncated
    - None values are dropped, non-primitive values are stringified
    """
    sanitized = {}

    for key, value in kwargs.items():
        if value is None:
            continue

        lowered = key.lower()
        if any(secret_key in lowered for secret_key in ["token", "secret", "api_key", "password"]):
            sanitized[key] = mask_secret(str(value))
        elif any(text_key in lowered for text_key in ["query", "text", "content", "snippet"]):
            sanitized[key] = truncate_text(str(value))
        elif isinstance(value, (str, int, float, bool)):
            sanitized[key] = value
        else:
            sanitized[key] = str(value)

    return sanitized
