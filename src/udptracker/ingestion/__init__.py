"""Ingestion layer.

Adapters that turn raw service payloads (HTTP body, live events) into
normalized location records.
"""

__all__: list[str] = []
