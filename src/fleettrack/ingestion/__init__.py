"""Ingestion layer.

Helpers that turn raw backend rows into normalized domain objects.
"""

__all__: list[str] = []
