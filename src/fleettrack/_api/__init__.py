"""Backend endpoint modules (internal)."""
