"""Observability — logging setup and user-facing output sinks."""
