"""Reddit-backed product recommendation service."""
