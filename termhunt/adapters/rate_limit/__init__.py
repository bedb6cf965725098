"""Rate limiting adapters.

Attempt counting lives behind a small interface so the in-memory store used
by single-instance deployments can later be replaced by a shared store
without touching the HTTP layer.
"""
