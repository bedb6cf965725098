"""CSRF token store adapters."""

from termhunt.adapters.csrf.base import AbstractCSRFTokenStore
from termhunt.adapters.csrf.in_memory import InMemoryCSRFTokenStore

__all__ = ["AbstractCSRFTokenStore", "InMemoryCSRFTokenStore"]
