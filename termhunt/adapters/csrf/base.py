"""CSRF token store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractCSRFTokenStore(ABC):
    """Issues and validates one anti-forgery token per session."""

    @abstractmethod
    def issue(self, session_id: str) -> str:
        """Generate a token for session_id, invalidating any previous one."""
        raise NotImplementedError

    @abstractmethod
    def validate(self, session_id: str, candidate: str) -> bool:
        """Return True if candidate is the live token for session_id."""
        raise NotImplementedError

    @abstractmethod
    def remove(self, session_id: str) -> None:
        """Drop the token for session_id (no-op if absent)."""
        raise NotImplementedError
