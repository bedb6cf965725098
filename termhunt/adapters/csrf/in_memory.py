"""In-memory CSRF token store.

Tokens live in a process-wide dict guarded by a lock. Expired entries are
purged when a validation hits them and swept on every issuance, so the table
only grows with the number of sessions active within one expiry period.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable

from termhunt.adapters.csrf.base import AbstractCSRFTokenStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60
DEFAULT_TOKEN_BYTES = 32


@dataclass(frozen=True)
class TokenRecord:
    token: str
    timestamp: float


class InMemoryCSRFTokenStore(AbstractCSRFTokenStore):
    """Thread-safe, per-process CSRF token store.

    Attributes:
        ttl_seconds: Lifetime of an issued token.
        token_bytes: Random bytes per token (hex-encoded, so twice as many chars).
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        token_bytes: int = DEFAULT_TOKEN_BYTES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if token_bytes < 16:
            raise ValueError("token_bytes must be >= 16")

        self._ttl = ttl_seconds
        self._token_bytes = token_bytes
        self._clock = clock
        self._lock = threading.RLock()
        self._tokens: dict[str, TokenRecord] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def token_bytes(self) -> int:
        return self._token_bytes

    def issue(self, session_id: str) -> str:
        """Generate and store a fresh token for session_id.

        Overwrites any previous token for the session with no grace period,
        then sweeps expired tokens of every session.

        Args:
            session_id: Opaque session identifier.

        Returns:
            Hex-encoded random token.
        """

        token = secrets.token_hex(self._token_bytes)
        with self._lock:
            self._tokens[session_id] = TokenRecord(token=token, timestamp=self._clock())
            removed = self._sweep_expired_locked()
            size = len(self._tokens)

        logger.debug("csrf.store.issued", extra={"swept": removed, "size": size})
        return token

    def validate(self, session_id: str, candidate: str) -> bool:
        """Check candidate against the stored token for session_id.

        Expired records are deleted on the spot. A mismatch leaves the record
        in place so the client can retry with the right token.

        Args:
            session_id: Opaque session identifier.
            candidate: Token presented by the client.

        Returns:
            True only for an exact match with a live token.
        """

        with self._lock:
            record = self._tokens.get(session_id)
            if record is None:
                return False

            if self._is_expired(record, self._clock()):
                del self._tokens[session_id]
                return False

            stored = record.token

        if not isinstance(candidate, str):
            return False
        return hmac.compare_digest(stored.encode(), candidate.encode())

    def remove(self, session_id: str) -> None:
        with self._lock:
            self._tokens.pop(session_id, None)

    def sweep_expired(self) -> int:
        """Remove every expired token.

        Returns:
            Number of records removed.
        """

        with self._lock:
            return self._sweep_expired_locked()

    def stats(self) -> dict[str, int | float]:
        """Return lightweight store metrics without exposing tokens."""

        with self._lock:
            return {
                "ttl_seconds": self._ttl,
                "token_bytes": self._token_bytes,
                "entries": len(self._tokens),
            }

    def _is_expired(self, record: TokenRecord, now: float) -> bool:
        return now - record.timestamp > self._ttl

    def _sweep_expired_locked(self) -> int:
        now = self._clock()
        expired = [sid for sid, record in self._tokens.items() if self._is_expired(record, now)]
        for sid in expired:
            del self._tokens[sid]
        return len(expired)
