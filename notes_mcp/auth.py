"""
Access Gate

Checks the bearer credential of every inbound request against the configured
secret and derives the partition key the request is served from.
"""

from __future__ import annotations

import hashlib
import logging
import secrets

from fastapi import Request

from notes_mcp.exceptions import AuthorizationError

logger = logging.getLogger("notes.mcp.auth")

PUBLIC_PARTITION = "public"
BEARER_PREFIX = "Bearer "


def derive_partition_key(token: str | None) -> str:
    """Same credential always maps to the same partition."""
    if not token:
        return PUBLIC_PARTITION
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AccessGate:
    """
    Bearer credential check.

    With no secret configured every request is let through.
    """

    def __init__(self, secret: str | None = None):
        self.secret = secret or None

    @property
    def enabled(self) -> bool:
        return self.secret is not None

    def check(self, authorization: str | None) -> str:
        """
        Validate an ``Authorization`` header value.

        Returns:
            The partition key for the request

        Raises:
            AuthorizationError: If a secret is configured and the header does not match it exactly
        """
        if self.enabled:
            expected = f"{BEARER_PREFIX}{self.secret}"
            if authorization is None or not secrets.compare_digest(
                authorization.encode("utf-8"), expected.encode("utf-8")
            ):
                logger.warning("Rejected request with missing or invalid bearer credential")
                raise AuthorizationError("Unauthorized")

        token = None
        if authorization and authorization.startswith(BEARER_PREFIX):
            token = authorization[len(BEARER_PREFIX):].strip()
        return derive_partition_key(token)

    async def __call__(self, request: Request) -> str:
        """FastAPI dependency form of ``check``."""
        return self.check(request.headers.get("Authorization"))
