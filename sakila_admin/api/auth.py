"""Header-based authentication for the admin API."""
from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Header, HTTPException, status


class APIKeyAuth:
    """Dependency enforcing the admin key provided via the ``X-API-Key`` header."""

    def __init__(self, expected_key: Optional[str]) -> None:
        self._expected = (expected_key or "").strip()

    def __call__(self, x_api_key: Optional[str] = Header(None)) -> str:
        if not self._expected:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="API key is not configured.",
            )
        if not x_api_key or not secrets.compare_digest(x_api_key.strip(), self._expected):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing API key.",
            )
        return self._expected


__all__ = ["APIKeyAuth"]
