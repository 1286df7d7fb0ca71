"""
Download token store.

Tokens map to the storage keys a buyer may download. They live in the Django cache
(Redis in production) with a short TTL and can be redeemed once.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.conf import settings
from django.core.cache import caches

from apps.common.constants import DOWNLOAD_TOKEN_TTL_SECONDS

logger = logging.getLogger(__name__)

KEY_PREFIX = "download-token"


class DownloadTokenStore:
    """Short-lived, single-use download grants"""

    def __init__(self, alias: str | None = None, ttl_seconds: int | None = None):
        self.alias = alias or getattr(settings, "DOWNLOAD_TOKEN_CACHE_ALIAS", "default")
        self.ttl_seconds = ttl_seconds or getattr(settings, "DOWNLOAD_TOKEN_TTL_SECONDS", DOWNLOAD_TOKEN_TTL_SECONDS)

    @property
    def cache(self) -> Any:
        return caches[self.alias]

    @staticmethod
    def _key(token: str) -> str:
        return f"{KEY_PREFIX}:{token}"

    def issue(self, storage_keys: list[str]) -> str:
        token = str(uuid.uuid4())
        self.cache.set(self._key(token), list(storage_keys), timeout=self.ttl_seconds)
        logger.debug(f"🔑 [Downloads] Issued token for {len(storage_keys)} file(s)")
        return token

    def peek(self, token: str) -> list[str] | None:
        """Storage keys for a live token without consuming it."""
        if not token:
            return None
        return self.cache.get(self._key(token))

    def redeem(self, token: str) -> list[str] | None:
        """Storage keys for a live token; the token is gone afterwards."""
        if not token:
            return None
        key = self._key(token)
        files = self.cache.get(key)
        if files is None:
            return None
        # A concurrent redeem that deleted first wins
        if not self.cache.delete(key):
            return None
        return files
