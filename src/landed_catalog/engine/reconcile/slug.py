from __future__ import annotations

import re
import time
import unicodedata
from typing import Callable, Optional

from landed_catalog.persistence.catalog_store import CatalogStore
from landed_catalog.util.logging import get_logger, log_event

DEFAULT_MAX_ATTEMPTS = 50
FALLBACK_SLUG = "product"
MAX_SLUG_LENGTH = 80

logger = get_logger(__name__)


def slugify(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", str(text or ""))
    normalized = normalized.encode("ascii", "ignore").decode("ascii")
    normalized = re.sub(r"[^A-Za-z0-9\s-]", "", normalized)
    normalized = re.sub(r"[\s_-]+", "-", normalized).strip("-").lower()
    normalized = normalized[:MAX_SLUG_LENGTH].rstrip("-")
    return normalized or FALLBACK_SLUG


def ensure_unique_slug(
    store: CatalogStore,
    base: str,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    clock: Optional[Callable[[], float]] = None,
) -> str:
    """Return ``base`` slugified, suffixed ``-2``, ``-3``... until unused.

    After ``max_attempts`` lookups fall back to a millisecond timestamp suffix,
    so this always returns a slug.
    """
    slug = slugify(base)
    candidate = slug
    for attempt in range(2, max_attempts + 2):
        if not store.slug_exists(candidate):
            return candidate
        candidate = f"{slug}-{attempt}"
    now = clock() if clock is not None else time.time()
    fallback = f"{slug}-{int(now * 1000)}"
    log_event(logger, "slug_fallback_timestamp", base=slug, slug=fallback, attempts=max_attempts)
    return fallback
