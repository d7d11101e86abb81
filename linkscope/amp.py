"""Decode publisher domains from AMP cache URLs."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

from .matching import MatchSet

logger = logging.getLogger(__name__)

AMP_CACHE_DOMAINS = ("cdn.ampproject.org", "amp.cloudflare.com", "bing-amp.com")

_AMP_CACHE_MATCHER = MatchSet.from_domains(AMP_CACHE_DOMAINS)


def is_amp_cache_url(url: str) -> bool:
    return _AMP_CACHE_MATCHER.test(url)


def resolve_amp_url(url: str) -> Optional[str]:
    """Return the publisher domain encoded in an AMP cache URL.

    AMP caches serve ``www.example-news.com`` from a host like
    ``www-example--news-com.cdn.ampproject.org``: each ``-`` in the first
    label stands for ``.`` and each ``--`` for a literal ``-``. Returns None
    for URLs that are not served from a known AMP cache.
    """
    if not is_amp_cache_url(url):
        return None
    host = urlsplit(url).hostname or ""
    if host in AMP_CACHE_DOMAINS:
        # Bare cache host, no encoded publisher
        return None
    label = host.split(".", 1)[0]
    domain = "-".join(part.replace("-", ".") for part in label.split("--"))
    logger.debug("AMP cache URL %s serves %s", url, domain)
    return domain
