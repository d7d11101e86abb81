"""Catalogue of link-shortening services whose URLs need resolving."""

from __future__ import annotations

from .matching import MatchSet

SHORT_DOMAINS = (
    "adf.ly",
    "amzn.to",
    "bit.do",
    "bit.ly",
    "buff.ly",
    "cutt.ly",
    "dlvr.it",
    "fb.me",
    "goo.gl",
    "ift.tt",
    "is.gd",
    "lnkd.in",
    "ow.ly",
    "rb.gy",
    "shorturl.at",
    "t.co",
    "t.ly",
    "tiny.cc",
    "tinyurl.com",
    "trib.al",
    "v.gd",
    "wp.me",
    "youtu.be",
)

_SHORT_URL_MATCHER = MatchSet.from_domains(SHORT_DOMAINS)


def short_url_matcher() -> MatchSet:
    """Matcher for URLs on any domain in SHORT_DOMAINS (or its subdomains)."""
    return _SHORT_URL_MATCHER


def is_short_url(url: str) -> bool:
    return _SHORT_URL_MATCHER.test(url)
