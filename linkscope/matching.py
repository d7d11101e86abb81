"""URL matching against compiled match patterns, and URL normalization."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List
from urllib.parse import urlsplit, urlunsplit

from .errors import InvalidUrlError
from .patterns import compile_domains, compile_patterns

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"[a-zA-Z][a-zA-Z0-9+.\-]*")

# Schemes whose URLs always carry a host, and an implicit "/" path
_SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp"})


class MatchSet:
    """A precompiled, immutable matcher over a set of match patterns.

    Patterns are parsed and compiled once, at construction. If any pattern is
    invalid the whole set fails with InvalidPatternError.
    """

    __slots__ = ("_regex",)

    def __init__(self, patterns: Iterable[str]) -> None:
        self._regex = re.compile(compile_patterns(patterns), re.IGNORECASE | re.ASCII)

    @classmethod
    def from_domains(cls, domains: Iterable[str], match_subdomains: bool = True) -> "MatchSet":
        """Build a matcher for a plain list of domains (any path, http/https/ws/wss)."""
        matcher = cls.__new__(cls)
        matcher._regex = re.compile(compile_domains(domains, match_subdomains), re.IGNORECASE | re.ASCII)
        return matcher

    @property
    def regex_source(self) -> str:
        return self._regex.pattern

    def test(self, url: str) -> bool:
        """Return True if *url* matches any pattern in the set."""
        return self._regex.fullmatch(url) is not None

    def filter(self, urls: Iterable[str]) -> List[str]:
        """Return the URLs that match, in their original order."""
        return [url for url in urls if self.test(url)]

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and self.test(url)

    def __repr__(self) -> str:
        return f"MatchSet({self._regex.pattern!r})"


def normalize_url(url: str) -> str:
    """Normalize a URL for comparison.

    The scheme and host are lower-cased and the port, query string and
    fragment are removed, e.g. ``HTTPS://WWW.Mozilla.org:443/a?b#c`` becomes
    ``https://www.mozilla.org/a``. Raises InvalidUrlError if *url* is not an
    absolute URL.
    """
    try:
        parts = urlsplit(url.strip())
        parts.port  # raises ValueError for a malformed port
    except (ValueError, AttributeError):
        raise InvalidUrlError(url) from None

    scheme = parts.scheme.lower()
    if not scheme or not _SCHEME_RE.fullmatch(scheme):
        raise InvalidUrlError(url)

    path = parts.path
    if scheme in _SPECIAL_SCHEMES:
        if not parts.hostname:
            raise InvalidUrlError(url)
        if not path:
            path = "/"
    elif not parts.netloc and not path:
        raise InvalidUrlError(url)

    netloc = parts.netloc
    if parts.hostname is not None:
        host = parts.hostname
        if ":" in host:
            host = f"[{host}]"
        userinfo = netloc.rpartition("@")[0] if "@" in netloc else ""
        netloc = f"{userinfo}@{host}" if userinfo else host
    return urlunsplit((scheme, netloc, path, "", ""))
