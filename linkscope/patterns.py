"""Match pattern parsing and compilation to regular expressions.

Match patterns follow the WebExtensions syntax: ``<scheme>://<host><path>``
with ``*`` wildcards, plus the special ``<all_urls>`` pattern. Domain lists
are expanded into ``*://*.<domain>/*`` patterns before compiling.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List

from .errors import InvalidPatternError
from .models import ParsedPattern

logger = logging.getLogger(__name__)

ALL_URLS = "<all_urls>"

# Coarse structural check, the same shapes Firefox accepts in manifests
_VALIDATION_RE = re.compile(
    r"(<all_urls>)"
    r"|((https?|wss?|file|ftp|\*)://(\*|\*\.[^*/]+|[^*/]+)/.*)"
    r"|(file:///.*)"
    r"|(data:.*)",
    re.IGNORECASE,
)

PERMITTED_SCHEMES = frozenset({"*", "http", "https", "ws", "wss", "file", "ftp", "data"})

# Schemes followed by "://" rather than ":"
HOST_LOCATOR_SCHEMES = frozenset({"*", "http", "https", "ws", "wss", "file", "ftp"})

_WILDCARD_SCHEME_RE = r"(?:https?|wss?)"
_WILDCARD_HOST_RE = r"\[?[a-zA-Z0-9\-.]+\]?"
_SUBDOMAINS_RE = r"(?:[a-zA-Z0-9\-]+\.)*"
_PORT_RE = r"(?::[0-9]+)?"
_QUERY_FRAGMENT_RE = r"(?:\?.*)?(?:#.*)?"

_ALL_URLS_RE = (
    r"(?:(?:https?|wss?|ftp)://" + _WILDCARD_HOST_RE + _PORT_RE + r"(?:/.*)?)"
    r"|(?:file:///.*)"
    r"|(?:data:.*)"
)

# Never matches anything; used for empty pattern lists
_NOTHING_RE = r"(?!)"

_REGEX_SPECIAL = re.compile(r"[.*+?^${}()|\[\]\\]")


def escape_regex(text: str) -> str:
    """Backslash-escape regular expression metacharacters in *text*."""
    return _REGEX_SPECIAL.sub(r"\\\g<0>", text)


def parse_pattern(pattern: str) -> ParsedPattern:
    """Parse a match pattern string.

    Raises InvalidPatternError if the pattern is malformed, uses a scheme
    outside PERMITTED_SCHEMES, or has no path.
    """
    if not _VALIDATION_RE.fullmatch(pattern):
        raise InvalidPatternError(pattern, "failed validation")

    if pattern == ALL_URLS:
        return ParsedPattern(all_urls=True)

    index = pattern.find(":")
    if index <= 0:
        raise InvalidPatternError(pattern, "missing colon")
    scheme = pattern[:index].lower()
    if scheme not in PERMITTED_SCHEMES:
        raise InvalidPatternError(pattern, "unsupported scheme")

    tail = pattern[index + 1:]
    host = ""
    match_subdomains = False
    if scheme in HOST_LOCATOR_SCHEMES:
        if not tail.startswith("//"):
            raise InvalidPatternError(pattern, "missing // required by scheme")
        tail = tail[2:]
        slash = tail.find("/")
        if slash < 0:
            slash = len(tail)
        host, tail = tail[:slash], tail[slash:]
        if host == "" and scheme != "file":
            raise InvalidPatternError(pattern, "missing host required by scheme")
        if host != "*" and host.startswith("*."):
            host = host[2:]
            if host == "*":
                raise InvalidPatternError(pattern, "subdomain wildcard with host wildcard")
            match_subdomains = True

    if tail == "":
        raise InvalidPatternError(pattern, "missing path")

    return ParsedPattern(
        all_urls=False,
        scheme=scheme,
        match_subdomains=match_subdomains,
        host=host,
        path=tail,
    )


def compile_pattern(parsed: ParsedPattern) -> str:
    """Return an unanchored regular expression for one parsed pattern."""
    if parsed.all_urls:
        return _ALL_URLS_RE

    if parsed.scheme == "*":
        scheme_re = _WILDCARD_SCHEME_RE
    else:
        scheme_re = escape_regex(parsed.scheme)

    host_locator = parsed.scheme in HOST_LOCATOR_SCHEMES
    host_re = ""
    if host_locator:
        if parsed.host == "*":
            host_re = _WILDCARD_HOST_RE
        else:
            host_re = escape_regex(parsed.host)
            if parsed.match_subdomains:
                host_re = _SUBDOMAINS_RE + host_re
        if parsed.scheme != "file":
            host_re += _PORT_RE

    if parsed.path == "/":
        path_re = "/?"
    elif parsed.path == "/*":
        path_re = "(?:/.*)?"
    else:
        path_re = ".*".join(escape_regex(part) for part in parsed.path.split("*"))
    path_re += _QUERY_FRAGMENT_RE

    separator = "://" if host_locator else ":"
    return scheme_re + separator + host_re + path_re


def combine_regex_strings(fragments: Iterable[str]) -> str:
    """Join fragments as alternatives and anchor the result at both ends."""
    fragments = list(fragments)
    if not fragments:
        return "^" + _NOTHING_RE + "$"
    return "^(?:" + "|".join(f"(?:{fragment})" for fragment in fragments) + ")$"


def compile_patterns(patterns: Iterable[str]) -> str:
    """Compile match patterns into one anchored regular expression string.

    Every pattern is parsed before anything is returned, so a single invalid
    pattern fails the whole set.
    """
    patterns = list(patterns)
    fragments = [compile_pattern(parse_pattern(p)) for p in patterns]
    logger.debug("Compiled %d match pattern(s)", len(fragments))
    return combine_regex_strings(fragments)


def domains_to_match_patterns(domains: Iterable[str], match_subdomains: bool = True) -> List[str]:
    """Expand bare domains into ``*://[*.]domain/*`` match patterns."""
    prefix = "*." if match_subdomains else ""
    return [f"*://{prefix}{domain}/*" for domain in domains]


def compile_domains(domains: Iterable[str], match_subdomains: bool = True) -> str:
    """Compile a domain list into one anchored regular expression string."""
    return compile_patterns(domains_to_match_patterns(domains, match_subdomains))
