"""Exception hierarchy for pattern compilation and link resolution."""

from __future__ import annotations

from typing import List, Optional


class LinkscopeError(Exception):
    """Base class for all linkscope errors."""


class InvalidPatternError(LinkscopeError, ValueError):
    """A match pattern is malformed or uses an unsupported scheme."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid match pattern, {reason}: {pattern!r}")
        self.pattern = pattern
        self.reason = reason


class InvalidUrlError(LinkscopeError, ValueError):
    """A string could not be parsed as an absolute URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid absolute URL: {url!r}")
        self.url = url


class NotInitializedError(LinkscopeError, RuntimeError):
    """Resolution was requested before the response hook was attached."""


class ResolutionError(LinkscopeError):
    """A redirect chain could not be followed to a terminal response."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(message)
        self.source = source


class ResolutionTimeoutError(ResolutionError):
    def __init__(self, source: str, timeout: float) -> None:
        super().__init__(source, f"Resolution of {source} timed out after {timeout:g}s")
        self.timeout = timeout


class RedirectLoopError(ResolutionError):
    """The chain revisited a URL it had already passed through."""

    def __init__(self, source: str, chain: List[str]) -> None:
        super().__init__(source, f"Redirect loop: {' -> '.join(chain)}")
        self.chain = chain


class TooManyRedirectsError(ResolutionError):
    def __init__(self, source: str, limit: int) -> None:
        super().__init__(source, f"Exceeded {limit} redirects resolving {source}")
        self.limit = limit


class FetchError(ResolutionError):
    """The network layer reported a transport failure for one hop."""

    def __init__(self, source: str, url: str, detail: Optional[str] = None) -> None:
        message = f"Request for {url} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(source, message)
        self.url = url


class ResolutionCancelledError(ResolutionError):
    def __init__(self, source: str) -> None:
        super().__init__(source, f"Resolution of {source} was cancelled")
