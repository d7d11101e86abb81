"""Data models for parsed patterns and link resolution."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import List, Mapping, Optional


@dataclass(frozen=True)
class ParsedPattern:
    """A match pattern split into its scheme, host and path parts.

    When ``all_urls`` is set the remaining fields carry no meaning.
    """

    all_urls: bool = False
    scheme: str = ""
    match_subdomains: bool = False
    host: str = ""
    path: str = ""


@dataclass(frozen=True)
class Resolution:
    """Where a requested URL ended up after following its redirects."""

    source: str
    destination: str

    def to_dict(self) -> dict:
        return {"source": self.source, "destination": self.destination}


@dataclass
class ResponseEvent:
    """Response headers observed by the network layer for one request."""

    url: str
    status_code: int = 0
    headers: Mapping[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    def header(self, name: str) -> Optional[str]:
        """Look up a header value by name, ignoring case."""
        value = self.headers.get(name)
        if value is not None:
            return value
        lowered = name.lower()
        for key, val in self.headers.items():
            if key.lower() == lowered:
                return val
        return None

    @property
    def location(self) -> Optional[str]:
        return self.header("Location")


@dataclass
class PendingResolution:
    """Continuations waiting on the chain that starts at ``url``."""

    url: str
    futures: List["asyncio.Future[Resolution]"] = field(default_factory=list)
    first_requested_at: float = field(default_factory=time.monotonic)
