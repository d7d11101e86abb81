"""Resolver configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ResolverConfig:
    """Configuration for a redirect resolver and its network layer."""

    timeout: float = 30.0  # per-chain deadline, seconds
    max_redirects: int = 30
    request_timeout: int = 10
    method: str = "HEAD"  # "HEAD" or "GET"
    user_agent: str = ""
    workers: int = 4
