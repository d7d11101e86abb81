"""Redirect-chain resolution: follow shortened links to their destination."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, FrozenSet, List, Optional, Set
from urllib.parse import urljoin

from .config import ResolverConfig
from .errors import (
    FetchError,
    NotInitializedError,
    RedirectLoopError,
    ResolutionCancelledError,
    ResolutionError,
    ResolutionTimeoutError,
    TooManyRedirectsError,
)
from .models import PendingResolution, Resolution, ResponseEvent
from .network import NetworkLayer
from .patterns import ALL_URLS

logger = logging.getLogger(__name__)


class _Chain:
    """State for one redirect chain, keyed by its origin URL.

    ``links`` maps each redirect target back to the URL that redirected to
    it. ``tracked`` holds every URL of the chain not yet consumed by
    backtracking.
    """

    def __init__(self, origin: str) -> None:
        self.origin = origin
        self.links: Dict[str, str] = {}
        self.tracked: Set[str] = set()
        self.events: asyncio.Queue[ResponseEvent] = asyncio.Queue()
        self.task: Optional[asyncio.Task] = None

    def path(self) -> List[str]:
        """URLs from the origin to the most recent hop."""
        following = {prev: nxt for nxt, prev in self.links.items()}
        urls = [self.origin]
        while urls[-1] in following and len(urls) <= len(self.links):
            urls.append(following[urls[-1]])
        return urls


class RedirectResolver:
    """Resolve URLs through their redirect chains.

    Each chain runs as its own task, fed the response events for the URL it
    is waiting on. Concurrent ``resolve`` calls for the same URL share one
    chain and one set of requests.
    """

    def __init__(self, network: NetworkLayer, config: Optional[ResolverConfig] = None) -> None:
        self._network = network
        self._config = config or ResolverConfig()
        self._initialized = False
        self._pending: Dict[str, PendingResolution] = {}
        self._chains: Dict[str, _Chain] = {}
        # URL -> chains waiting on its response
        self._awaiting: Dict[str, List[_Chain]] = {}

    def initialize(self) -> None:
        """Attach the response listener to the network layer (once)."""
        if self._initialized:
            return
        self._network.add_response_listener(
            self._on_response, urls=[ALL_URLS], extra_info=["responseHeaders"]
        )
        self._initialized = True
        logger.debug("Redirect resolver attached to %s", type(self._network).__name__)

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def pending_urls(self) -> List[str]:
        return list(self._pending)

    @property
    def tracked_urls(self) -> FrozenSet[str]:
        tracked: Set[str] = set()
        for chain in self._chains.values():
            tracked.update(chain.tracked)
        return frozenset(tracked)

    @property
    def links(self) -> Dict[str, str]:
        links: Dict[str, str] = {}
        for chain in self._chains.values():
            links.update(chain.links)
        return links

    def resolve(self, url: str) -> "asyncio.Future[Resolution]":
        """Start (or join) resolution of *url*; await the returned future.

        Raises NotInitializedError if ``initialize`` has not been called.
        The future fails with a ResolutionError subclass if the chain loops,
        grows past ``max_redirects``, hits a transport error, or does not
        terminate within ``timeout`` seconds.
        """
        if not self._initialized:
            raise NotInitializedError("RedirectResolver.initialize() must be called before resolve()")

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Resolution] = loop.create_future()

        pending = self._pending.get(url)
        if pending is not None:
            pending.futures.append(future)
            logger.debug("Joined pending resolution of %s (%d waiting)", url, len(pending.futures))
            return future

        self._pending[url] = PendingResolution(url=url, futures=[future])
        chain = _Chain(url)
        self._chains[url] = chain
        try:
            self._request(chain, url)
        except Exception:
            self._discard(chain)
            raise
        chain.task = loop.create_task(self._run_chain(chain))
        return future

    def close(self) -> None:
        """Fail every open chain and detach from the network layer."""
        for chain in list(self._chains.values()):
            self._fail(chain, ResolutionCancelledError(chain.origin))
            if chain.task is not None:
                chain.task.cancel()
        if self._initialized:
            self._network.remove_response_listener(self._on_response)
            self._initialized = False

    # ── Network events ─────────────────────────────────────────

    def _on_response(self, event: ResponseEvent) -> None:
        chains = self._awaiting.pop(event.url, None)
        if not chains:
            return
        for chain in chains:
            chain.events.put_nowait(event)

    def _request(self, chain: _Chain, url: str) -> None:
        chain.tracked.add(url)
        waiting = self._awaiting.get(url)
        if waiting is not None:
            # Another chain already has a request out for this URL
            waiting.append(chain)
            return
        self._awaiting[url] = [chain]
        logger.debug("Fetching %s", url)
        self._network.fetch(url)

    # ── Chain lifecycle ────────────────────────────────────────

    async def _run_chain(self, chain: _Chain) -> None:
        try:
            destination = await asyncio.wait_for(self._follow(chain), self._config.timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out resolving %s", chain.origin)
            self._fail(chain, ResolutionTimeoutError(chain.origin, self._config.timeout))
        except ResolutionError as exc:
            logger.warning("%s", exc)
            self._fail(chain, exc)
        except asyncio.CancelledError:
            self._fail(chain, ResolutionCancelledError(chain.origin))
            raise
        except Exception as exc:
            logger.exception("Unexpected error resolving %s", chain.origin)
            self._fail(chain, exc)
        else:
            self._settle(chain, destination)

    async def _follow(self, chain: _Chain) -> str:
        """Consume response events until a terminal response; return its URL."""
        while True:
            event = await chain.events.get()
            if event.error is not None:
                raise FetchError(chain.origin, event.url, event.error)

            location = event.location
            next_url = urljoin(event.url, location) if location else None
            if next_url is None or next_url == event.url:
                logger.debug("Terminal response for %s (status=%d)", event.url, event.status_code)
                self._backtrack(chain, event.url)
                return event.url

            if next_url in chain.tracked:
                raise RedirectLoopError(chain.origin, chain.path() + [next_url])
            if len(chain.links) >= self._config.max_redirects:
                raise TooManyRedirectsError(chain.origin, self._config.max_redirects)

            logger.debug("Redirect %s -> %s", event.url, next_url)
            chain.links[next_url] = event.url
            self._request(chain, next_url)

    def _backtrack(self, chain: _Chain, terminal: str) -> str:
        """Walk links back from *terminal* to the origin, consuming them.

        Returns the URL the walk stopped at, which is the chain's origin.
        """
        url = terminal
        walked = [url]
        chain.tracked.discard(url)
        while url in chain.links:
            previous = chain.links.pop(url)
            if previous in walked:
                raise RedirectLoopError(chain.origin, list(reversed(walked + [previous])))
            walked.append(previous)
            chain.tracked.discard(previous)
            url = previous
        return url

    def _settle(self, chain: _Chain, destination: str) -> None:
        pending = self._discard(chain)
        if pending is None:
            return
        resolution = Resolution(source=chain.origin, destination=destination)
        logger.info(
            "Resolved %s -> %s (%.2fs)",
            chain.origin,
            destination,
            time.monotonic() - pending.first_requested_at,
        )
        for future in pending.futures:
            if not future.done():
                future.set_result(resolution)

    def _fail(self, chain: _Chain, exc: BaseException) -> None:
        pending = self._discard(chain)
        if pending is None:
            return
        for future in pending.futures:
            if not future.done():
                future.set_exception(exc)

    def _discard(self, chain: _Chain) -> Optional[PendingResolution]:
        """Remove every trace of *chain* and hand back its continuations.

        Returns None if the chain was already discarded.
        """
        if self._chains.get(chain.origin) is not chain:
            return None
        del self._chains[chain.origin]
        for url in chain.tracked:
            waiting = self._awaiting.get(url)
            if waiting is None:
                continue
            if chain in waiting:
                waiting.remove(chain)
            if not waiting:
                del self._awaiting[url]
        chain.tracked.clear()
        chain.links.clear()
        return self._pending.pop(chain.origin, None)
