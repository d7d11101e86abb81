"""Network layer: response observation and non-redirecting requests."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Set, Tuple

import requests

from .config import ResolverConfig
from .matching import MatchSet
from .models import ResponseEvent
from .patterns import ALL_URLS

logger = logging.getLogger(__name__)

ResponseListener = Callable[[ResponseEvent], None]


class NetworkLayer:
    """Delivers one ResponseEvent per issued request to registered listeners.

    Subclasses implement ``fetch`` and call ``_dispatch`` once the response
    headers for a request are known.
    """

    def __init__(self) -> None:
        self._listeners: List[Tuple[ResponseListener, MatchSet, bool]] = []

    def add_response_listener(
        self,
        callback: ResponseListener,
        urls: Iterable[str] = (ALL_URLS,),
        extra_info: Iterable[str] = ("responseHeaders",),
    ) -> None:
        """Register *callback* for responses whose URL matches *urls*.

        Headers are only passed along when ``"responseHeaders"`` is in
        *extra_info*.
        """
        with_headers = "responseHeaders" in extra_info
        self._listeners.append((callback, MatchSet(urls), with_headers))

    def remove_response_listener(self, callback: ResponseListener) -> None:
        self._listeners = [entry for entry in self._listeners if entry[0] != callback]

    def has_response_listener(self, callback: ResponseListener) -> bool:
        return any(entry[0] == callback for entry in self._listeners)

    def fetch(self, url: str) -> None:
        """Issue a request for *url* without following redirects."""
        raise NotImplementedError

    def close(self) -> None:
        pass

    def _dispatch(self, event: ResponseEvent) -> None:
        for callback, matcher, with_headers in list(self._listeners):
            if not matcher.test(event.url):
                continue
            if with_headers:
                callback(event)
            else:
                callback(ResponseEvent(url=event.url, status_code=event.status_code, error=event.error))


class RequestsNetwork(NetworkLayer):
    """NetworkLayer backed by a requests Session running on a thread pool.

    Requests run on worker threads; their results are dispatched back on the
    event loop that issued them, so listeners never run concurrently.
    """

    def __init__(self, config: Optional[ResolverConfig] = None) -> None:
        super().__init__()
        self._config = config or ResolverConfig()
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self._config.user_agent})
        self._executor = ThreadPoolExecutor(max_workers=self._config.workers)
        self._in_flight: Set["asyncio.Future[ResponseEvent]"] = set()

    def fetch(self, url: str) -> None:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, self._request, url)
        self._in_flight.add(future)
        future.add_done_callback(self._on_done)

    def _on_done(self, future: "asyncio.Future[ResponseEvent]") -> None:
        self._in_flight.discard(future)
        if future.cancelled():
            return
        self._dispatch(future.result())

    def _request(self, url: str) -> ResponseEvent:
        """Blocking request; runs on a worker thread."""
        method = self._config.method.upper()
        logger.debug("%s %s", method, url)
        try:
            resp = self._session.request(
                method,
                url,
                allow_redirects=False,
                stream=True,
                timeout=self._config.request_timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Request failed for %s: %s", url, exc)
            return ResponseEvent(url=url, error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error requesting %s", url)
            return ResponseEvent(url=url, error=str(exc) or type(exc).__name__)
        try:
            return ResponseEvent(url=url, status_code=resp.status_code, headers=resp.headers)
        finally:
            resp.close()

    def close(self) -> None:
        for future in list(self._in_flight):
            future.cancel()
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._session.close()
