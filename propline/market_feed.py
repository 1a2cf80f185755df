"""
propline/market_feed.py — Propline
===================================
Cancellable, cached market-odds loading for the game-detail view.

Rules:
- At most one outstanding fetch per (event_id, market_key).
- Selecting a different (event, market) cancels the previous selection's
  token. A fetch that completes after its token was cancelled is discarded:
  not cached, its future resolves to None.
- Successful payloads are cached per (event_id, market_key); re-selecting a
  fetched market reuses the cached payload with no network call.
- Fetch errors propagate through the future unchanged.

requests cannot abort an in-flight socket read, so cancellation means
"ignore the result", not "stop the I/O".

Usage in views/game_detail.py:
    feed = MarketFeed(api_key)
    odds = feed.request(event_id, "player_points").result(timeout=20)
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional

from propline.models import OddsResponse
from propline.odds_client import DEFAULT_TIMEOUT, fetch_market_odds

logger = logging.getLogger(__name__)


class RequestToken:
    """Cancellation flag for one fetch."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class MarketFeed:
    """
    Per-event market cache with stale-request cancellation.

    Args:
        api_key:  Odds API key, passed explicitly to the fetcher.
        fetcher:  Callable(api_key, event_id, market_key, timeout=...) returning
                  an OddsResponse. Defaults to odds_client.fetch_market_odds.
        executor: Executor to run fetches on. Defaults to a private 2-thread pool.
        timeout:  Per-request HTTP timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        fetcher: Callable[..., OddsResponse] = fetch_market_odds,
        executor: Optional[Executor] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._api_key = api_key
        self._fetcher = fetcher
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="propline-feed"
        )
        self._timeout = timeout
        self._lock = threading.Lock()
        self._cache: dict[tuple, OddsResponse] = {}
        self._inflight: dict[tuple, tuple] = {}     # key → (token, future)
        self._selected: Optional[tuple] = None

    # -----------------------------------------------------------------------
    # Cache access
    # -----------------------------------------------------------------------

    def cached(self, event_id: str, market_key: str) -> Optional[OddsResponse]:
        with self._lock:
            return self._cache.get((event_id, market_key))

    def invalidate(self, event_id: str, market_key: Optional[str] = None) -> None:
        """Drop one cached market, or every market of an event."""
        with self._lock:
            if market_key is not None:
                self._cache.pop((event_id, market_key), None)
                return
            for key in [k for k in self._cache if k[0] == event_id]:
                del self._cache[key]

    @property
    def selected(self) -> Optional[tuple]:
        """(event_id, market_key) of the latest request, None after cancel_all()."""
        with self._lock:
            return self._selected

    def is_loading(self, event_id: str, market_key: str) -> bool:
        with self._lock:
            entry = self._inflight.get((event_id, market_key))
            return entry is not None and not entry[0].cancelled

    # -----------------------------------------------------------------------
    # Requests
    # -----------------------------------------------------------------------

    def request(self, event_id: str, market_key: str) -> Future:
        """
        Select (event_id, market_key) and return a future for its payload.

        Cached → already-completed future, no fetch.
        Same key already in flight → that fetch's future.
        Otherwise a new fetch is submitted; any other in-flight selection is
        cancelled first.
        """
        key = (event_id, market_key)
        with self._lock:
            self._cancel_others(key)
            self._selected = key

            if key in self._cache:
                done: Future = Future()
                done.set_result(self._cache[key])
                return done

            entry = self._inflight.get(key)
            if entry is not None and not entry[0].cancelled:
                return entry[1]

            token = RequestToken()
            future = Future()
            self._inflight[key] = (token, future)

        # Submitted outside the lock; _run takes it again on completion
        try:
            self._executor.submit(self._run, key, token, future)
        except RuntimeError:
            with self._lock:
                self._release(key, token)
            raise
        return future

    def cancel_all(self) -> None:
        """Cancel every in-flight fetch (e.g. navigating away from the game)."""
        with self._lock:
            for token, _ in self._inflight.values():
                token.cancel()
            self._selected = None

    def shutdown(self) -> None:
        self.cancel_all()
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _cancel_others(self, key: tuple) -> None:
        # Caller holds the lock
        for other, (token, _) in self._inflight.items():
            if other != key and not token.cancelled:
                logger.info("Cancelling stale fetch %s", other)
                token.cancel()

    def _release(self, key: tuple, token: RequestToken) -> None:
        # Caller holds the lock
        if self._inflight.get(key, (None,))[0] is token:
            del self._inflight[key]

    def _run(self, key: tuple, token: RequestToken, future: Future) -> None:
        event_id, market_key = key
        try:
            odds = self._fetcher(self._api_key, event_id, market_key, timeout=self._timeout)
        except Exception as exc:
            with self._lock:
                self._release(key, token)
            future.set_exception(exc)
            return

        with self._lock:
            self._release(key, token)
            if token.cancelled:
                logger.info("Discarding stale result for %s", key)
                odds = None
            else:
                self._cache[key] = odds
        future.set_result(odds)
