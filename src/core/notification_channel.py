"""Notification count channel (core domain).

The channel owns one background polling loop per signed-in identity, a
persisted "last seen" cursor, and fan-out of the unread count to listeners.
HTTP, storage and timers are injected ports so the loop can be driven by fake
transports and a fake scheduler in tests.

Lifecycle:
1) Construction loads the persisted cursor once
2) start_polling spawns one immediate tick and arms one repeating timer
3) Each tick asks for the count of items after the cursor
4) mark_seen advances the cursor and zeroes the count
5) stop_polling cancels the timer and zeroes the count, keeping the cursor
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, List, Optional

from core.errors import NotAuthenticatedError, NotificationFetchError
from core.models import NotificationData, NotificationPage
from core.ports import HttpPort, KeyValueStorePort, SchedulerPort, TimerHandle

LOGGER = logging.getLogger(__name__)

CURSOR_STORAGE_KEY = "k_notifications_cursor"
DEFAULT_POLL_INTERVAL_S = 10.0
DEFAULT_PAGE_LIMIT = 10

CountListener = Callable[[int], None]


class _Subscription:
    """Wraps a listener so the same callable can be registered twice."""

    __slots__ = ("callback",)

    def __init__(self, callback: CountListener) -> None:
        self.callback = callback


class NotificationChannel:
    """Polls the unread-notification count and fans it out to listeners."""

    def __init__(
        self,
        http: HttpPort,
        store: KeyValueStorePort,
        scheduler: SchedulerPort,
        api_base_url: str,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        page_limit: int = DEFAULT_PAGE_LIMIT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._http = http
        self._store = store
        self._scheduler = scheduler
        self._api_base_url = api_base_url.rstrip("/")
        self._poll_interval_s = poll_interval_s
        self._page_limit = page_limit
        self._clock = clock

        self._polling = False
        self._user_key: Optional[str] = None
        self._timer: Optional[TimerHandle] = None
        # Bumped on start/stop and on every cursor move. A tick applies its
        # count only if the generation it read is still current.
        self._generation = 0
        self._count = 0
        self._subscriptions: List[_Subscription] = []
        self._cursor: Optional[str] = self._load_persisted_cursor()

    @property
    def is_polling(self) -> bool:
        return self._polling

    @property
    def current_user_key(self) -> Optional[str]:
        return self._user_key

    @property
    def cursor(self) -> Optional[str]:
        return self._cursor

    @property
    def count(self) -> int:
        return self._count

    @property
    def page_limit(self) -> int:
        return self._page_limit

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    def set_api_base_url(self, api_base_url: str) -> None:
        self._api_base_url = api_base_url.rstrip("/")

    def start_polling(self, user_key: str, api_base_url: Optional[str] = None) -> None:
        """Begin polling for `user_key`; a repeat call for the same key is a no-op."""

        if api_base_url:
            self.set_api_base_url(api_base_url)

        if self._polling and self._user_key == user_key:
            return

        if self._polling:
            # Switching identity tears the old loop down; listeners stay.
            self.stop_polling()
        self._user_key = user_key
        self._polling = True
        self._generation += 1
        LOGGER.info("Notification polling started (every %ss)", self._poll_interval_s)

        # Arming the timer never waits on the immediate tick.
        self._scheduler.spawn(self.poll_once)
        self._timer = self._scheduler.every(self._poll_interval_s, self.poll_once)

    def stop_polling(self) -> None:
        """Cancel the loop and zero the count; the persisted cursor is kept."""

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        was_polling = self._polling
        self._polling = False
        self._user_key = None
        self._generation += 1
        self._count = 0
        if was_polling:
            LOGGER.info("Notification polling stopped")
        self._notify_listeners(0)

    def subscribe(self, callback: CountListener) -> Callable[[], None]:
        """Register a listener, call it with the current count, return a disposer."""

        subscription = _Subscription(callback)
        self._subscriptions.append(subscription)
        try:
            callback(self._count)
        except Exception:
            LOGGER.exception("Error in notification listener")

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def update_latest_cursor(self, cursor: Optional[str]) -> None:
        # An in-flight tick queried with the old cursor; its count is stale.
        self._generation += 1
        self._cursor = cursor
        self._persist_cursor(cursor)

    def mark_seen(self, cursor: str) -> None:
        """Advance the seen boundary to `cursor` and reset the unread count."""

        self.update_latest_cursor(cursor)
        self._count = 0
        self._notify_listeners(0)

    def clear_persisted_cursor(self) -> None:
        """Forget the seen boundary entirely (sign-out)."""

        self.update_latest_cursor(None)

    async def poll_once(self) -> None:
        """Run one count request and apply it if this loop is still current."""

        user_key = self._user_key
        if not user_key:
            return
        generation = self._generation

        params = {"requesterPubkey": user_key}
        if self._cursor:
            params["after"] = self._cursor

        try:
            data = await self._http.get_json(f"{self._api_base_url}/get-notifications-count", params)
            count = _parse_count(data)
        except Exception as exc:
            # Keep the last known count; the next timer tick retries.
            LOGGER.warning("Notification count fetch failed: %s", exc)
            return

        if not self._polling or self._user_key != user_key or self._generation != generation:
            LOGGER.debug("Discarding notification count from a stopped poll or an old cursor")
            return

        self._count = count
        self._notify_listeners(count)

    async def fetch_notifications(
        self,
        limit: Optional[int] = None,
        before: Optional[str] = None,
        after: Optional[str] = None,
    ) -> NotificationPage:
        """Fetch one page of notification details for the current user.

        `limit` falls back to the channel's configured page limit.
        """

        if not self._user_key:
            raise NotAuthenticatedError("No user authenticated for notifications")

        params = {"requesterPubkey": self._user_key, "limit": str(limit or self._page_limit)}
        if before:
            params["before"] = before
        if after:
            params["after"] = after

        try:
            data = await self._http.get_json(f"{self._api_base_url}/get-notifications", params)
        except NotificationFetchError:
            LOGGER.exception("Error fetching notifications")
            raise
        except Exception as exc:
            LOGGER.exception("Error fetching notifications")
            raise NotificationFetchError(f"Notification request failed: {exc}") from exc

        try:
            return _parse_page(data)
        except (KeyError, TypeError, ValueError) as exc:
            LOGGER.exception("Malformed notifications response")
            raise NotificationFetchError(f"Malformed notifications response: {exc}") from exc

    def _notify_listeners(self, count: int) -> None:
        # Snapshot so listeners may unsubscribe while being notified.
        for subscription in list(self._subscriptions):
            try:
                subscription.callback(count)
            except Exception:
                LOGGER.exception("Error in notification listener")

    def _load_persisted_cursor(self) -> Optional[str]:
        try:
            raw = self._store.get(CURSOR_STORAGE_KEY)
            if not raw:
                return None
            data = json.loads(raw)
        except Exception:
            LOGGER.exception("Error loading persisted notification cursor")
            self._discard_persisted_cursor()
            return None

        cursor = data.get("cursor") if isinstance(data, dict) else None
        if isinstance(cursor, str) and cursor:
            return cursor
        return None

    def _discard_persisted_cursor(self) -> None:
        try:
            self._store.remove(CURSOR_STORAGE_KEY)
        except Exception:
            LOGGER.exception("Error clearing invalid notification cursor")

    def _persist_cursor(self, cursor: Optional[str]) -> None:
        try:
            if cursor:
                payload = {"cursor": cursor, "timestamp": int(self._clock() * 1000)}
                self._store.set(CURSOR_STORAGE_KEY, json.dumps(payload))
            else:
                self._store.remove(CURSOR_STORAGE_KEY)
        except Exception:
            LOGGER.exception("Error persisting notification cursor")


def _parse_count(data: Any) -> int:
    if not isinstance(data, dict):
        raise NotificationFetchError("Count response is not an object")
    count = data.get("count")
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise NotificationFetchError(f"Invalid notification count: {count!r}")
    return count


def _parse_page(data: Any) -> NotificationPage:
    if not isinstance(data, dict):
        raise TypeError("Notifications response is not an object")
    pagination = data.get("pagination") or {}
    return NotificationPage(
        notifications=[NotificationData.from_payload(item) for item in data.get("notifications") or []],
        has_more=bool(pagination.get("hasMore", False)),
        next_cursor=pagination.get("nextCursor"),
        prev_cursor=pagination.get("prevCursor"),
    )
