"""Notification channel factory for kfeed.

Wires the urllib, SQLite and asyncio adapters into one NotificationChannel
owned by the caller, instead of a process-wide singleton.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import settings
from adapters.asyncio_scheduler import AsyncioScheduler
from adapters.http_client import UrllibJsonClient
from adapters.sqlite_store import SQLiteKeyValueStore
from core.config import ChannelConfig
from core.notification_channel import NotificationChannel


def channel_config_from_settings() -> ChannelConfig:
    return ChannelConfig(
        api_base_url=settings.API_BASE_URL,
        poll_interval_s=settings.POLL_INTERVAL_S,
        page_limit=settings.PAGE_LIMIT,
        request_timeout_s=settings.API_TIMEOUT_S,
    )


def build_channel(
    config: Optional[ChannelConfig] = None,
    db_path: Optional[str] = None,
) -> Tuple[NotificationChannel, AsyncioScheduler]:
    """Create a channel and the scheduler driving it.

    Polling must be started from inside a running event loop; the caller
    shuts the scheduler down when it is done with the channel.
    """

    config = config or channel_config_from_settings()
    if not config.api_base_url:
        raise RuntimeError("Missing API base URL (api.base_url or KFEED_API_BASE)")

    store = SQLiteKeyValueStore(db_path or settings.DB_PATH)
    store.init_db()
    scheduler = AsyncioScheduler()

    logging.getLogger(__name__).info("Initializing notification channel for %s", config.api_base_url)

    channel = NotificationChannel(
        http=UrllibJsonClient(timeout_s=config.request_timeout_s),
        store=store,
        scheduler=scheduler,
        api_base_url=config.api_base_url,
        poll_interval_s=config.poll_interval_s,
        page_limit=config.page_limit,
    )
    return channel, scheduler
