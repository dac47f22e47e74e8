"""Ports (interfaces) used by the notification channel.

Ports define the minimal contracts for HTTP, persistence and scheduling so
that the channel can be driven by real adapters or by fakes in tests.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol

TickFactory = Callable[[], Awaitable[None]]


class HttpPort(Protocol):
    """JSON-over-HTTP operations required by the notification channel."""

    async def get_json(self, url: str, params: Mapping[str, str]) -> dict[str, Any]:
        ...


class KeyValueStorePort(Protocol):
    """Browser-storage style persistence for small string values."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class SchedulerPort(Protocol):
    """Background execution and repeating timers."""

    def spawn(self, factory: TickFactory) -> None:
        ...

    def every(self, interval_s: float, factory: TickFactory) -> TimerHandle:
        ...
