"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChannelConfig:
    """Notification channel settings."""

    api_base_url: str
    poll_interval_s: float
    page_limit: int
    request_timeout_s: float
