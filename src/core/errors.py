"""Exceptions raised by the kfeed core and its adapters."""

from __future__ import annotations

from typing import Optional


class KFeedError(Exception):
    """Base exception for kfeed domain errors."""


class NotificationFetchError(KFeedError):
    """Raised when the notification API cannot be reached or answers badly."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class NotAuthenticatedError(KFeedError):
    """Raised when a user-scoped request is made with no signed-in identity."""
