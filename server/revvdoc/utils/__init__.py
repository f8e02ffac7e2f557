"""Utility modules shared by the API and the worker."""

from .background_tasks import BackgroundTaskDispatcher, get_dispatcher
from .retry import RetryExhaustedError, with_retry

__all__ = [
    "BackgroundTaskDispatcher",
    "get_dispatcher",
    "with_retry",
    "RetryExhaustedError",
]
