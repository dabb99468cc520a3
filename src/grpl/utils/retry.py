# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/grpl/utils/retry.py

import time
import functools
from typing import Callable


class RetryError(RuntimeError):
    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


def retry(
    *,
    retries: int,
    delay: float = 0,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[int, Exception], None] | None = None,
):
    """
    Retry decorator for idempotent operations.

    retries: total number of attempts (not extra attempts)
    delay: seconds between attempts, 0 retries immediately
    retry_on: exception types to retry
    on_retry: callback(attempt, exception), called after every failed attempt
    """
    if retries < 1:
        raise ValueError("retries must be >= 1")

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            last_exc = None
            for attempt in range(1, retries + 1):
                try:
                    return fn(*args, **kwargs)
                except retry_on as exc:
                    last_exc = exc
                    if on_retry:
                        on_retry(attempt, exc)
                    if attempt == retries:
                        break
                    if delay:
                        time.sleep(delay)
            raise RetryError(
                f"{fn.__name__} failed after {retries} attempts: {last_exc}",
                attempts=retries,
            ) from last_exc
        return wrapper
    return decorator
