from __future__ import annotations

import time
from typing import Callable, TypeVar

from tenacity import RetryError, Retrying, retry_if_result, stop_after_delay, wait_exponential

T = TypeVar("T")


def poll_until_complete(
    fetch: Callable[[], T],
    *,
    is_pending: Callable[[T], bool],
    timeout_s: float,
    interval_s: float,
    max_interval_s: float | None = None,
    on_timeout: Callable[[], Exception],
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `fetch` until `is_pending` is False or `timeout_s` elapses.

    The wait between polls starts at `interval_s` and backs off exponentially
    up to `max_interval_s` (fixed interval when that is None). Exceptions from
    `fetch` propagate immediately; exhausting the timeout raises `on_timeout()`.
    """

    cap = interval_s if max_interval_s is None else max(interval_s, max_interval_s)
    retrying = Retrying(
        stop=stop_after_delay(timeout_s),
        wait=wait_exponential(multiplier=interval_s, min=interval_s, max=cap),
        retry=retry_if_result(is_pending),
        sleep=sleep,
    )
    try:
        return retrying(fetch)
    except RetryError as e:
        raise on_timeout() from e
