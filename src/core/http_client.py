"""HTTP client utilities with simple retry logic.

Separated from parsing so the tracker core never performs I/O itself; the
unattended runner wraps `fetch` into a document source.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from config import settings

_log = logging.getLogger(__name__)


class HttpError(RuntimeError):
    pass


def fetch(
    url: str,
    *,
    user_agent: Optional[str] = None,
    timeout: Optional[float] = None,
    retries: int | None = None,
    backoff_factor: float | None = None,
    client: Optional[httpx.Client] = None,
) -> str:
    ua = user_agent or settings.DEFAULT_USER_AGENT
    timeout = timeout or settings.DEFAULT_TIMEOUT
    retries = retries if retries is not None else settings.DEFAULT_RETRIES
    backoff_factor = (
        backoff_factor if backoff_factor is not None else settings.DEFAULT_BACKOFF_FACTOR
    )

    headers = {"User-Agent": ua}
    own_client = client is None
    http = client or httpx.Client(timeout=timeout, follow_redirects=True)
    attempt = 0
    try:
        while True:
            attempt += 1
            try:
                resp = http.get(url, headers=headers)
                resp.raise_for_status()
                return resp.text
            except httpx.HTTPError as e:
                if attempt > retries:
                    raise HttpError(
                        f"Failed to fetch {url} after {retries} retries: {e}"
                    ) from e
                sleep_for = backoff_factor * (2 ** (attempt - 1))
                _log.warning(
                    "Attempt %d/%d failed for %s: %s. Retrying in %.1fs...",
                    attempt,
                    retries,
                    url,
                    e,
                    sleep_for,
                )
                time.sleep(sleep_for)
    finally:
        if own_client:
            http.close()
