from __future__ import annotations

import logging
import random
import time
from typing import Any, Mapping

import requests

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

_DEFAULT_HEADERS = {
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "accept-language": "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
    "user-agent": DEFAULT_USER_AGENT,
}


class PageFetchError(RuntimeError):
    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class HttpClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


def fetch_html(
    url: str,
    *,
    session: requests.Session | None = None,
    headers: Mapping[str, str] | None = None,
    timeout_seconds: float = 30.0,
) -> tuple[str, str]:
    """
    GET an HTML page following redirects.

    Returns `(html, final_url)`; any transport error or non-2xx status raises `PageFetchError`.
    """

    requester = session or requests
    merged = {**_DEFAULT_HEADERS, **(headers or {})}
    try:
        resp = requester.get(url, headers=merged, timeout=timeout_seconds, allow_redirects=True)
    except requests.RequestException as exc:
        raise PageFetchError(f"Failed to fetch page: {exc}", url=url) from exc

    if not 200 <= resp.status_code < 300:
        raise PageFetchError(
            f"Failed to fetch page: HTTP {resp.status_code} {resp.reason or ''}".strip(),
            url=url,
            status_code=resp.status_code,
        )
    return resp.text or "", str(resp.url or url)


def resolve_redirects(
    url: str,
    *,
    session: requests.Session | None = None,
    timeout_seconds: float = 15.0,
) -> str:
    """Follow a short link (HEAD with redirects) and return the canonical URL."""

    requester = session or requests
    headers = {"user-agent": DEFAULT_USER_AGENT}
    try:
        resp = requester.head(url, headers=headers, timeout=timeout_seconds, allow_redirects=True)
    except requests.RequestException as exc:
        raise PageFetchError(f"Failed to resolve short link: {exc}", url=url) from exc
    final_url = str(resp.url or url)
    logger.debug("Resolved %s -> %s", url, final_url)
    return final_url


def request_json(
    session: requests.Session,
    url: str,
    *,
    params: Mapping[str, Any] | None = None,
    timeout_seconds: float = 20.0,
    max_attempts: int = 3,
    error_cls: type[HttpClientError] = HttpClientError,
    label: str = "HTTP",
) -> dict[str, Any]:
    headers = {
        "accept": "application/json",
        "user-agent": "Mozilla/5.0",
    }

    last_response: requests.Response | None = None
    for attempt in range(max_attempts):
        try:
            resp = session.get(url, params=params, headers=headers, timeout=timeout_seconds)
        except requests.RequestException as exc:
            if attempt < max_attempts - 1:
                delay = 1.0 * (2**attempt)
                time.sleep(delay + random.uniform(0.0, delay * 0.25))
                continue
            raise error_cls(f"{label} request failed: {exc}") from exc

        last_response = resp
        if resp.status_code == 200:
            break

        retryable = resp.status_code == 429 or 500 <= resp.status_code < 600
        if retryable and attempt < max_attempts - 1:
            delay = 1.0 * (2**attempt)
            retry_after = (resp.headers.get("Retry-After") or "").strip()
            if retry_after.isdigit():
                delay = max(delay, float(retry_after))
            time.sleep(delay + random.uniform(0.0, delay * 0.25))
            continue

        raise error_cls(
            f"{label} request failed with HTTP {resp.status_code}.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        )

    if last_response is None:
        raise error_cls(f"{label} request failed (no response).")
    resp = last_response

    try:
        payload = resp.json()
    except ValueError as exc:
        raise error_cls(
            f"{label} returned non-JSON response.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        ) from exc

    if not isinstance(payload, dict):
        raise error_cls(f"{label} returned unexpected JSON shape (not an object).")
    return payload
