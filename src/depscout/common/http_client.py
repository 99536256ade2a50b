"""Shared async HTTP helpers used by registry clients.

Encapsulates timeout, retry and JSON decoding so registry modules avoid
duplicating try/except blocks. Transport failures never raise: callers get a
``(status, headers, data)`` tuple with status 0 when every attempt failed.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from ..constants import Constants
from .logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

_RETRY_STATUSES = {429, 500, 502, 503, 504}


async def _backoff(attempt: int) -> None:
    await asyncio.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** attempt))


async def robust_get(
    session: aiohttp.ClientSession,
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    context: str = "http",
) -> Tuple[int, Dict[str, str], str]:
    """Perform a GET with retries on transport errors and retryable statuses."""
    safe_target = safe_url(url)
    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        is_last = attempt == Constants.HTTP_RETRY_MAX - 1
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            context=context,
                            attempt=attempt + 1
                        )
                    )
                async with session.get(url, headers=headers) as response:
                    status = response.status
                    text = await response.text()
                    response_headers = dict(response.headers)
            except asyncio.TimeoutError:
                last_exception = "timeout"
                logger.debug(
                    "HTTP timeout",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        action="GET",
                        outcome="timeout",
                        attempt=attempt + 1,
                        target=safe_target
                    )
                )
                if not is_last:
                    await _backoff(attempt)
                continue
            except aiohttp.ClientError as exc:
                last_exception = str(exc)
                logger.debug(
                    "HTTP request exception",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        action="GET",
                        outcome="request_exception",
                        attempt=attempt + 1,
                        target=safe_target
                    )
                )
                if not is_last:
                    await _backoff(attempt)
                continue

        if status in _RETRY_STATUSES and not is_last:
            logger.debug(
                "HTTP retryable status",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="retry",
                    status_code=status,
                    attempt=attempt + 1,
                    target=safe_target
                )
            )
            await _backoff(attempt)
            continue

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context
                )
            )
        return status, response_headers, text

    logger.error("%s request to %s failed after %s attempts: %s",
                 context, safe_target, Constants.HTTP_RETRY_MAX, last_exception)
    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"


async def get_json(
    session: aiohttp.ClientSession,
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    context: str = "http",
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform a GET request and parse the JSON body.

    Args:
        session: Open aiohttp session.
        url: Target URL
        headers: Optional request headers
        context: Human-readable source tag for logs (e.g., "npm").

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    status_code, response_headers, text = await robust_get(
        session, url, headers=headers, context=context
    )

    if status_code == 200 and text:
        try:
            return status_code, response_headers, json.loads(text)
        except json.JSONDecodeError:
            logger.warning(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="json_decode_error",
                    status_code=status_code,
                    target=safe_url(url)
                )
            )
            return status_code, response_headers, None

    return status_code, response_headers, None
