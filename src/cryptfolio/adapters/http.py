"""Blocking HTTP helpers run off the event loop.

Every call is single-attempt and bounded by a timeout. Any transport,
status or decoding problem surfaces as ``SourceUnavailableError`` so that
adapters only need to catch one exception type.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import requests

from ..errors import SourceUnavailableError
from ..logger import get_logger

logger = get_logger(__name__)


def _decode(response: requests.Response, source: str) -> Any:
    try:
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        raise SourceUnavailableError(source, e) from e
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError) as e:
        raise SourceUnavailableError(source, f"invalid JSON: {e}") from e


async def get_json(
    url: str,
    *,
    source: str,
    timeout: float,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET ``url`` and decode the JSON body."""
    logger.debug("Calling %s", url)
    try:
        response = await asyncio.to_thread(
            requests.get, url, params=params, headers=headers, timeout=timeout
        )
    except requests.exceptions.RequestException as e:
        raise SourceUnavailableError(source, e) from e
    return _decode(response, source)


async def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    source: str,
    timeout: float,
) -> Any:
    """POST a JSON payload to ``url`` and decode the JSON body."""
    logger.debug("Posting to %s", url)
    try:
        response = await asyncio.to_thread(
            requests.post, url, json=payload, timeout=timeout
        )
    except requests.exceptions.RequestException as e:
        raise SourceUnavailableError(source, e) from e
    return _decode(response, source)


async def get_text(url: str, *, source: str, timeout: float) -> str:
    """GET ``url`` and return the raw body."""
    logger.debug("Calling %s", url)
    try:
        response = await asyncio.to_thread(requests.get, url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise SourceUnavailableError(source, e) from e
    return response.text
