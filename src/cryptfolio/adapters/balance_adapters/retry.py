"""Opt-in retry wrapper for wallet fetches.

The aggregation core is single-attempt. Callers that want to ride out
flaky sources can wrap their fetch callable here.
"""

from __future__ import annotations

from typing import Any

import backoff

from ...chains import ChainId
from ...domain import FetchCallable, FetchFailure, FetchResult
from ...logger import get_logger

logger = get_logger(__name__)


def _is_failure(result: FetchResult) -> bool:
    return isinstance(result, FetchFailure)


def _on_backoff(details: Any) -> None:
    address, chain_id = details["args"][:2]
    logger.warning(
        "Fetch for %s wallet %s failed (attempt %d), retrying in %.2fs",
        getattr(chain_id, "value", chain_id),
        address,
        details["tries"],
        details["wait"],
    )


def with_retries(
    fetch: FetchCallable,
    max_tries: int,
    *,
    factor: float = 1.0,
    max_time: float | None = None,
) -> FetchCallable:
    """Retry ``fetch`` with exponential backoff while it returns ``FetchFailure``.

    Args:
        fetch: Wallet fetch callable
        max_tries: Total attempts; 1 returns ``fetch`` unchanged
        factor: Multiplier for the exponential wait in seconds
        max_time: Optional overall time budget in seconds

    Returns:
        A callable with the same signature. After the last attempt the final
        ``FetchFailure`` is returned, not raised.
    """
    if max_tries <= 1:
        return fetch

    @backoff.on_predicate(
        backoff.expo,
        _is_failure,
        max_tries=max_tries,
        max_time=max_time,
        jitter=backoff.full_jitter,
        on_backoff=_on_backoff,
        factor=factor,
    )
    async def _fetch(address: str, chain_id: ChainId) -> FetchResult:
        return await fetch(address, chain_id)

    return _fetch
