"""Retry decisions: whether to repeat an attempt and how long to wait.

After every attempt the executor asks ``evaluate_retry`` what to do next.
The wait grows exponentially with the retry number, gets a little jitter,
honours a server's ``Retry-After`` and is always capped by what is left of
the call's retry budget, so the total time spent sleeping in one call never
exceeds ``RetryPolicy.max_interval_seconds``.
"""

from __future__ import annotations

import email.utils
import random
from dataclasses import dataclass
from datetime import datetime, timezone

from .config import RetryPolicy
from .transport import AttemptOutcome

MAX_JITTER_SECONDS = 0.1


@dataclass(frozen=True)
class RetryDecision:
    retry: bool
    wait_seconds: float = 0.0
    budget_consumed: float = 0.0


NO_RETRY = RetryDecision(retry=False)


def parse_retry_after(value: str | None, now: datetime | None = None) -> float:
    """Convert a Retry-After header value into whole seconds to wait.

    Accepts a number of seconds or an RFC 1123 date. Dates in the past,
    negative numbers and values that are neither give 0.
    """
    if value is None:
        return 0.0
    value = value.strip()
    try:
        return float(max(0, int(float(value))))
    except (ValueError, OverflowError):
        pass

    try:
        when = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return 0.0
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, float(int((when - now).total_seconds())))


def backoff_seconds(policy: RetryPolicy, retry_number: int) -> float:
    """Exponential wait before retry ``retry_number`` (1-based), no jitter."""
    return policy.interval_seconds * policy.backoff_factor ** (retry_number - 1)


def evaluate_retry(
    policy: RetryPolicy,
    method: str,
    outcome: AttemptOutcome,
    retry_count: int,
    remaining_budget: float,
    *,
    jitter: float | None = None,
) -> RetryDecision:
    """Decide whether the attempt that produced ``outcome`` is repeated.

    Args:
        policy: Retry configuration for the call.
        method: Upper-case HTTP method of the request.
        outcome: Result of the attempt just made.
        retry_count: Retries already performed in this call.
        remaining_budget: Seconds of waiting still allowed in this call.
        jitter: Fixed jitter to use instead of a random draw in [0, 0.1).

    Returns:
        The decision; ``wait_seconds`` is also what the retry consumes from
        the budget.
    """
    if not policy.enabled or method.upper() not in policy.methods:
        return NO_RETRY

    retry_after = 0.0
    if outcome.error is not None:
        if not (policy.retry_on_timeout and outcome.timed_out):
            return NO_RETRY
    else:
        header = outcome.header("Retry-After")
        retry_after = parse_retry_after(header)
        if header is None and outcome.status not in policy.status_codes:
            return NO_RETRY

    if jitter is None:
        jitter = random.random() * MAX_JITTER_SECONDS
    wait = backoff_seconds(policy, retry_count + 1) + jitter
    wait = min(remaining_budget, max(wait, retry_after))

    if wait <= 0 or retry_count >= policy.max_retries:
        return NO_RETRY
    return RetryDecision(retry=True, wait_seconds=wait, budget_consumed=wait)
