"""Best-effort subscription check run before any secret is fetched."""
import asyncio
import logging
from typing import Callable, Optional

import httpx

from .errors import EntitlementDenied

logger = logging.getLogger(__name__)

SUBSCRIPTION_URL = "https://agent.api.stepsecurity.io/v1/github/{repository}/actions/subscription"
SUPPORT_CONTACT = "support@stepsecurity.io"
DEFAULT_TIMEOUT = 3.0
SOFT_FAILURE_MESSAGE = "Timeout or API not reachable. Continuing to next step."

Notifier = Callable[[str], None]


async def _fetch_status(url: str, timeout: float) -> int:
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(url)
    return response.status_code


async def validate_subscription(
    repository: Optional[str],
    notify: Optional[Notifier] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    """
    Check that the repository is entitled to run this action.

    Only an explicit 403 is fatal. Timeouts, unreachable hosts and any other
    status let the run continue. ``timeout`` bounds the whole check, not
    each phase of the request.

    Args:
        repository: ``owner/name`` of the current repository
        notify: Receives the job-log message for a skipped or soft-failed check;
            the module logger at INFO when not provided
        timeout: Seconds before the check is abandoned

    Raises:
        EntitlementDenied: If the endpoint answers 403
    """
    if notify is None:
        notify = logger.info

    if not repository:
        notify("Repository unknown, skipping subscription check.")
        return

    url = SUBSCRIPTION_URL.format(repository=repository)
    try:
        status = await asyncio.wait_for(_fetch_status(url, timeout), timeout)
    except asyncio.TimeoutError:
        notify(SOFT_FAILURE_MESSAGE)
        logger.debug(f"Subscription check exceeded {timeout}s")
        return
    except httpx.HTTPError as e:
        notify(SOFT_FAILURE_MESSAGE)
        logger.debug(f"Subscription check failed: {e}")
        return

    if status == 403:
        raise EntitlementDenied(f"Subscription is not valid. Reach out to {SUPPORT_CONTACT}")

    if status >= 400:
        notify(SOFT_FAILURE_MESSAGE)
        logger.debug(f"Subscription check returned HTTP {status}")
