"""Workflow that fetches, masks and publishes every referenced secret."""
import logging
from typing import Awaitable, Callable, List, Optional

from ..domains.gcp_client import GCPSecretClient
from ..domains.models import ActionConfig, SecretReference
from ..domains.reference_parser import LINE_BREAK, parse_secrets_refs
from ..domains.subscription import validate_subscription

logger = logging.getLogger(__name__)

SubscriptionCheck = Callable[[Optional[str], Callable[[str], None]], Awaitable[None]]


def mask_lines(runner, value: str, min_length: int) -> List[str]:
    """
    Register each line of a secret value for log redaction.

    Multiline values are masked line by line. Empty lines and lines shorter
    than ``min_length`` are skipped.

    Returns:
        The lines that were masked, in order
    """
    masked = []
    for line in LINE_BREAK.split(value):
        if line and len(line) >= min_length:
            runner.set_secret(line)
            masked.append(line)
    return masked


def publish_secret(runner, ref: SecretReference, value: str, config: ActionConfig) -> None:
    """Mask a fetched value, then expose it as a step output and optionally an env var."""
    masked = mask_lines(runner, value, config.min_mask_length)
    if not masked:
        logger.warning(
            f"No line of the value for output '{ref.output_name}' reaches min_mask_length="
            f"{config.min_mask_length}; it will not be redacted in logs"
        )

    runner.set_output(ref.output_name, value)
    if config.export_to_environment:
        runner.export_variable(ref.output_name, value)


async def access_and_publish(
    runner,
    client: GCPSecretClient,
    refs: List[SecretReference],
    config: ActionConfig,
) -> None:
    """
    Fetch and publish references strictly one after another.

    The first failure stops the loop; outputs published before it stay set.

    Raises:
        AccessError: If any secret cannot be fetched
    """
    for ref in refs:
        logger.info(f"Accessing {ref.resource_name} for output '{ref.output_name}'")
        value = await client.access_secret(ref, config.encoding)
        publish_secret(runner, ref, value, config)
        logger.info(f"Published output '{ref.output_name}'")


async def run_action(
    config: ActionConfig,
    runner,
    client: Optional[GCPSecretClient] = None,
    check_subscription: SubscriptionCheck = validate_subscription,
) -> List[SecretReference]:
    """
    Run the whole step: subscription check, parse, then fetch/mask/publish.

    Args:
        config: Run configuration
        runner: Runner primitives (``set_secret``, ``set_output``, ``export_variable``, ``info``)
        client: Secret Manager client, created for ``config.universe`` if not provided
        check_subscription: Pre-flight check, awaited with the repository name
            and the runner's job-log notifier

    Returns:
        The references that were published, in order

    Raises:
        EntitlementDenied: If the subscription check rejects the repository
        ParseError: If the secrets input is malformed
        AccessError: If any secret cannot be fetched
    """
    await check_subscription(config.repository, runner.info)

    refs = parse_secrets_refs(config.secrets)
    logger.info(f"Parsed {len(refs)} secret reference(s)")

    if client is not None:
        await access_and_publish(runner, client, refs, config)
        return refs

    client = GCPSecretClient(universe=config.universe)
    try:
        await access_and_publish(runner, client, refs, config)
    finally:
        await client.close()
    return refs
