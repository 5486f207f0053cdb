from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..errors import ResourceNotFoundError, WaitTimeoutError

if TYPE_CHECKING:
    from ..clients import BaseANFClient

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60
DEFAULT_MAX_ITERATIONS = 60


async def wait_for_no_anf_resource(
    client: "BaseANFClient",
    resource_id: str,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> None:
    """Poll until ``resource_id`` is gone.

    Deletions report completion before the resource stops showing up in
    reads, so callers poll before deleting the parent resource.

    Raises:
        WaitTimeoutError: If the resource still exists after ``max_iterations`` polls.
    """
    for iteration in range(max_iterations):
        try:
            await client.get_anf_resource(resource_id)
        except ResourceNotFoundError:
            logger.debug(f"{resource_id} no longer exists after {iteration + 1} polls")
            return
        if iteration < max_iterations - 1:
            await asyncio.sleep(interval_seconds)
    raise WaitTimeoutError(resource_id, max_iterations, interval_seconds)


async def wait_for_anf_resource(
    client: "BaseANFClient",
    resource_id: str,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> None:
    """Poll until ``resource_id`` can be read back.

    Raises:
        WaitTimeoutError: If the resource is still missing after ``max_iterations`` polls.
    """
    for iteration in range(max_iterations):
        try:
            await client.get_anf_resource(resource_id)
        except ResourceNotFoundError:
            if iteration < max_iterations - 1:
                await asyncio.sleep(interval_seconds)
            continue
        logger.debug(f"{resource_id} is available after {iteration + 1} polls")
        return
    raise WaitTimeoutError(resource_id, max_iterations, interval_seconds)
