"""Client factory and initialization."""

from __future__ import annotations

import os
from typing import Any, Optional

from ..config import SampleConfig, load_config
from .base import (
    SERVICE_LEVELS,
    VALID_PROTOCOLS,
    BaseANFClient,
    validate_protocol_types,
    validate_service_level,
)
from .inmemory import InMemoryANFClient


def get_client(
    backend: Optional[str] = None,
    config: Optional[SampleConfig] = None,
    credential: Any = None,
    subscription_id: Optional[str] = None,
) -> BaseANFClient:
    """Factory function to get the configured resource client.

    The azure backend needs ``credential`` and ``subscription_id``; see
    :func:`anfsample.auth.get_credentials`.
    """

    config = config or load_config()
    backend = (
        backend
        or os.getenv("ANFSAMPLE_BACKEND")
        or config.client.backend
    ).lower()

    if backend == "inmemory":
        if subscription_id:
            return InMemoryANFClient(subscription_id)
        return InMemoryANFClient()
    elif backend == "azure":
        from .azure import AzureANFClient

        if credential is None or not subscription_id:
            raise ValueError("azure backend requires a credential and a subscription id")
        return AzureANFClient(
            credential, subscription_id, user_agent=config.client.user_agent
        )
    else:
        raise ValueError(f"Unsupported client backend: {backend}")


__all__ = [
    "BaseANFClient",
    "InMemoryANFClient",
    "SERVICE_LEVELS",
    "VALID_PROTOCOLS",
    "get_client",
    "validate_protocol_types",
    "validate_service_level",
]
