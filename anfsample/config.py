from __future__ import annotations

import os
import uuid
from typing import Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .utils.sizes import MIN_CAPACITY_POOL_SIZE_BYTES, MIN_VOLUME_SIZE_BYTES

VIRTUAL_NETWORKS_API_VERSION = "2019-09-01"


def _generate_account_name() -> str:
    return f"anf-{uuid.uuid4().hex[:8]}"


class PollingConfig(BaseModel):
    """Bounds for existence polling during cleanup."""

    interval_seconds: int = Field(default=60, ge=0)
    max_iterations: int = Field(default=60, ge=1)


class ClientConfig(BaseModel):
    """Resource client settings."""

    backend: Literal["azure", "inmemory"] = "azure"
    user_agent: str = "anf-sdk-sample-agent"


class SampleConfig(BaseModel):
    """Top-level configuration model."""

    location: str = "westus2"
    resource_group_name: str = "anf02-rg"
    vnet_resource_group_name: str = "anf02-rg"
    vnet_name: str = "vnet-03"
    subnet_name: str = "anf-sn"
    account_name: str = Field(default_factory=_generate_account_name)
    capacity_pool_name: str = "Pool01"
    # Standard, Premium or Ultra
    service_level: str = "Standard"
    capacity_pool_size_bytes: int = Field(
        default=MIN_CAPACITY_POOL_SIZE_BYTES, ge=MIN_CAPACITY_POOL_SIZE_BYTES
    )
    volume_size_bytes: int = Field(default=MIN_VOLUME_SIZE_BYTES, ge=MIN_VOLUME_SIZE_BYTES)
    tags: Dict[str, str] = Field(
        default_factory=lambda: {
            "Author": "ANF Python SDK Sample",
            "Service": "Azure Netapp Files",
        }
    )
    should_cleanup: bool = True
    polling: PollingConfig = Field(default_factory=PollingConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)

    @property
    def nfsv3_volume_name(self) -> str:
        return f"NFSv3-Vol-{self.account_name}-{self.capacity_pool_name}"

    @property
    def nfsv41_volume_name(self) -> str:
        return f"NFSv41-Vol-{self.account_name}-{self.capacity_pool_name}"

    @property
    def nfsv3_snapshot_name(self) -> str:
        return f"Snapshot-NFSv3-Vol-{self.account_name}-{self.capacity_pool_name}"

    @property
    def volume_from_snapshot_name(self) -> str:
        return f"NFSv3-FromSnapshot-Vol-{self.account_name}-{self.capacity_pool_name}"

    def subnet_id(self, subscription_id: str) -> str:
        """Resource id of the subnet delegated to Azure NetApp Files."""
        return (
            f"/subscriptions/{subscription_id}"
            f"/resourceGroups/{self.vnet_resource_group_name}"
            f"/providers/Microsoft.Network/virtualNetworks/{self.vnet_name}"
            f"/subnets/{self.subnet_name}"
        )


def load_config(path: Optional[str] = None) -> SampleConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to ANFSAMPLE_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("ANFSAMPLE_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = SampleConfig(**data)
    else:
        config = SampleConfig()

    env_backend = os.getenv("ANFSAMPLE_BACKEND")
    if env_backend:
        config.client.backend = env_backend.lower()
    env_cleanup = os.getenv("ANFSAMPLE_CLEANUP")
    if env_cleanup:
        config.should_cleanup = env_cleanup.strip().lower() in ("1", "true", "yes")
    return config
