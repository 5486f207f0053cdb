"""Azure SDK backed client.

The management SDK is synchronous; every call, including waiting on a
long-running operation's poller, runs in a worker thread so the workflow
stays async.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from azure.core.exceptions import AzureError, HttpResponseError
from azure.core.exceptions import ResourceNotFoundError as AzureResourceNotFoundError
from azure.mgmt.netapp import NetAppManagementClient
from azure.mgmt.netapp.models import (
    CapacityPool,
    ExportPolicyRule,
    NetAppAccount,
    Snapshot,
    Volume,
    VolumePatch,
    VolumePropertiesExportPolicy,
)
from azure.mgmt.resource import ResourceManagementClient

from .. import uri
from ..contracts import AzureResource
from ..errors import ApiError, InvalidArgumentError, ResourceNotFoundError
from .base import CIFS, NFSV3, NFSV41, BaseANFClient

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "anf-sdk-sample-agent"


def _to_resource(model: Any) -> AzureResource:
    resource_id = model.id
    return AzureResource(
        id=resource_id,
        # Nested resources report "account/pool/volume" as their name.
        name=uri.get_resource_name(resource_id) if resource_id else model.name,
        location=getattr(model, "location", None),
        provisioning_state=getattr(model, "provisioning_state", None),
        usage_threshold=getattr(model, "usage_threshold", None),
        snapshot_id=getattr(model, "snapshot_id", None),
    )


class AzureANFClient(BaseANFClient):
    """Client backed by ``NetAppManagementClient`` and ``ResourceManagementClient``."""

    def __init__(
        self,
        credential: Any,
        subscription_id: str,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        netapp_client: Optional[NetAppManagementClient] = None,
        resource_client: Optional[ResourceManagementClient] = None,
    ) -> None:
        self.subscription_id = subscription_id
        self._netapp = netapp_client or NetAppManagementClient(
            credential, subscription_id, user_agent=user_agent
        )
        self._resources = resource_client or ResourceManagementClient(
            credential, subscription_id, user_agent=user_agent
        )

    async def close(self) -> None:
        self._netapp.close()
        self._resources.close()

    async def _call(self, target: str, func: Callable[..., Any], *args: Any) -> Any:
        """Run ``func`` in a worker thread and translate SDK errors."""
        try:
            return await asyncio.to_thread(func, *args)
        except AzureResourceNotFoundError as exc:
            raise ResourceNotFoundError(exc.message or f"{target} not found", resource_id=target) from exc
        except HttpResponseError as exc:
            raise ApiError(exc.message, status_code=exc.status_code, resource_id=target) from exc
        except AzureError as exc:
            raise ApiError(exc.message, resource_id=target) from exc

    async def _wait(self, target: str, begin: Callable[..., Any], *args: Any) -> Any:
        """Start a long-running operation and block until it finishes."""
        logger.debug(f"Waiting on long-running operation for {target}")
        return await self._call(target, lambda: begin(*args).result())

    # ------------------------------------------------------------------
    async def get_resource_by_id(self, resource_id: str, api_version: str) -> AzureResource:
        """Read a generic resource, splitting its id into the ARM coordinates."""
        resource_group = uri.get_resource_group(resource_id)
        provider = uri.get_resource_value(resource_id, uri.PROVIDERS_MARKER)
        if not resource_group or not provider:
            raise InvalidArgumentError(f"{resource_id!r} is not a resource group scoped id")
        resource_name = uri.get_resource_name(resource_id)
        resource_type = uri.get_resource_value(resource_id, provider)

        parent_resource_path = ""
        if "/subnets/" in resource_id:
            parent_name = uri.get_resource_value(resource_id, resource_type)
            parent_resource_path = f"{resource_type}/{parent_name}"
            resource_type = "subnets"

        resource = await self._call(
            resource_id,
            self._resources.resources.get,
            resource_group,
            provider,
            parent_resource_path,
            resource_type,
            resource_name,
            api_version,
        )
        return AzureResource(
            id=resource.id or resource_id,
            name=resource.name or resource_name,
            location=getattr(resource, "location", None),
        )

    async def create_account(
        self,
        resource_group_name: str,
        account_name: str,
        location: str,
        tags: Optional[Dict[str, str]] = None,
    ) -> AzureResource:
        body = NetAppAccount(location=location, tags=tags)
        account = await self._wait(
            account_name,
            self._netapp.accounts.begin_create_or_update,
            resource_group_name,
            account_name,
            body,
        )
        return _to_resource(account)

    async def _create_capacity_pool(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        *,
        location: str,
        service_level: str,
        size_bytes: int,
        tags: Optional[Dict[str, str]] = None,
    ) -> AzureResource:
        body = CapacityPool(
            location=location,
            service_level=service_level,
            size=size_bytes,
            tags=tags,
        )
        pool = await self._wait(
            pool_name,
            self._netapp.pools.begin_create_or_update,
            resource_group_name,
            account_name,
            pool_name,
            body,
        )
        return _to_resource(pool)

    async def _create_volume(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        *,
        location: str,
        service_level: str,
        subnet_id: str,
        protocol_types: List[str],
        usage_threshold: int,
        snapshot_id: Optional[str] = None,
        unix_read_only: bool = False,
        unix_read_write: bool = True,
        tags: Optional[Dict[str, str]] = None,
    ) -> AzureResource:
        protocol = protocol_types[0]
        rules = [
            ExportPolicyRule(
                rule_index=1,
                allowed_clients="0.0.0.0/0",
                cifs=protocol == CIFS,
                nfsv3=protocol == NFSV3,
                nfsv41=protocol == NFSV41,
                unix_read_only=unix_read_only,
                unix_read_write=unix_read_write,
            )
        ]
        body = Volume(
            location=location,
            tags=tags,
            creation_token=volume_name,
            service_level=service_level,
            subnet_id=subnet_id,
            usage_threshold=usage_threshold,
            protocol_types=protocol_types,
            export_policy=VolumePropertiesExportPolicy(rules=rules),
            snapshot_id=snapshot_id or None,
        )
        volume = await self._wait(
            volume_name,
            self._netapp.volumes.begin_create_or_update,
            resource_group_name,
            account_name,
            pool_name,
            volume_name,
            body,
        )
        return _to_resource(volume)

    async def create_snapshot(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
        location: str,
    ) -> AzureResource:
        snapshot = await self._wait(
            snapshot_name,
            self._netapp.snapshots.begin_create,
            resource_group_name,
            account_name,
            pool_name,
            volume_name,
            snapshot_name,
            Snapshot(location=location),
        )
        return _to_resource(snapshot)

    async def update_volume(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        *,
        usage_threshold: int,
        tags: Optional[Dict[str, str]] = None,
    ) -> AzureResource:
        volume = await self._wait(
            volume_name,
            self._netapp.volumes.begin_update,
            resource_group_name,
            account_name,
            pool_name,
            volume_name,
            VolumePatch(usage_threshold=usage_threshold, tags=tags),
        )
        return _to_resource(volume)

    # ------------------------------------------------------------------
    async def get_account(self, resource_group_name: str, account_name: str) -> AzureResource:
        account = await self._call(
            account_name, self._netapp.accounts.get, resource_group_name, account_name
        )
        return _to_resource(account)

    async def get_capacity_pool(
        self, resource_group_name: str, account_name: str, pool_name: str
    ) -> AzureResource:
        pool = await self._call(
            pool_name, self._netapp.pools.get, resource_group_name, account_name, pool_name
        )
        return _to_resource(pool)

    async def get_volume(
        self, resource_group_name: str, account_name: str, pool_name: str, volume_name: str
    ) -> AzureResource:
        volume = await self._call(
            volume_name,
            self._netapp.volumes.get,
            resource_group_name,
            account_name,
            pool_name,
            volume_name,
        )
        return _to_resource(volume)

    async def get_snapshot(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
    ) -> AzureResource:
        snapshot = await self._call(
            snapshot_name,
            self._netapp.snapshots.get,
            resource_group_name,
            account_name,
            pool_name,
            volume_name,
            snapshot_name,
        )
        return _to_resource(snapshot)

    # ------------------------------------------------------------------
    async def delete_account(self, resource_group_name: str, account_name: str) -> None:
        await self._wait(
            account_name, self._netapp.accounts.begin_delete, resource_group_name, account_name
        )

    async def delete_capacity_pool(
        self, resource_group_name: str, account_name: str, pool_name: str
    ) -> None:
        await self._wait(
            pool_name,
            self._netapp.pools.begin_delete,
            resource_group_name,
            account_name,
            pool_name,
        )

    async def delete_volume(
        self, resource_group_name: str, account_name: str, pool_name: str, volume_name: str
    ) -> None:
        await self._wait(
            volume_name,
            self._netapp.volumes.begin_delete,
            resource_group_name,
            account_name,
            pool_name,
            volume_name,
        )

    async def delete_snapshot(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
    ) -> None:
        await self._wait(
            snapshot_name,
            self._netapp.snapshots.begin_delete,
            resource_group_name,
            account_name,
            pool_name,
            volume_name,
            snapshot_name,
        )
