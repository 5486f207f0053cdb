"""In-memory client for tests and dry runs."""

from __future__ import annotations

import asyncio
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from .. import uri
from ..contracts import AzureResource
from ..errors import ApiError, ResourceNotFoundError
from .base import BaseANFClient

DEFAULT_SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"


class InMemoryANFClient(BaseANFClient):
    """Keeps resources in a dict and records every call.

    Args:
        subscription_id: Subscription used to build resource ids.
        fail_on: Operation names (e.g. ``"create_capacity_pool"``) that raise ``ApiError``.
        missing_resource_ids: Non-NetApp ids reported as not found by ``get_resource_by_id``.
        delete_lag: Number of reads a deleted resource stays visible for.
    """

    def __init__(
        self,
        subscription_id: str = DEFAULT_SUBSCRIPTION_ID,
        *,
        fail_on: Iterable[str] = (),
        missing_resource_ids: Iterable[str] = (),
        delete_lag: int = 0,
    ) -> None:
        self.subscription_id = subscription_id
        self.fail_on = set(fail_on)
        self.missing_resource_ids = {rid.lower() for rid in missing_resource_ids}
        self.delete_lag = delete_lag
        self.calls: List[Tuple[str, str]] = []
        self._resources: Dict[str, AzureResource] = {}
        self._deleting: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Helpers
    def _record(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        if operation in self.fail_on:
            raise ApiError(f"{operation} failed for {target}", status_code=500, resource_id=target)

    def _account_id(self, resource_group_name: str, account_name: str) -> str:
        return (
            f"/subscriptions/{self.subscription_id}/resourceGroups/{resource_group_name}"
            f"/providers/{uri.NETAPP_PROVIDER}/netAppAccounts/{account_name}"
        )

    def _pool_id(self, resource_group_name: str, account_name: str, pool_name: str) -> str:
        return f"{self._account_id(resource_group_name, account_name)}/capacityPools/{pool_name}"

    def _volume_id(
        self, resource_group_name: str, account_name: str, pool_name: str, volume_name: str
    ) -> str:
        return f"{self._pool_id(resource_group_name, account_name, pool_name)}/volumes/{volume_name}"

    def _snapshot_id(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
    ) -> str:
        volume_id = self._volume_id(resource_group_name, account_name, pool_name, volume_name)
        return f"{volume_id}/snapshots/{snapshot_name}"

    def _parent_id(self, resource_id: str) -> str:
        # Drop the trailing "{type}/{name}" pair.
        return resource_id.rsplit("/", 2)[0]

    def _require_parent(self, resource_id: str) -> None:
        parent = self._parent_id(resource_id)
        if uri.is_anf_resource(parent) and parent.lower() not in self._resources:
            raise ResourceNotFoundError(f"parent resource {parent} not found", resource_id=parent)

    def _store(self, resource: AzureResource) -> AzureResource:
        key = resource.id.lower()
        self._deleting.pop(key, None)
        existing = self._resources.get(key)
        if existing is not None:
            resource = existing.model_copy(
                update=resource.model_dump(exclude_none=True, exclude={"snapshot_id"})
            )
        self._resources[key] = resource
        return resource.model_copy()

    def _read(self, resource_id: str) -> AzureResource:
        key = resource_id.lower()
        if key in self._deleting:
            remaining = self._deleting[key]
            if remaining > 0:
                self._deleting[key] = remaining - 1
                return self._resources[key].model_copy()
            del self._deleting[key]
            del self._resources[key]
        resource = self._resources.get(key)
        if resource is None:
            raise ResourceNotFoundError(f"{resource_id} not found", resource_id=resource_id)
        return resource.model_copy()

    def _delete(self, resource_id: str) -> None:
        key = resource_id.lower()
        if key not in self._resources or key in self._deleting:
            raise ResourceNotFoundError(f"{resource_id} not found", resource_id=resource_id)
        prefix = key + "/"
        if any(other.startswith(prefix) for other in self._resources):
            raise ApiError(
                "Cannot delete resource while nested resources exist",
                status_code=409,
                resource_id=resource_id,
            )
        if self.delete_lag > 0:
            self._deleting[key] = self.delete_lag
        else:
            del self._resources[key]

    def resource_ids(self) -> List[str]:
        """Ids of every resource currently stored."""
        return [resource.id for resource in self._resources.values()]

    # ------------------------------------------------------------------
    async def get_resource_by_id(self, resource_id: str, api_version: str) -> AzureResource:
        self._record("get_resource_by_id", resource_id)
        if resource_id.lower() in self.missing_resource_ids:
            raise ResourceNotFoundError(f"{resource_id} not found", resource_id=resource_id)
        if uri.classify(resource_id) is not None:
            return await self.get_anf_resource(resource_id)
        return AzureResource(id=resource_id, name=uri.get_resource_name(resource_id))

    async def create_account(
        self,
        resource_group_name: str,
        account_name: str,
        location: str,
        tags: Optional[Dict[str, str]] = None,
    ) -> AzureResource:
        self._record("create_account", account_name)
        resource_id = self._account_id(resource_group_name, account_name)
        async with self._lock:
            return self._store(
                AzureResource(
                    id=resource_id,
                    name=account_name,
                    location=location,
                    provisioning_state="Succeeded",
                )
            )

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
        self._record("create_capacity_pool", pool_name)
        resource_id = self._pool_id(resource_group_name, account_name, pool_name)
        async with self._lock:
            self._require_parent(resource_id)
            return self._store(
                AzureResource(
                    id=resource_id,
                    name=pool_name,
                    location=location,
                    provisioning_state="Succeeded",
                )
            )

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
        self._record("create_volume", volume_name)
        resource_id = self._volume_id(resource_group_name, account_name, pool_name, volume_name)
        async with self._lock:
            self._require_parent(resource_id)
            if snapshot_id and not any(
                r.snapshot_id == snapshot_id for r in self._resources.values()
            ):
                raise ApiError(
                    f"snapshot {snapshot_id} not found", status_code=400, resource_id=resource_id
                )
            return self._store(
                AzureResource(
                    id=resource_id,
                    name=volume_name,
                    location=location,
                    provisioning_state="Succeeded",
                    usage_threshold=usage_threshold,
                )
            )

    async def create_snapshot(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
        location: str,
    ) -> AzureResource:
        self._record("create_snapshot", snapshot_name)
        resource_id = self._snapshot_id(
            resource_group_name, account_name, pool_name, volume_name, snapshot_name
        )
        async with self._lock:
            self._require_parent(resource_id)
            return self._store(
                AzureResource(
                    id=resource_id,
                    name=snapshot_name,
                    location=location,
                    provisioning_state="Succeeded",
                    snapshot_id=str(uuid.uuid4()),
                )
            )

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
        self._record("update_volume", volume_name)
        resource_id = self._volume_id(resource_group_name, account_name, pool_name, volume_name)
        async with self._lock:
            current = self._read(resource_id)
            current.usage_threshold = usage_threshold
            return self._store(current)

    async def get_account(self, resource_group_name: str, account_name: str) -> AzureResource:
        self._record("get_account", account_name)
        return self._read(self._account_id(resource_group_name, account_name))

    async def get_capacity_pool(
        self, resource_group_name: str, account_name: str, pool_name: str
    ) -> AzureResource:
        self._record("get_capacity_pool", pool_name)
        return self._read(self._pool_id(resource_group_name, account_name, pool_name))

    async def get_volume(
        self, resource_group_name: str, account_name: str, pool_name: str, volume_name: str
    ) -> AzureResource:
        self._record("get_volume", volume_name)
        return self._read(
            self._volume_id(resource_group_name, account_name, pool_name, volume_name)
        )

    async def get_snapshot(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
    ) -> AzureResource:
        self._record("get_snapshot", snapshot_name)
        return self._read(
            self._snapshot_id(
                resource_group_name, account_name, pool_name, volume_name, snapshot_name
            )
        )

    async def delete_account(self, resource_group_name: str, account_name: str) -> None:
        self._record("delete_account", account_name)
        async with self._lock:
            self._delete(self._account_id(resource_group_name, account_name))

    async def delete_capacity_pool(
        self, resource_group_name: str, account_name: str, pool_name: str
    ) -> None:
        self._record("delete_capacity_pool", pool_name)
        async with self._lock:
            self._delete(self._pool_id(resource_group_name, account_name, pool_name))

    async def delete_volume(
        self, resource_group_name: str, account_name: str, pool_name: str, volume_name: str
    ) -> None:
        self._record("delete_volume", volume_name)
        async with self._lock:
            self._delete(
                self._volume_id(resource_group_name, account_name, pool_name, volume_name)
            )

    async def delete_snapshot(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
    ) -> None:
        self._record("delete_snapshot", snapshot_name)
        async with self._lock:
            self._delete(
                self._snapshot_id(
                    resource_group_name, account_name, pool_name, volume_name, snapshot_name
                )
            )
