"""Base client interface for Azure NetApp Files management operations."""

from __future__ import annotations

import abc
from typing import Dict, List, Optional, Sequence, Tuple

from .. import uri
from ..contracts import AzureResource
from ..errors import InvalidArgumentError, InvalidProtocolError, InvalidServiceLevelError

NFSV3 = "NFSv3"
NFSV41 = "NFSv4.1"
CIFS = "CIFS"

VALID_PROTOCOLS = (NFSV3, NFSV41, CIFS)
SERVICE_LEVELS = ("Standard", "Premium", "Ultra")


def validate_service_level(service_level: str) -> str:
    """Return the canonical spelling of ``service_level`` (case-insensitive)."""
    for level in SERVICE_LEVELS:
        if (service_level or "").strip().lower() == level.lower():
            return level
    raise InvalidServiceLevelError(
        f"invalid service level {service_level!r}, supported service levels are: "
        f"{', '.join(SERVICE_LEVELS)}"
    )


def validate_protocol_types(protocol_types: Sequence[str]) -> List[str]:
    """Check that exactly one supported protocol type is requested."""
    if not protocol_types:
        raise InvalidProtocolError("a protocol type is required")
    if len(protocol_types) > 1:
        raise InvalidProtocolError("only one protocol type is supported at this time")
    if protocol_types[0] not in VALID_PROTOCOLS:
        raise InvalidProtocolError(
            f"invalid protocol type {protocol_types[0]!r}, valid protocol types are: "
            f"{', '.join(VALID_PROTOCOLS)}"
        )
    return list(protocol_types)


class BaseANFClient(metaclass=abc.ABCMeta):
    """Abstract client for account, pool, volume and snapshot operations.

    Create and update calls follow create-or-update semantics and return once
    the long-running operation has finished.
    """

    async def close(self) -> None:
        """Release underlying connections (no-op by default)."""
        pass

    @abc.abstractmethod
    async def get_resource_by_id(self, resource_id: str, api_version: str) -> AzureResource:
        """Read any resource by id, e.g. the delegated subnet."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Create / update
    @abc.abstractmethod
    async def create_account(
        self,
        resource_group_name: str,
        account_name: str,
        location: str,
        tags: Optional[Dict[str, str]] = None,
    ) -> AzureResource:
        raise NotImplementedError

    async def create_capacity_pool(
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
        """Validate the service level, then create the capacity pool."""
        return await self._create_capacity_pool(
            resource_group_name,
            account_name,
            pool_name,
            location=location,
            service_level=validate_service_level(service_level),
            size_bytes=size_bytes,
            tags=tags,
        )

    async def create_volume(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        *,
        location: str,
        service_level: str,
        subnet_id: str,
        protocol_types: Sequence[str],
        usage_threshold: int,
        snapshot_id: Optional[str] = None,
        unix_read_only: bool = False,
        unix_read_write: bool = True,
        tags: Optional[Dict[str, str]] = None,
    ) -> AzureResource:
        """Validate protocol and service level, then create the volume.

        A non-empty ``snapshot_id`` restores the volume from that snapshot.
        """
        protocols = validate_protocol_types(protocol_types)
        level = validate_service_level(service_level)
        return await self._create_volume(
            resource_group_name,
            account_name,
            pool_name,
            volume_name,
            location=location,
            service_level=level,
            subnet_id=subnet_id,
            protocol_types=protocols,
            usage_threshold=usage_threshold,
            snapshot_id=snapshot_id,
            unix_read_only=unix_read_only,
            unix_read_write=unix_read_write,
            tags=tags,
        )

    @abc.abstractmethod
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
        raise NotImplementedError

    @abc.abstractmethod
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
        raise NotImplementedError

    @abc.abstractmethod
    async def create_snapshot(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
        location: str,
    ) -> AzureResource:
        raise NotImplementedError

    @abc.abstractmethod
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
        """Patch the volume quota."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Read
    @abc.abstractmethod
    async def get_account(self, resource_group_name: str, account_name: str) -> AzureResource:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_capacity_pool(
        self, resource_group_name: str, account_name: str, pool_name: str
    ) -> AzureResource:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_volume(
        self, resource_group_name: str, account_name: str, pool_name: str, volume_name: str
    ) -> AzureResource:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_snapshot(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
    ) -> AzureResource:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Delete
    @abc.abstractmethod
    async def delete_account(self, resource_group_name: str, account_name: str) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete_capacity_pool(
        self, resource_group_name: str, account_name: str, pool_name: str
    ) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete_volume(
        self, resource_group_name: str, account_name: str, pool_name: str, volume_name: str
    ) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete_snapshot(
        self,
        resource_group_name: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
    ) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Id-based helpers
    async def get_anf_resource(self, resource_id: str) -> AzureResource:
        """Read an account, pool, volume or snapshot given only its id."""
        kind, names = _parse_anf_id(resource_id)
        if kind is uri.ResourceKind.ACCOUNT:
            return await self.get_account(*names)
        if kind is uri.ResourceKind.CAPACITY_POOL:
            return await self.get_capacity_pool(*names)
        if kind is uri.ResourceKind.VOLUME:
            return await self.get_volume(*names)
        return await self.get_snapshot(*names)

    async def delete_anf_resource(self, resource_id: str) -> None:
        """Delete an account, pool, volume or snapshot given only its id."""
        kind, names = _parse_anf_id(resource_id)
        if kind is uri.ResourceKind.ACCOUNT:
            await self.delete_account(*names)
        elif kind is uri.ResourceKind.CAPACITY_POOL:
            await self.delete_capacity_pool(*names)
        elif kind is uri.ResourceKind.VOLUME:
            await self.delete_volume(*names)
        else:
            await self.delete_snapshot(*names)


def _parse_anf_id(resource_id: str) -> Tuple[uri.ResourceKind, List[str]]:
    kind = uri.classify(resource_id)
    if kind is None:
        raise InvalidArgumentError(f"{resource_id!r} is not an Azure NetApp Files resource id")

    names = [uri.get_resource_group(resource_id), uri.get_anf_account(resource_id)]
    if kind is not uri.ResourceKind.ACCOUNT:
        names.append(uri.get_anf_capacity_pool(resource_id))
    if kind in (uri.ResourceKind.VOLUME, uri.ResourceKind.SNAPSHOT):
        names.append(uri.get_anf_volume(resource_id))
    if kind is uri.ResourceKind.SNAPSHOT:
        names.append(uri.get_anf_snapshot(resource_id))
    return kind, names
