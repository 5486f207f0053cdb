"""Provisioning workflow for the Azure NetApp Files sample.

Creates, in order::

    subnet_check -> account -> capacity_pool -> nfsv3_volume -> nfsv41_volume
    -> snapshot -> volume_from_snapshot -> volume_resize

The first failing stage stops provisioning; every later stage is marked
skipped. Cleanup always runs afterwards and deletes, newest first, only the
resources that were actually created.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from .auth import get_credentials
from .clients import BaseANFClient, get_client
from .clients.base import NFSV3, NFSV41
from .config import VIRTUAL_NETWORKS_API_VERSION, SampleConfig, load_config
from .contracts import AzureResource, StageStatus, WorkflowState
from .errors import ANFSampleError, ResourceNotFoundError, StageFailedError
from .utils.sizes import bytes_to_gib, bytes_to_tib
from .utils.wait import wait_for_anf_resource, wait_for_no_anf_resource

logger = logging.getLogger(__name__)

SUBNET_CHECK = "subnet_check"
ACCOUNT = "account"
CAPACITY_POOL = "capacity_pool"
NFSV3_VOLUME = "nfsv3_volume"
NFSV41_VOLUME = "nfsv41_volume"
SNAPSHOT = "snapshot"
VOLUME_FROM_SNAPSHOT = "volume_from_snapshot"
VOLUME_RESIZE = "volume_resize"

PROVISIONING_SEQUENCE = (
    SUBNET_CHECK,
    ACCOUNT,
    CAPACITY_POOL,
    NFSV3_VOLUME,
    NFSV41_VOLUME,
    SNAPSHOT,
    VOLUME_FROM_SNAPSHOT,
    VOLUME_RESIZE,
)

# Reverse dependency order. A tuple entry groups stages that share no state
# and are deleted concurrently.
CLEANUP_SEQUENCE: Tuple[Union[str, Tuple[str, ...]], ...] = (
    VOLUME_FROM_SNAPSHOT,
    SNAPSHOT,
    (NFSV3_VOLUME, NFSV41_VOLUME),
    CAPACITY_POOL,
    ACCOUNT,
)

StageAction = Callable[[WorkflowState], Awaitable[Optional[AzureResource]]]


class ProvisioningWorkflow:
    """Runs the provisioning stages against a client, then cleans up."""

    def __init__(
        self,
        client: BaseANFClient,
        config: SampleConfig,
        subscription_id: str,
    ) -> None:
        self._client = client
        self._config = config
        self._subscription_id = subscription_id
        self._actions: List[Tuple[str, StageAction]] = [
            (SUBNET_CHECK, self._check_subnet),
            (ACCOUNT, self._create_account),
            (CAPACITY_POOL, self._create_capacity_pool),
            (NFSV3_VOLUME, self._create_nfsv3_volume),
            (NFSV41_VOLUME, self._create_nfsv41_volume),
            (SNAPSHOT, self._create_snapshot),
            (VOLUME_FROM_SNAPSHOT, self._create_volume_from_snapshot),
            (VOLUME_RESIZE, self._resize_volume),
        ]

    @property
    def subnet_id(self) -> str:
        return self._config.subnet_id(self._subscription_id)

    async def run(self) -> WorkflowState:
        """Provision every stage, then run cleanup whatever happened."""
        state = WorkflowState.start(
            [name for name, _ in self._actions],
            should_cleanup=self._config.should_cleanup,
        )
        try:
            await self.provision(state)
        finally:
            await self.cleanup(state)
        return state

    # ------------------------------------------------------------------
    # Provisioning
    async def provision(self, state: WorkflowState) -> None:
        for name, action in self._actions:
            try:
                await self._run_stage(state, name, action)
            except StageFailedError as exc:
                skipped = state.skip_remaining()
                if skipped:
                    logger.info(f"Skipping remaining stages: {', '.join(skipped)}")
                logger.debug(f"Provisioning halted: {exc}")
                return

    async def _run_stage(self, state: WorkflowState, name: str, action: StageAction) -> None:
        state.mark_started(name)
        try:
            resource = await action(state)
        except Exception as exc:
            state.mark_failed(name, str(exc))
            logger.error(f"An error occurred during stage {name}: {exc}")
            raise StageFailedError(name, exc) from exc
        state.mark_succeeded(name, resource.id if resource is not None else None)

    async def _check_subnet(self, state: WorkflowState) -> AzureResource:
        subnet_id = self.subnet_id
        logger.info(f"Checking if subnet {subnet_id} exists.")
        try:
            return await self._client.get_resource_by_id(subnet_id, VIRTUAL_NETWORKS_API_VERSION)
        except ResourceNotFoundError:
            logger.error(f"Subnet {subnet_id} not found")
            raise

    async def _create_account(self, state: WorkflowState) -> AzureResource:
        logger.info("Creating Azure NetApp Files account...")
        account = await self._client.create_account(
            self._config.resource_group_name,
            self._config.account_name,
            self._config.location,
            tags=self._config.tags,
        )
        logger.info(f"Account successfully created, resource id: {account.id}")
        return account

    async def _create_capacity_pool(self, state: WorkflowState) -> AzureResource:
        logger.info(
            f"Creating Capacity Pool ({bytes_to_tib(self._config.capacity_pool_size_bytes)} TiB, "
            f"{self._config.service_level})..."
        )
        pool = await self._client.create_capacity_pool(
            self._config.resource_group_name,
            self._config.account_name,
            self._config.capacity_pool_name,
            location=self._config.location,
            service_level=self._config.service_level,
            size_bytes=self._config.capacity_pool_size_bytes,
            tags=self._config.tags,
        )
        logger.info(f"Capacity Pool successfully created, resource id: {pool.id}")
        return pool

    async def _create_volume(
        self,
        volume_name: str,
        protocol: str,
        snapshot_id: Optional[str] = None,
    ) -> AzureResource:
        return await self._client.create_volume(
            self._config.resource_group_name,
            self._config.account_name,
            self._config.capacity_pool_name,
            volume_name,
            location=self._config.location,
            service_level=self._config.service_level,
            subnet_id=self.subnet_id,
            protocol_types=[protocol],
            usage_threshold=self._config.volume_size_bytes,
            snapshot_id=snapshot_id,
            tags=self._config.tags,
        )

    async def _create_nfsv3_volume(self, state: WorkflowState) -> AzureResource:
        logger.info("Creating NFSv3 Volume...")
        volume = await self._create_volume(self._config.nfsv3_volume_name, NFSV3)
        logger.info(f"NFSv3 volume successfully created, resource id: {volume.id}")
        return volume

    async def _create_nfsv41_volume(self, state: WorkflowState) -> AzureResource:
        logger.info("Creating NFSv4.1 Volume...")
        volume = await self._create_volume(self._config.nfsv41_volume_name, NFSV41)
        logger.info(f"NFSv4.1 volume successfully created, resource id: {volume.id}")
        return volume

    async def _create_snapshot(self, state: WorkflowState) -> AzureResource:
        # Snapshots do not depend on the protocol; the NFSv3 volume is used here.
        logger.info("Creating Snapshot from NFSv3 Volume...")
        snapshot = await self._client.create_snapshot(
            self._config.resource_group_name,
            self._config.account_name,
            self._config.capacity_pool_name,
            self._config.nfsv3_volume_name,
            self._config.nfsv3_snapshot_name,
            self._config.location,
        )
        logger.info(f"Snapshot successfully created, resource id: {snapshot.id}")
        return snapshot

    async def _create_volume_from_snapshot(self, state: WorkflowState) -> AzureResource:
        # Restores must keep the protocol of the source volume.
        # The snapshot stage records its id as soon as creation returns.
        snapshot_id = state.resource_id(SNAPSHOT)
        await wait_for_anf_resource(
            self._client,
            snapshot_id,
            self._config.polling.interval_seconds,
            self._config.polling.max_iterations,
        )
        logger.info("Creating new NFSv3 Volume from Snapshot...")
        snapshot = await self._client.get_anf_resource(snapshot_id)
        if not snapshot.snapshot_id:
            raise ANFSampleError(f"snapshot {snapshot.id} has no snapshot id to restore from")
        volume = await self._create_volume(
            self._config.volume_from_snapshot_name, NFSV3, snapshot_id=snapshot.snapshot_id
        )
        logger.info(f"NFSv3 volume from snapshot successfully created, resource id: {volume.id}")
        return volume

    async def _resize_volume(self, state: WorkflowState) -> AzureResource:
        logger.info("Updating NFSv4.1 volume size...")
        new_size = self._config.volume_size_bytes * 2
        volume = await self._client.update_volume(
            self._config.resource_group_name,
            self._config.account_name,
            self._config.capacity_pool_name,
            self._config.nfsv41_volume_name,
            usage_threshold=new_size,
            tags=self._config.tags,
        )
        logger.info(
            f"NFSv4.1 volume successfully updated with new size {bytes_to_gib(new_size)} GiB, "
            f"resource id: {volume.id}"
        )
        return volume

    # ------------------------------------------------------------------
    # Cleanup
    async def cleanup(self, state: WorkflowState) -> None:
        """Delete created resources newest first.

        The first failed deletion stops the remaining cleanup steps.
        """
        logger.info("Exiting")
        if not state.should_cleanup:
            logger.info("Cleanup is disabled, leaving created resources in place")
            return

        logger.info("Performing clean up")
        for entry in CLEANUP_SEQUENCE:
            group: Sequence[str] = entry if isinstance(entry, tuple) else (entry,)
            outcomes = await asyncio.gather(
                *(self._cleanup_stage(state, name) for name in group)
            )
            if not all(outcomes):
                logger.error("Clean up halted after a failed deletion")
                return
        logger.info("Cleanup completed!")

    async def _cleanup_stage(self, state: WorkflowState, name: str) -> bool:
        resource_id = state.resource_id(name)
        if not resource_id:
            logger.info(f"Nothing to clean up for {name}")
            state.record_cleanup(name, StageStatus.SKIPPED)
            return True

        logger.info(f"Cleaning up {name} ({resource_id})...")
        try:
            await self._client.delete_anf_resource(resource_id)
            await wait_for_no_anf_resource(
                self._client,
                resource_id,
                self._config.polling.interval_seconds,
                self._config.polling.max_iterations,
            )
        except Exception as exc:
            logger.error(f"An error occurred while deleting {name}: {exc}")
            state.record_cleanup(name, StageStatus.FAILED, resource_id=resource_id, error=str(exc))
            return False
        logger.info(f"{name} successfully deleted")
        state.record_cleanup(name, StageStatus.SUCCEEDED, resource_id=resource_id)
        return True


async def run_sample(
    config: Optional[SampleConfig] = None,
    client: Optional[BaseANFClient] = None,
    auth_path: Optional[str] = None,
    subscription_id: Optional[str] = None,
) -> WorkflowState:
    """Top-level driver: resolve credentials and client, then run the workflow.

    Credentials are only loaded when no client is supplied and the configured
    backend is ``azure``. A credential failure is fatal: no stage runs and
    the returned state carries exit code 1.
    """
    config = config or load_config()
    owns_client = client is None

    if client is None:
        credential = None
        if config.client.backend == "azure":
            try:
                credential, subscription_id = get_credentials(auth_path)
            except ANFSampleError as exc:
                logger.error(
                    f"An error occurred getting non-sensitive info from the auth file: {exc}"
                )
                state = WorkflowState.start(PROVISIONING_SEQUENCE, should_cleanup=False)
                state.skip_remaining()
                state.exit_code = 1
                return state
        client = get_client(
            config.client.backend,
            config=config,
            credential=credential,
            subscription_id=subscription_id,
        )

    subscription_id = subscription_id or getattr(client, "subscription_id", None)
    if not subscription_id:
        raise ValueError("a subscription id is required to build resource ids")

    workflow = ProvisioningWorkflow(client, config, subscription_id)
    try:
        return await workflow.run()
    finally:
        if owns_client:
            await client.close()
