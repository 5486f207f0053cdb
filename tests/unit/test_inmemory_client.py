"""Tests for the in-memory client."""

import pytest

from anfsample.clients import InMemoryANFClient
from anfsample.errors import (
    ApiError,
    InvalidArgumentError,
    InvalidProtocolError,
    ResourceNotFoundError,
)
from anfsample.utils.sizes import GIB, TIB

RG = "rg"
SUBNET_ID = (
    "/subscriptions/sub/resourceGroups/rg/providers/Microsoft.Network"
    "/virtualNetworks/vnet/subnets/anf"
)


async def _create_pool(client: InMemoryANFClient):
    await client.create_account(RG, "acct", "westus2")
    return await client.create_capacity_pool(
        RG, "acct", "pool", location="westus2", service_level="standard", size_bytes=4 * TIB
    )


async def _create_volume(client: InMemoryANFClient, name="vol", protocols=("NFSv3",), **kwargs):
    return await client.create_volume(
        RG,
        "acct",
        "pool",
        name,
        location="westus2",
        service_level="Standard",
        subnet_id=SUBNET_ID,
        protocol_types=list(protocols),
        usage_threshold=100 * GIB,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_create_builds_arm_ids():
    client = InMemoryANFClient("sub")
    pool = await _create_pool(client)
    volume = await _create_volume(client)

    assert pool.id == (
        "/subscriptions/sub/resourceGroups/rg/providers/Microsoft.NetApp"
        "/netAppAccounts/acct/capacityPools/pool"
    )
    assert volume.id == f"{pool.id}/volumes/vol"
    assert volume.usage_threshold == 100 * GIB
    assert (await client.get_anf_resource(volume.id)).name == "vol"


@pytest.mark.asyncio
async def test_create_requires_parent():
    client = InMemoryANFClient("sub")
    with pytest.raises(ResourceNotFoundError):
        await client.create_capacity_pool(
            RG, "acct", "pool", location="westus2", service_level="Standard", size_bytes=4 * TIB
        )


@pytest.mark.asyncio
async def test_two_protocols_fail_before_any_call():
    client = InMemoryANFClient("sub")
    with pytest.raises(InvalidProtocolError):
        await _create_volume(client, protocols=("NFSv3", "NFSv4.1"))
    assert client.calls == []


@pytest.mark.asyncio
async def test_fail_on_raises_api_error():
    client = InMemoryANFClient("sub", fail_on=["create_account"])
    with pytest.raises(ApiError) as exc_info:
        await client.create_account(RG, "acct", "westus2")
    assert exc_info.value.status_code == 500
    assert client.calls == [("create_account", "acct")]


@pytest.mark.asyncio
async def test_restore_requires_known_snapshot():
    client = InMemoryANFClient("sub")
    await _create_pool(client)
    await _create_volume(client)
    snapshot = await client.create_snapshot(RG, "acct", "pool", "vol", "snap", "westus2")
    assert snapshot.snapshot_id

    restored = await _create_volume(client, name="restored", snapshot_id=snapshot.snapshot_id)
    assert restored.name == "restored"

    with pytest.raises(ApiError) as exc_info:
        await _create_volume(client, name="other", snapshot_id="unknown")
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_update_volume_changes_size():
    client = InMemoryANFClient("sub")
    await _create_pool(client)
    volume = await _create_volume(client)

    updated = await client.update_volume(RG, "acct", "pool", "vol", usage_threshold=200 * GIB)
    assert updated.id == volume.id
    assert (await client.get_anf_resource(volume.id)).usage_threshold == 200 * GIB


@pytest.mark.asyncio
async def test_delete_with_nested_resources_conflicts():
    client = InMemoryANFClient("sub")
    pool = await _create_pool(client)
    volume = await _create_volume(client)

    with pytest.raises(ApiError) as exc_info:
        await client.delete_anf_resource(pool.id)
    assert exc_info.value.status_code == 409

    await client.delete_anf_resource(volume.id)
    await client.delete_anf_resource(pool.id)
    with pytest.raises(ResourceNotFoundError):
        await client.get_anf_resource(pool.id)


@pytest.mark.asyncio
async def test_delete_lag_keeps_resource_visible():
    client = InMemoryANFClient("sub", delete_lag=1)
    account = await client.create_account(RG, "acct", "westus2")

    await client.delete_anf_resource(account.id)
    assert (await client.get_anf_resource(account.id)).id == account.id
    with pytest.raises(ResourceNotFoundError):
        await client.get_anf_resource(account.id)


@pytest.mark.asyncio
async def test_get_resource_by_id():
    client = InMemoryANFClient("sub", missing_resource_ids=[SUBNET_ID])
    with pytest.raises(ResourceNotFoundError):
        await client.get_resource_by_id(SUBNET_ID, "2019-09-01")

    other = SUBNET_ID.replace("/anf", "/other")
    resource = await client.get_resource_by_id(other, "2019-09-01")
    assert resource.name == "other"


@pytest.mark.asyncio
async def test_id_helpers_reject_foreign_ids():
    client = InMemoryANFClient("sub")
    with pytest.raises(InvalidArgumentError):
        await client.delete_anf_resource(SUBNET_ID)
