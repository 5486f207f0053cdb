"""End-to-end workflow scenarios against the in-memory client."""

import pytest

from anfsample.clients import InMemoryANFClient
from anfsample.config import PollingConfig, SampleConfig
from anfsample.contracts import StageStatus
from anfsample.errors import ResourceNotFoundError
from anfsample.utils.sizes import GIB
from anfsample.workflow import PROVISIONING_SEQUENCE, ProvisioningWorkflow, run_sample

SUBSCRIPTION_ID = "sub"


def _config(**overrides) -> SampleConfig:
    values = {
        "account_name": "acct",
        "polling": PollingConfig(interval_seconds=0, max_iterations=3),
    }
    values.update(overrides)
    return SampleConfig(**values)


def _deletes(client: InMemoryANFClient):
    return [call for call in client.calls if call[0].startswith("delete_")]


def _statuses(state):
    return {stage.name: stage.status for stage in state.stages}


@pytest.mark.asyncio
async def test_full_run_without_cleanup_keeps_resources():
    config = _config(should_cleanup=False)
    client = InMemoryANFClient(SUBSCRIPTION_ID)

    state = await ProvisioningWorkflow(client, config, SUBSCRIPTION_ID).run()

    assert state.exit_code == 0
    assert state.succeeded
    assert all(status is StageStatus.SUCCEEDED for status in _statuses(state).values())
    assert [stage.name for stage in state.stages] == list(PROVISIONING_SEQUENCE)
    assert _deletes(client) == []
    assert state.cleanup == []
    assert len(client.resource_ids()) == 6

    resized = await client.get_anf_resource(state.resource_id("volume_resize"))
    assert resized.name == config.nfsv41_volume_name
    assert resized.usage_threshold == 2 * config.volume_size_bytes


@pytest.mark.asyncio
async def test_full_run_cleans_up_in_reverse_order():
    config = _config()
    client = InMemoryANFClient(SUBSCRIPTION_ID)

    state = await ProvisioningWorkflow(client, config, SUBSCRIPTION_ID).run()

    assert state.exit_code == 0
    deletes = _deletes(client)
    assert deletes[0] == ("delete_volume", config.volume_from_snapshot_name)
    assert deletes[1] == ("delete_snapshot", config.nfsv3_snapshot_name)
    assert set(deletes[2:4]) == {
        ("delete_volume", config.nfsv3_volume_name),
        ("delete_volume", config.nfsv41_volume_name),
    }
    assert deletes[4] == ("delete_capacity_pool", "Pool01")
    assert deletes[5] == ("delete_account", "acct")
    assert len(deletes) == 6
    assert client.resource_ids() == []
    assert all(entry.status is StageStatus.SUCCEEDED for entry in state.cleanup)


@pytest.mark.asyncio
async def test_restore_uses_snapshot_id():
    config = _config(should_cleanup=False)
    client = InMemoryANFClient(SUBSCRIPTION_ID)

    state = await ProvisioningWorkflow(client, config, SUBSCRIPTION_ID).run()

    restored = await client.get_anf_resource(state.resource_id("volume_from_snapshot"))
    assert restored.name == config.volume_from_snapshot_name
    assert restored.usage_threshold == 100 * GIB


@pytest.mark.asyncio
async def test_pool_failure_deletes_only_account():
    config = _config()
    client = InMemoryANFClient(SUBSCRIPTION_ID, fail_on=["create_capacity_pool"])

    state = await ProvisioningWorkflow(client, config, SUBSCRIPTION_ID).run()

    assert state.exit_code == 1
    statuses = _statuses(state)
    assert statuses["subnet_check"] is StageStatus.SUCCEEDED
    assert statuses["account"] is StageStatus.SUCCEEDED
    assert statuses["capacity_pool"] is StageStatus.FAILED
    for name in PROVISIONING_SEQUENCE[3:]:
        assert statuses[name] is StageStatus.SKIPPED
    assert state.record("capacity_pool").error
    assert _deletes(client) == [("delete_account", "acct")]
    assert client.resource_ids() == []


@pytest.mark.asyncio
async def test_invalid_service_level_fails_pool_stage():
    config = _config(service_level="Gold")
    client = InMemoryANFClient(SUBSCRIPTION_ID)

    state = await ProvisioningWorkflow(client, config, SUBSCRIPTION_ID).run()

    assert state.exit_code == 1
    assert state.record("capacity_pool").status is StageStatus.FAILED
    assert "Gold" in state.record("capacity_pool").error
    assert ("create_capacity_pool", "Pool01") not in client.calls
    assert _deletes(client) == [("delete_account", "acct")]


@pytest.mark.asyncio
async def test_missing_subnet_stops_before_account():
    config = _config()
    client = InMemoryANFClient(
        SUBSCRIPTION_ID, missing_resource_ids=[config.subnet_id(SUBSCRIPTION_ID)]
    )

    state = await ProvisioningWorkflow(client, config, SUBSCRIPTION_ID).run()

    assert state.exit_code == 1
    assert state.record("subnet_check").status is StageStatus.FAILED
    assert state.record("account").status is StageStatus.SKIPPED
    assert not any(call[0] == "create_account" for call in client.calls)
    assert _deletes(client) == []
    assert all(entry.status is StageStatus.SKIPPED for entry in state.cleanup)


@pytest.mark.asyncio
async def test_cleanup_failure_halts_remaining_cleanup():
    config = _config()
    client = InMemoryANFClient(SUBSCRIPTION_ID, fail_on=["delete_snapshot"])

    state = await ProvisioningWorkflow(client, config, SUBSCRIPTION_ID).run()

    assert state.exit_code == 1
    assert all(stage.status is StageStatus.SUCCEEDED for stage in state.stages)
    assert _deletes(client) == [
        ("delete_volume", config.volume_from_snapshot_name),
        ("delete_snapshot", config.nfsv3_snapshot_name),
    ]
    assert [entry.name for entry in state.cleanup] == ["volume_from_snapshot", "snapshot"]
    assert state.cleanup[-1].status is StageStatus.FAILED
    assert config.nfsv3_volume_name in " ".join(client.resource_ids())


@pytest.mark.asyncio
async def test_cleanup_timeout_halts_remaining_cleanup():
    config = _config(polling=PollingConfig(interval_seconds=0, max_iterations=2))
    client = InMemoryANFClient(SUBSCRIPTION_ID, delete_lag=10)

    state = await ProvisioningWorkflow(client, config, SUBSCRIPTION_ID).run()

    assert state.exit_code == 1
    assert len(state.cleanup) == 1
    assert state.cleanup[0].status is StageStatus.FAILED
    assert "gave up waiting" in state.cleanup[0].error
    assert _deletes(client) == [("delete_volume", config.volume_from_snapshot_name)]


@pytest.mark.asyncio
async def test_run_sample_with_inmemory_backend_needs_no_credentials(monkeypatch):
    monkeypatch.delenv("AZURE_AUTH_LOCATION", raising=False)
    monkeypatch.delenv("ANFSAMPLE_BACKEND", raising=False)
    config = _config(client={"backend": "inmemory"})

    state = await run_sample(config)

    assert state.exit_code == 0
    assert len(state.cleanup) == 6


@pytest.mark.asyncio
async def test_run_sample_auth_failure_is_fatal(monkeypatch):
    monkeypatch.delenv("AZURE_AUTH_LOCATION", raising=False)
    config = _config()

    state = await run_sample(config)

    assert state.exit_code == 1
    assert all(stage.status is StageStatus.SKIPPED for stage in state.stages)
    assert state.cleanup == []


@pytest.mark.asyncio
async def test_run_sample_uses_supplied_client():
    config = _config(should_cleanup=False)
    client = InMemoryANFClient("other-sub")

    state = await run_sample(config, client=client)

    assert state.exit_code == 0
    assert state.resource_id("account").startswith("/subscriptions/other-sub/")


class UnreadableSnapshotClient(InMemoryANFClient):
    """Snapshots are created but never become readable."""

    async def get_snapshot(self, *args):
        self._record("get_snapshot", args[-1])
        raise ResourceNotFoundError("snapshot not visible yet")


class BrokenVolumeDeleteClient(InMemoryANFClient):
    async def delete_volume(self, *args):
        self._record("delete_volume", args[-1])
        raise RuntimeError("unexpected")


@pytest.mark.asyncio
async def test_unready_snapshot_is_still_cleaned_up():
    config = _config(polling=PollingConfig(interval_seconds=0, max_iterations=1))
    client = UnreadableSnapshotClient(SUBSCRIPTION_ID)

    state = await ProvisioningWorkflow(client, config, SUBSCRIPTION_ID).run()

    assert state.exit_code == 1
    snapshot = state.record("snapshot")
    assert snapshot.status is StageStatus.SUCCEEDED
    assert snapshot.resource_id.endswith(f"/snapshots/{config.nfsv3_snapshot_name}")
    assert state.record("volume_from_snapshot").status is StageStatus.FAILED
    assert state.record("volume_resize").status is StageStatus.SKIPPED
    assert ("delete_snapshot", config.nfsv3_snapshot_name) in _deletes(client)
    assert all(
        entry.status is not StageStatus.FAILED for entry in state.cleanup
    ), state.cleanup
    assert client.resource_ids() == []


@pytest.mark.asyncio
async def test_unexpected_cleanup_error_is_recorded():
    config = _config()
    client = BrokenVolumeDeleteClient(SUBSCRIPTION_ID)

    state = await ProvisioningWorkflow(client, config, SUBSCRIPTION_ID).run()

    assert state.exit_code == 1
    assert state.cleanup[0].name == "volume_from_snapshot"
    assert state.cleanup[0].status is StageStatus.FAILED
    assert state.cleanup[0].error == "unexpected"
    assert len(state.cleanup) == 1
    assert not any(call[0] == "delete_snapshot" for call in client.calls)
