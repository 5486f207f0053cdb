import pytest

from anfsample.clients import InMemoryANFClient
from anfsample.errors import WaitTimeoutError
from anfsample.utils import wait
from anfsample.utils.wait import wait_for_anf_resource, wait_for_no_anf_resource


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []

    async def fake_sleep(seconds):
        recorded.append(seconds)

    monkeypatch.setattr(wait.asyncio, "sleep", fake_sleep)
    return recorded


@pytest.mark.asyncio
async def test_returns_at_once_when_resource_is_gone(sleeps):
    client = InMemoryANFClient("sub")
    account_id = (
        "/subscriptions/sub/resourceGroups/rg/providers/Microsoft.NetApp/netAppAccounts/acct"
    )
    await wait_for_no_anf_resource(client, account_id, 10, 5)
    assert sleeps == []


@pytest.mark.asyncio
async def test_polls_until_deleted(sleeps):
    client = InMemoryANFClient("sub", delete_lag=2)
    account = await client.create_account("rg", "acct", "westus2")
    await client.delete_anf_resource(account.id)

    await wait_for_no_anf_resource(client, account.id, 10, 5)
    assert sleeps == [10, 10]


@pytest.mark.asyncio
async def test_times_out_after_bound(sleeps):
    client = InMemoryANFClient("sub", delete_lag=5)
    account = await client.create_account("rg", "acct", "westus2")
    await client.delete_anf_resource(account.id)

    with pytest.raises(WaitTimeoutError) as exc_info:
        await wait_for_no_anf_resource(client, account.id, 1, 3)
    assert exc_info.value.iterations == 3
    assert exc_info.value.resource_id == account.id
    assert sleeps == [1, 1]


@pytest.mark.asyncio
async def test_wait_for_existing_resource(sleeps):
    client = InMemoryANFClient("sub")
    account = await client.create_account("rg", "acct", "westus2")

    await wait_for_anf_resource(client, account.id, 10, 5)
    assert sleeps == []

    with pytest.raises(WaitTimeoutError):
        await wait_for_anf_resource(client, account.id.replace("acct", "gone"), 2, 2)
    assert sleeps == [2]
