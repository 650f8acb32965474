"""
Tests for the async resource HTTP client.
"""

import asyncio

import httpx
import pytest

from rest_api.client import GridData, ResourceClient
from tests.conftest import company_payload


@pytest.fixture
def companies(client, auth_headers):
    token = auth_headers["Authorization"].split(" ", 1)[1]
    return ResourceClient(client, "http://test/", "companies", token=token)


class TestResourceClient:
    def test_endpoint(self, client):
        assert ResourceClient(client, "http://api.local", "users").endpoint == "http://api.local/users"
        assert ResourceClient(client, "http://api.local/", "/users").endpoint == "http://api.local/users"

    def test_empty_base_url(self, client):
        with pytest.raises(ValueError):
            ResourceClient(client, " ", "users")

    async def test_crud_round_trip(self, companies, actor_id):
        created = await companies.add(company_payload(name="Cliente SA"))
        assert created["created_by"] == str(actor_id)

        item = await companies.get_by_id(created["id"])
        item["name"] = "Cliente SAS"
        await companies.update(item["id"], item)

        assert (await companies.get_by_id(created["id"]))["name"] == "Cliente SAS"

        await companies.delete(created["id"], soft_delete=True)
        assert await companies.get_by_id(created["id"]) is None

    async def test_stale_update_raises(self, companies):
        created = await companies.add(company_payload())
        await companies.update(created["id"], {**created, "city": "Buga"})
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await companies.update(created["id"], {**created, "city": "Tulua"})
        assert exc_info.value.response.status_code == 409

    async def test_get_all(self, companies, seed_companies):
        items = await companies.get_all()
        assert len(items) == 3

    async def test_load_page(self, companies, seed_companies):
        grid = await companies.load_page(page=0, page_size=2, sort_by="name", sort_desc=True)
        assert grid.total_items == 3
        assert [item["name"] for item in grid.items] == ["Cafe_Norte", "Borealis 100% Tech"]

    async def test_load_page_with_search(self, companies, seed_companies):
        grid = await companies.load_page(page=0, page_size=10, search="borealis")
        assert grid.total_items == 1

    async def test_load_page_failure_is_empty(self, companies):
        grid = await companies.load_page(page=0, page_size=10, sort_by="revenue")
        assert grid == GridData()

    async def test_load_page_cancelled_is_empty(self, companies, monkeypatch):
        async def cancelled(*args, **kwargs):
            raise asyncio.CancelledError()

        monkeypatch.setattr(companies, "_get_json", cancelled)
        assert await companies.load_page(page=0, page_size=10) == GridData()

    async def test_load_page_honors_caller_timeout(self, companies, monkeypatch):
        async def slow(*args, **kwargs):
            await asyncio.sleep(5)

        monkeypatch.setattr(companies, "_get_json", slow)
        with pytest.raises(TimeoutError):
            async with asyncio.timeout(0.05):
                await companies.load_page(page=0, page_size=10)

    async def test_load_page_task_cancel_propagates(self, companies, monkeypatch):
        started = asyncio.Event()

        async def slow(*args, **kwargs):
            started.set()
            await asyncio.sleep(5)

        monkeypatch.setattr(companies, "_get_json", slow)
        task = asyncio.create_task(companies.load_page(page=0, page_size=10))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_find_and_exists(self, client, seed_user):
        users = ResourceClient(client, "http://test", "users")
        found = await users.find('Nid == "A1"')
        assert [user["nid"] for user in found] == ["A1"]
        assert await users.exists("Nid", "A1") is True
        assert await users.exists("Nid", "Q7") is False

    async def test_find_error_propagates(self, client):
        users = ResourceClient(client, "http://test", "users")
        with pytest.raises(httpx.HTTPStatusError):
            await users.find("Nid ==")
