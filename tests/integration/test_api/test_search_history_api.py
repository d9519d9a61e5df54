"""Integration tests for the search history endpoints."""

import uuid

from httpx import AsyncClient

PREFIX = "/api/v1/search-history"


async def _basic_search(client: AsyncClient, address: str) -> str:
    resp = await client.post("/api/v1/properties/basic-search", json={"address": address})
    assert resp.status_code == 200
    return resp.json()["history_id"]


class TestSearchHistoryEndpoints:
    """Tests for GET and DELETE /api/v1/search-history."""

    async def test_lists_own_searches(self, client: AsyncClient) -> None:
        await _basic_search(client, "1 Oak Ave")
        await _basic_search(client, "2 Elm St")

        resp = await client.get(PREFIX)

        assert resp.status_code == 200
        body = resp.json()
        assert body["pagination"]["total"] == 2
        assert {item["address"] for item in body["items"]} == {"1 Oak Ave", "2 Elm St"}
        assert all(item["search_type"] == "basic" for item in body["items"])

    async def test_empty_history(self, client: AsyncClient) -> None:
        body = (await client.get(PREFIX)).json()
        assert body["items"] == []
        assert body["pagination"]["total_pages"] == 0

    async def test_delete_entry(self, client: AsyncClient) -> None:
        history_id = await _basic_search(client, "1 Oak Ave")

        resp = await client.delete(f"{PREFIX}/{history_id}")

        assert resp.status_code == 204
        assert (await client.get(PREFIX)).json()["pagination"]["total"] == 0

    async def test_delete_missing_entry_is_404(self, client: AsyncClient) -> None:
        resp = await client.delete(f"{PREFIX}/{uuid.uuid4()}")
        assert resp.status_code == 404

    async def test_requires_auth(self, unauth_client: AsyncClient) -> None:
        resp = await unauth_client.get(PREFIX)
        assert resp.status_code == 401
