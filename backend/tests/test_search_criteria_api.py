"""
TESTES DE BUSCA DE IMÓVEIS
===========================

Critérios do lead (manual e texto da IA), catálogo de imóveis e matches.
"""

import pytest
from httpx import AsyncClient

from tests.utils import create_lead_via_api, register_user

AUSTIN_HOUSE = {
    "external_id": "MLS-1",
    "address": "12 Oak St",
    "city": "Austin",
    "state": "TX",
    "zip_code": "78701",
    "price": 400000,
    "bedrooms": 3,
    "bathrooms": 2,
    "square_feet": 1800,
    "property_type": "Single Family",
}

HOUSTON_HOUSE = {
    "external_id": "MLS-2",
    "address": "99 Elm Ave",
    "city": "Houston",
    "state": "TX",
    "price": 300000,
    "bedrooms": 4,
    "bathrooms": 2,
}


async def add_property(client: AsyncClient, headers: dict, data: dict) -> dict:
    response = await client.post("/api/v1/properties", json=data, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


# =============================================================================
# CRITÉRIOS
# =============================================================================

@pytest.mark.asyncio
async def test_put_criteria_from_ai_text(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)
    text = "NEW SEARCH CRITERIA: MIN BEDROOMS: 3, MAX PRICE: $450,000, LOCATIONS: Austin, Dallas"

    response = await async_client.put(
        f"/api/v1/search-criteria/lead/{lead['id']}",
        json={"text": text, "min_bedrooms": 4},
        headers=auth_headers,
    )
    fetched = await async_client.get(f"/api/v1/search-criteria/lead/{lead['id']}", headers=auth_headers)

    assert response.status_code == 200
    search = response.json()["search"]
    # campo explícito vence o texto
    assert search["min_bedrooms"] == 4
    assert search["max_price"] == 450000
    assert search["locations"] == ["Austin", "Dallas"]
    assert search["original_search_text"] == text
    assert fetched.json()["search"]["id"] == search["id"]


@pytest.mark.asyncio
async def test_put_criteria_keeps_single_active_search(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)
    url = f"/api/v1/search-criteria/lead/{lead['id']}"

    first = (await async_client.put(url, json={"min_bedrooms": 2}, headers=auth_headers)).json()["search"]
    second = (await async_client.put(url, json={"max_price": 500000}, headers=auth_headers)).json()["search"]

    assert second["id"] == first["id"]
    assert second["min_bedrooms"] == 2
    assert second["max_price"] == 500000


@pytest.mark.asyncio
async def test_put_criteria_validation(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)
    url = f"/api/v1/search-criteria/lead/{lead['id']}"

    unparseable = await async_client.put(url, json={"text": "something nice near the park"}, headers=auth_headers)
    inverted = await async_client.put(
        url, json={"min_price": 500000, "max_price": 300000}, headers=auth_headers
    )

    assert unparseable.status_code == 400
    assert unparseable.json()["detail"] == "Could not parse search criteria text"
    assert inverted.status_code == 400
    assert inverted.json()["detail"] == "min_price cannot be greater than max_price"


@pytest.mark.asyncio
async def test_delete_criteria(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)
    url = f"/api/v1/search-criteria/lead/{lead['id']}"
    await async_client.put(url, json={"min_bedrooms": 3}, headers=auth_headers)

    deleted = await async_client.delete(url, headers=auth_headers)
    fetched = await async_client.get(url, headers=auth_headers)
    again = await async_client.delete(url, headers=auth_headers)

    assert deleted.json() == {"success": True}
    assert fetched.json() == {"search": None}
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_criteria_of_another_agent_lead(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)
    other = await register_user(async_client, "other@test.com")

    response = await async_client.get(f"/api/v1/search-criteria/lead/{lead['id']}", headers=other["headers"])

    assert response.status_code == 404


# =============================================================================
# IMÓVEIS
# =============================================================================

@pytest.mark.asyncio
async def test_property_upsert_by_external_id(async_client: AsyncClient, auth_headers):
    created = await add_property(async_client, auth_headers, AUSTIN_HOUSE)
    updated = await add_property(async_client, auth_headers, {**AUSTIN_HOUSE, "price": 390000})
    await add_property(async_client, auth_headers, {**HOUSTON_HOUSE, "status": "Sold"})

    listing = (await async_client.get("/api/v1/properties", headers=auth_headers)).json()
    in_austin = (await async_client.get(
        "/api/v1/properties", params={"city": "aus"}, headers=auth_headers
    )).json()
    one = await async_client.get(f"/api/v1/properties/{created['id']}", headers=auth_headers)
    missing = await async_client.get("/api/v1/properties/9999", headers=auth_headers)

    assert updated["id"] == created["id"]
    assert updated["price"] == 390000
    # "Sold" fica fora da listagem padrão (só Active)
    assert [p["external_id"] for p in listing] == ["MLS-1"]
    assert len(in_austin) == 1
    assert one.json()["address"] == "12 Oak St"
    assert missing.status_code == 404


# =============================================================================
# MATCHES
# =============================================================================

@pytest.mark.asyncio
async def test_saving_criteria_matches_existing_properties(async_client: AsyncClient, auth_headers):
    await add_property(async_client, auth_headers, AUSTIN_HOUSE)
    await add_property(async_client, auth_headers, HOUSTON_HOUSE)
    lead = await create_lead_via_api(async_client, auth_headers)

    await async_client.put(
        f"/api/v1/search-criteria/lead/{lead['id']}",
        json={"min_bedrooms": 3, "max_price": 450000, "locations": ["Austin"]},
        headers=auth_headers,
    )
    matches = (await async_client.get(
        f"/api/v1/search-criteria/lead/{lead['id']}/matches", headers=auth_headers
    )).json()

    assert len(matches) == 1
    assert matches[0]["match_score"] == 100.0
    assert matches[0]["was_sent"] is False
    assert matches[0]["lead_interest"] == "unknown"
    assert matches[0]["property"]["external_id"] == "MLS-1"


@pytest.mark.asyncio
async def test_manual_matching_run(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)
    await async_client.put(
        f"/api/v1/search-criteria/lead/{lead['id']}",
        json={"min_bedrooms": 3, "locations": ["78701"]},
        headers=auth_headers,
    )
    await add_property(async_client, auth_headers, AUSTIN_HOUSE)

    first = await async_client.post("/api/v1/properties/match", headers=auth_headers)
    second = await async_client.post("/api/v1/properties/match", headers=auth_headers)

    assert first.json() == {"searches": 1, "matches_created": 1, "errors": 0}
    # match existente não é duplicado
    assert second.json()["matches_created"] == 0


@pytest.mark.asyncio
async def test_match_interest(async_client: AsyncClient, auth_headers):
    await add_property(async_client, auth_headers, AUSTIN_HOUSE)
    lead = await create_lead_via_api(async_client, auth_headers)
    await async_client.put(
        f"/api/v1/search-criteria/lead/{lead['id']}",
        json={"locations": ["Austin"]},
        headers=auth_headers,
    )
    matches = (await async_client.get(
        f"/api/v1/search-criteria/lead/{lead['id']}/matches", headers=auth_headers
    )).json()
    match_id = matches[0]["id"]

    interested = await async_client.patch(
        f"/api/v1/search-criteria/matches/{match_id}",
        json={"lead_interest": "interested", "notes": "Loved the yard"},
        headers=auth_headers,
    )
    invalid = await async_client.patch(
        f"/api/v1/search-criteria/matches/{match_id}",
        json={"lead_interest": "maybe"},
        headers=auth_headers,
    )
    other = await register_user(async_client, "other@test.com")
    foreign = await async_client.patch(
        f"/api/v1/search-criteria/matches/{match_id}",
        json={"lead_interest": "interested"},
        headers=other["headers"],
    )

    assert interested.json()["lead_interest"] == "interested"
    assert interested.json()["was_viewed"] is True
    assert interested.json()["notes"] == "Loved the yard"
    assert invalid.status_code == 400
    assert foreign.status_code == 404
