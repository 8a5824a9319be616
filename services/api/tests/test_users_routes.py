"""Tests for admin user management (/v1/users)."""

import pytest
from httpx import AsyncClient

from conftest import TEST_PASSWORD, auth_headers
from ratings_api.models import UserRole


@pytest.fixture
async def admin(make_user):
    return await make_user(UserRole.ADMIN, name="System Administrator", email="admin@example.com")


@pytest.mark.asyncio
async def test_non_admin_is_forbidden(client: AsyncClient, make_user):
    user = await make_user()
    response = await client.get("/v1/users", headers=auth_headers(user))
    assert response.status_code == 403
    error = response.json()["error"]
    assert error["code"] == "INSUFFICIENT_PERMISSIONS"
    assert error["detail"] == {"requiredRoles": ["admin"], "userRole": "user"}


@pytest.mark.asyncio
async def test_admin_creates_user_with_role(client: AsyncClient, admin):
    response = await client.post(
        "/v1/users",
        json={
            "name": "Jane Store Manager Jones",
            "email": "jane.owner@example.com",
            "password": TEST_PASSWORD,
            "address": "789 Commerce Blvd",
            "role": "storeOwner",
        },
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "storeOwner"

    duplicate = await client.post(
        "/v1/users",
        json={
            "name": "Jane Store Manager Jones",
            "email": "JANE.owner@example.com",
            "password": TEST_PASSWORD,
            "address": "789 Commerce Blvd",
            "role": "user",
        },
        headers=auth_headers(admin),
    )
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_admin_create_rejects_unknown_role(client: AsyncClient, admin):
    response = await client.post(
        "/v1/users",
        json={
            "name": "Someone With A Role",
            "email": "role@example.com",
            "password": TEST_PASSWORD,
            "address": "Somewhere",
            "role": "superuser",
        },
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    assert response.json()["error"]["detail"]["errors"][0]["field"] == "role"


@pytest.mark.asyncio
async def test_list_users_filters_and_pagination(client: AsyncClient, admin, make_user):
    for i in range(3):
        await make_user(name=f"Shopper Number {i} Smith", address=f"{i} Elm Street")
    await make_user(UserRole.STORE_OWNER, name="Owner Person Jones")

    response = await client.get(
        "/v1/users", params={"name": "smith", "limit": 2}, headers=auth_headers(admin)
    )
    assert response.status_code == 200
    body = response.json()
    assert len(body["users"]) == 2
    assert body["pagination"] == {
        "currentPage": 1,
        "totalPages": 2,
        "totalCount": 3,
        "hasNextPage": True,
        "hasPrevPage": False,
    }
    # Newest first
    assert body["users"][0]["name"] == "Shopper Number 2 Smith"

    page2 = await client.get(
        "/v1/users", params={"name": "smith", "limit": 2, "page": 2}, headers=auth_headers(admin)
    )
    assert [u["name"] for u in page2.json()["users"]] == ["Shopper Number 0 Smith"]
    assert page2.json()["pagination"]["hasPrevPage"] is True

    owners = await client.get("/v1/users", params={"role": "storeOwner"}, headers=auth_headers(admin))
    assert [u["name"] for u in owners.json()["users"]] == ["Owner Person Jones"]


@pytest.mark.asyncio
async def test_list_users_rejects_bad_limit(client: AsyncClient, admin):
    response = await client.get("/v1/users", params={"limit": 101}, headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_get_store_owner_detail(client: AsyncClient, admin, make_user, make_store):
    owner = await make_user(UserRole.STORE_OWNER)
    store = await make_store(owner)
    rater = await make_user()
    await client.post(
        "/v1/ratings", json={"storeId": store.id, "rating": 4}, headers=auth_headers(rater)
    )

    response = await client.get(f"/v1/users/{owner.id}", headers=auth_headers(admin))
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["storeId"] == store.id
    assert body["store"]["averageRating"] == 4.0
    assert body["store"]["ratingsCount"] == 1
    assert body["store"]["recentRatings"][0]["user"]["id"] == rater.id


@pytest.mark.asyncio
async def test_get_missing_user(client: AsyncClient, admin):
    response = await client.get("/v1/users/9999", headers=auth_headers(admin))
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_update_user(client: AsyncClient, admin, make_user):
    user = await make_user(email="first@example.com")
    await make_user(email="taken@example.com")

    clash = await client.put(
        f"/v1/users/{user.id}", json={"email": "taken@example.com"}, headers=auth_headers(admin)
    )
    assert clash.status_code == 409
    assert clash.json()["error"]["code"] == "EMAIL_EXISTS"

    response = await client.put(
        f"/v1/users/{user.id}",
        json={"address": "New Address 5", "role": "storeOwner"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    updated = response.json()["user"]
    assert updated["address"] == "New Address 5"
    assert updated["role"] == "storeOwner"
    assert updated["email"] == "first@example.com"


@pytest.mark.asyncio
async def test_delete_user_is_soft(client: AsyncClient, admin, make_user):
    user = await make_user()
    response = await client.delete(f"/v1/users/{user.id}", headers=auth_headers(admin))
    assert response.status_code == 200

    assert (await client.get(f"/v1/users/{user.id}", headers=auth_headers(admin))).status_code == 404

    # Reactivation through update
    reactivated = await client.put(
        f"/v1/users/{user.id}", json={"isActive": True}, headers=auth_headers(admin)
    )
    assert reactivated.status_code == 200
    assert reactivated.json()["user"]["isActive"] is True


@pytest.mark.asyncio
async def test_dashboard_stats(client: AsyncClient, admin, make_user, make_store):
    owner = await make_user(UserRole.STORE_OWNER)
    store = await make_store(owner)
    rater = await make_user()
    await client.post("/v1/ratings", json={"storeId": store.id, "rating": 5}, headers=auth_headers(rater))

    response = await client.get("/v1/users/dashboard/stats", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["stats"] == {"totalUsers": 3, "totalStores": 1, "totalRatings": 1}
