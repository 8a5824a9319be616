"""Tests for /v1/ratings."""

import pytest
from httpx import AsyncClient

from conftest import auth_headers
from ratings_api.models import Store, UserRole
from ratings_api.stores.postgres import get_session


@pytest.fixture
async def owner(make_user):
    return await make_user(UserRole.STORE_OWNER)


@pytest.fixture
async def store(owner, make_store):
    return await make_store(owner)


@pytest.mark.asyncio
async def test_submit_then_replace(client: AsyncClient, store, make_user):
    user = await make_user()
    headers = auth_headers(user)

    first = await client.post(
        "/v1/ratings", json={"storeId": store.id, "rating": 4, "comment": "  Nice place  "}, headers=headers
    )
    assert first.status_code == 201
    assert first.json()["message"] == "Rating submitted successfully"
    rating = first.json()["rating"]
    assert rating["rating"] == 4
    assert rating["comment"] == "Nice place"
    assert rating["userId"] == user.id

    second = await client.post("/v1/ratings", json={"storeId": store.id, "rating": 2}, headers=headers)
    assert second.status_code == 200
    assert second.json()["message"] == "Rating updated successfully"
    assert second.json()["rating"]["id"] == rating["id"]

    detail = await client.get(f"/v1/stores/{store.id}", headers=headers)
    assert detail.json()["store"]["averageRating"] == 2.0
    assert detail.json()["store"]["totalRatings"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("score", [0, 6])
async def test_submit_rejects_out_of_range(client: AsyncClient, store, make_user, score: int):
    user = await make_user()
    response = await client.post(
        "/v1/ratings", json={"storeId": store.id, "rating": score}, headers=auth_headers(user)
    )
    assert response.status_code == 400
    assert response.json()["error"]["detail"]["errors"][0]["field"] == "rating"


@pytest.mark.asyncio
async def test_submit_rejects_long_comment(client: AsyncClient, store, make_user):
    user = await make_user()
    response = await client.post(
        "/v1/ratings",
        json={"storeId": store.id, "rating": 3, "comment": "x" * 501},
        headers=auth_headers(user),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_only_normal_users_rate(client: AsyncClient, store, owner, make_user):
    admin = await make_user(UserRole.ADMIN)
    for account in (admin, owner):
        response = await client.post(
            "/v1/ratings", json={"storeId": store.id, "rating": 5}, headers=auth_headers(account)
        )
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_cannot_rate_missing_or_inactive_store(client: AsyncClient, store, make_user):
    user = await make_user()
    admin = await make_user(UserRole.ADMIN)

    missing = await client.post("/v1/ratings", json={"storeId": 9999, "rating": 5}, headers=auth_headers(user))
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "STORE_NOT_FOUND"

    await client.delete(f"/v1/stores/{store.id}", headers=auth_headers(admin))
    inactive = await client.post(
        "/v1/ratings", json={"storeId": store.id, "rating": 5}, headers=auth_headers(user)
    )
    assert inactive.status_code == 404


@pytest.mark.asyncio
async def test_my_ratings_and_rating_for_store(client: AsyncClient, store, make_user):
    user = await make_user()
    headers = auth_headers(user)

    none_yet = await client.get(f"/v1/ratings/store/{store.id}/user", headers=headers)
    assert none_yet.status_code == 404
    assert none_yet.json()["error"]["code"] == "RATING_NOT_FOUND"

    await client.post("/v1/ratings", json={"storeId": store.id, "rating": 5}, headers=headers)

    mine = await client.get("/v1/ratings/me", headers=headers)
    assert mine.status_code == 200
    assert mine.json()["totalRatings"] == 1
    assert mine.json()["ratings"][0]["store"]["id"] == store.id
    assert mine.json()["ratings"][0]["store"]["averageRating"] == 5.0

    for_store = await client.get(f"/v1/ratings/store/{store.id}/user", headers=headers)
    assert for_store.status_code == 200
    assert for_store.json()["rating"]["rating"] == 5


@pytest.mark.asyncio
async def test_store_ratings_visibility(client: AsyncClient, store, owner, make_user):
    user = await make_user()
    await client.post("/v1/ratings", json={"storeId": store.id, "rating": 3}, headers=auth_headers(user))

    as_owner = await client.get(f"/v1/ratings/store/{store.id}", headers=auth_headers(owner))
    assert as_owner.status_code == 200
    assert as_owner.json()["totalRatings"] == 1
    assert as_owner.json()["ratings"][0]["user"]["email"] == user.email

    other_owner = await make_user(UserRole.STORE_OWNER)
    denied = await client.get(f"/v1/ratings/store/{store.id}", headers=auth_headers(other_owner))
    assert denied.status_code == 403
    assert denied.json()["error"]["code"] == "ACCESS_DENIED"

    as_user = await client.get(f"/v1/ratings/store/{store.id}", headers=auth_headers(user))
    assert as_user.status_code == 403


@pytest.mark.asyncio
async def test_update_rating(client: AsyncClient, store, make_user):
    author = await make_user()
    stranger = await make_user()
    created = await client.post(
        "/v1/ratings", json={"storeId": store.id, "rating": 1, "comment": "Bad"}, headers=auth_headers(author)
    )
    rating_id = created.json()["rating"]["id"]

    denied = await client.put(f"/v1/ratings/{rating_id}", json={"rating": 5}, headers=auth_headers(stranger))
    assert denied.status_code == 403
    assert denied.json()["error"]["code"] == "ACCESS_DENIED"

    updated = await client.put(f"/v1/ratings/{rating_id}", json={"rating": 5}, headers=auth_headers(author))
    assert updated.status_code == 200
    assert updated.json()["rating"]["rating"] == 5
    assert updated.json()["rating"]["comment"] == "Bad"

    missing = await client.put("/v1/ratings/9999", json={"rating": 5}, headers=auth_headers(author))
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "RATING_NOT_FOUND"


@pytest.mark.asyncio
async def test_delete_rating_permissions(client: AsyncClient, store, owner, make_user):
    author = await make_user()
    stranger = await make_user()
    admin = await make_user(UserRole.ADMIN)

    first = await client.post("/v1/ratings", json={"storeId": store.id, "rating": 4}, headers=auth_headers(author))
    rating_id = first.json()["rating"]["id"]

    for account in (stranger, owner):
        response = await client.delete(f"/v1/ratings/{rating_id}", headers=auth_headers(account))
        assert response.status_code == 403

    ok = await client.delete(f"/v1/ratings/{rating_id}", headers=auth_headers(author))
    assert ok.status_code == 200

    detail = await client.get(f"/v1/stores/{store.id}", headers=auth_headers(admin))
    assert detail.json()["store"]["averageRating"] == 0.0
    assert detail.json()["store"]["totalRatings"] == 0

    second = await client.post("/v1/ratings", json={"storeId": store.id, "rating": 2}, headers=auth_headers(author))
    by_admin = await client.delete(f"/v1/ratings/{second.json()['rating']['id']}", headers=auth_headers(admin))
    assert by_admin.status_code == 200


@pytest.mark.asyncio
async def test_rating_stats_overview(client: AsyncClient, make_user, make_store):
    admin = await make_user(UserRole.ADMIN)
    good = await make_store(await make_user(UserRole.STORE_OWNER), name="Good Store Downtown")
    okay = await make_store(await make_user(UserRole.STORE_OWNER), name="Okay Store Uptown")

    for store_id, score in ((good.id, 5), (good.id, 4), (okay.id, 2)):
        rater = await make_user()
        await client.post("/v1/ratings", json={"storeId": store_id, "rating": score}, headers=auth_headers(rater))

    response = await client.get("/v1/ratings/stats/overview", headers=auth_headers(admin))
    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["totalRatings"] == 3
    assert stats["overallAverageRating"] == 3.7
    assert stats["ratingDistribution"] == {"5": 1, "4": 1, "3": 0, "2": 1, "1": 0}
    assert [s["name"] for s in stats["topStores"]] == ["Good Store Downtown", "Okay Store Uptown"]
    assert stats["topStores"][0]["averageRating"] == 4.5


@pytest.mark.asyncio
async def test_cannot_update_rating_of_inactive_store(client: AsyncClient, store, make_user):
    user = await make_user()
    admin = await make_user(UserRole.ADMIN)
    created = await client.post(
        "/v1/ratings", json={"storeId": store.id, "rating": 5}, headers=auth_headers(user)
    )
    rating_id = created.json()["rating"]["id"]

    await client.delete(f"/v1/stores/{store.id}", headers=auth_headers(admin))

    response = await client.put(f"/v1/ratings/{rating_id}", json={"rating": 1}, headers=auth_headers(user))
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "STORE_NOT_FOUND"

    async with get_session() as session:
        unchanged = await session.get(Store, store.id)
        assert unchanged.average_rating == 5.0
        assert unchanged.total_ratings == 1
