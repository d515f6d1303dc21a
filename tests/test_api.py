import pytest
from fastapi.testclient import TestClient

from userdir.config.settings import Settings
from userdir.core.exceptions.exceptions import StoreUnavailable, StoreWriteError
from userdir.main import create_app


@pytest.fixture
def settings():
    return Settings(
        CACHE_SWEEP_SECONDS=0,
        BULK_USER_COUNT=2500,
        MAX_BULK_USER_COUNT=5000,
        INGEST_BATCH_SIZE=1000,
    )


@pytest.fixture
def client(settings, engine):
    with TestClient(create_app(settings, engine)) as client:
        yield client


def create(client, name="Ada Lovelace", age=36, email="ada@example.com"):
    return client.post("/api/create-users", json={"name": name, "age": age, "email": email})


def test_create_user(client):
    response = create(client)
    assert response.status_code == 201
    body = response.json()
    assert body["id"] == 1
    assert body["name"] == "Ada Lovelace"
    assert body["timestamp"]


def test_client_cannot_set_id_or_timestamp(client):
    response = client.post(
        "/api/create-users",
        json={"id": 99, "name": "Alan", "age": 41, "email": "alan@example.com", "timestamp": "1999-01-01T00:00:00"},
    )
    assert response.status_code == 201
    assert response.json()["id"] == 1
    assert not response.json()["timestamp"].startswith("1999")


def test_create_user_rejects_bad_email(client):
    assert create(client, email="not-an-email").status_code == 400


def test_create_user_requires_fields(client):
    assert client.post("/api/create-users", json={"name": "x"}).status_code == 422


def test_fetch_users_envelope(client):
    for i in range(3):
        create(client, name=f"user {i}", email=f"user{i}@example.com")

    response = client.get("/api/fetch-users", params={"page": 1, "pageSize": 2})
    assert response.status_code == 200
    body = response.json()
    assert body["page"] == 1
    assert body["pageSize"] == 2
    assert body["totalRecords"] == 3
    assert body["totalPages"] == 2
    assert [u["name"] for u in body["records"]] == ["user 0", "user 1"]


def test_fetch_users_defaults_and_clamps(client):
    body = client.get("/api/fetch-users").json()
    assert (body["page"], body["pageSize"], body["totalPages"]) == (1, 100, 0)

    body = client.get("/api/fetch-users", params={"page": -2, "pageSize": 50000}).json()
    assert (body["page"], body["pageSize"]) == (1, 1000)


def test_cache_hit_then_invalidated_by_create(client):
    create(client)
    first = client.get("/api/fetch-users", params={"page": 1, "pageSize": 50}).json()
    again = client.get("/api/fetch-users", params={"page": 1, "pageSize": 50}).json()
    assert again == first
    assert client.get("/api/cache/stats").json()["hits"] == 1

    create(client, name="Grace", email="grace@example.com")
    fresh = client.get("/api/fetch-users", params={"page": 1, "pageSize": 50}).json()
    assert fresh["totalRecords"] == 2


def test_bulk_create(client):
    response = client.post("/api/create-bulk-users")
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2500
    assert body["message"] == "Successfully created 2,500 users"
    assert body["durationSeconds"] >= 0

    assert client.get("/api/users/count").json() == {"totalRecords": 2500}
    page = client.get("/api/fetch-users", params={"page": 3, "pageSize": 1000}).json()
    assert page["totalPages"] == 3
    assert len(page["records"]) == 500


def test_bulk_create_count_limit(client):
    assert client.post("/api/create-bulk-users", params={"count": 5001}).status_code == 400
    assert client.post("/api/create-bulk-users", params={"count": 0}).status_code == 422
    assert client.post("/api/create-bulk-users", params={"count": 10}).json()["count"] == 10


def test_clear_cache(client):
    client.get("/api/fetch-users")
    assert client.get("/api/cache/stats").json()["size"] == 1

    response = client.delete("/api/clear-cache")
    assert response.status_code == 200
    assert response.json() == {"message": "Cache cleared successfully"}
    stats = client.get("/api/cache/stats").json()
    assert stats["size"] == 0
    assert stats["generation"] == 1
    assert stats["maxEntries"] == 1024


def test_store_unavailable_is_503(client, monkeypatch):
    directory = client.app.state.directory

    def unavailable(offset, limit):
        raise StoreUnavailable("read_page", "timed out")

    monkeypatch.setattr(directory.store, "read_page", unavailable)
    response = client.get("/api/fetch-users", params={"page": 4})
    assert response.status_code == 503
    assert response.json()["detail"]["context"]["page"] == 4


def test_bulk_write_failure_is_409(client, monkeypatch):
    directory = client.app.state.directory
    calls = {"n": 0}
    original = directory.store.insert_batch

    def flaky(records):
        calls["n"] += 1
        if calls["n"] == 2:
            raise StoreWriteError("insert_batch", "constraint violated")
        return original(records)

    monkeypatch.setattr(directory.store, "insert_batch", flaky)
    response = client.post("/api/create-bulk-users")
    assert response.status_code == 409
    assert response.json()["detail"]["context"]["batch_number"] == 2
    assert client.get("/api/users/count").json() == {"totalRecords": 1000}


def test_fetch_page_far_past_the_end(client):
    create(client)
    response = client.get("/api/fetch-users", params={"page": 10**19})
    assert response.status_code == 200
    body = response.json()
    assert body["records"] == []
    assert body["totalRecords"] == 1


def test_timestamp_matches_between_create_and_listing(client):
    created = create(client).json()
    listed = client.get("/api/fetch-users").json()["records"][0]
    assert listed["timestamp"] == created["timestamp"]
