from unittest.mock import MagicMock, patch

from app.cache.redis_client import JsonCache, get_cache
from app.database.session import get_db
from app.storage.minio_client import ObjectStorage, get_storage


def test_hello(client):
    response = client.get("/api/hello")

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 200
    assert body["message"] == "Operation succeeded"
    assert body["data"] == "hello world"
    assert len(body["timestamp"]) == len("2026-01-01 00:00:00")


def test_health_db(app, client):
    fake_session = MagicMock()
    fake_session.execute.return_value.scalar.return_value = "PostgreSQL 16.2"
    app.dependency_overrides[get_db] = lambda: fake_session

    response = client.get("/api/health/db")

    assert response.status_code == 200
    assert response.json()["data"] == {"ok": True, "database": "PostgreSQL 16.2"}


def test_health_cache(app, client):
    redis_client = MagicMock()
    redis_client.ping.return_value = True
    app.dependency_overrides[get_cache] = lambda: JsonCache(redis_client)

    response = client.get("/api/health/cache")

    assert response.status_code == 200
    assert response.json()["data"] == {"ok": True}


def test_health_cache_unreachable_is_generic_500(app, client):
    redis_client = MagicMock()
    redis_client.ping.side_effect = ConnectionError("redis://:s3cret@cache:6379 unreachable")
    app.dependency_overrides[get_cache] = lambda: JsonCache(redis_client)

    response = client.get("/api/health/cache")

    assert response.status_code == 500
    assert "s3cret" not in response.text


def test_health_queue(client):
    connection = MagicMock(is_open=True)
    with patch("app.api.endpoints.health.create_connection", return_value=connection):
        response = client.get("/api/health/queue")

    assert response.json()["data"] == {"ok": True}
    connection.close.assert_called_once_with()


def test_health_storage(app, client):
    minio_client = MagicMock()
    minio_client.bucket_exists.return_value = True
    app.dependency_overrides[get_storage] = lambda: ObjectStorage(minio_client, "backend")

    response = client.get("/api/health/storage")

    assert response.status_code == 200
    assert response.json()["data"] == {"ok": True, "bucket": "backend", "exists": True}

def test_cors_preflight(client):
    response = client.options(
        "/api/hello",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert response.headers["access-control-allow-credentials"] == "true"


def test_openapi_documents_envelope_fields(client):
    response = client.get("/openapi.json")

    assert response.status_code == 200
    schemas = response.json()["components"]["schemas"]
    envelopes = [schema for name, schema in schemas.items() if name.startswith("Result")]
    assert envelopes
    for schema in envelopes:
        assert {"code", "message", "timestamp"} <= set(schema["properties"])
