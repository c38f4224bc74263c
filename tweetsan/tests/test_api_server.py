from __future__ import annotations

import json
import logging

from fastapi.testclient import TestClient

from tweetsan.api.auth import FIELDS_WRITE, parse_api_keys
from tweetsan.core.fields import FieldSelection

TWEET = {
    "id": 1,
    "text": "short",
    "full_text": "long version",
    "user": {"screen_name": "someone", "followers_count": 3},
    "entities": {"media": [{"id": 5}], "hashtags": []},
    "lang": "en",
}


def _client(monkeypatch, **env) -> TestClient:
    monkeypatch.delenv("TWEETSAN_API_KEYS", raising=False)
    monkeypatch.delenv("TWEETSAN_REQUIRE_AUTH", raising=False)
    monkeypatch.delenv("TWEETSAN_MAX_BODY_BYTES", raising=False)
    for k, v in env.items():
        monkeypatch.setenv(k, v)

    from tweetsan.api.server import create_app

    return TestClient(create_app(selection=FieldSelection()))


def test_api_sanitise_single_document(monkeypatch) -> None:
    client = _client(monkeypatch)

    r = client.post("/sanitise", content=json.dumps(TWEET).encode("utf-8"))

    assert r.status_code == 200
    assert r.headers.get("x-request-id")
    assert r.json() == {
        "id": 1,
        "text": "long version",
        "full_text": "long version",
        "user": {"screen_name": "someone"},
        "entities": {"media": [{"id": 5}]},
    }


def test_api_sanitise_skip_media_for_one_request(monkeypatch) -> None:
    client = _client(monkeypatch)

    r = client.post("/sanitise?skip_media=true", content=json.dumps(TWEET).encode("utf-8"))
    assert r.status_code == 200
    assert "entities" not in r.json()

    # The live allow-list itself still keeps media.
    r2 = client.post("/sanitise", content=json.dumps(TWEET).encode("utf-8"))
    assert "entities" in r2.json()


def test_api_malformed_document_returns_error_object(monkeypatch) -> None:
    client = _client(monkeypatch)

    r = client.post("/sanitise", content=b"{not json")

    assert r.status_code == 422
    body = r.json()
    assert body["error"]
    assert isinstance(body["stacktrace"], str)


def test_api_batch_preserves_order_and_counts_errors(monkeypatch) -> None:
    client = _client(monkeypatch)
    lines = [
        json.dumps({"id": 1, "junk": 1}),
        "{broken",
        "",
        json.dumps({"id": 3, "full_text": "three"}),
    ]

    r = client.post(
        "/sanitise/batch",
        content="\n".join(lines).encode("utf-8"),
        headers={"Content-Type": "application/x-ndjson"},
    )

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/x-ndjson")
    assert r.headers["x-tweetsan-documents"] == "3"
    assert r.headers["x-tweetsan-errors"] == "1"
    out = [json.loads(line) for line in r.text.splitlines()]
    assert out[0] == {"id": 1}
    assert "error" in out[1]
    assert out[2] == {"id": 3, "full_text": "three", "text": "three"}


def test_api_fields_get_and_replace(monkeypatch) -> None:
    client = _client(monkeypatch)

    r = client.get("/fields")
    assert r.status_code == 200
    data = r.json()
    assert "entities.media" in data["paths"]
    assert data["tree"]["user"] == {"screen_name": None}

    r2 = client.put("/fields", json={"fields": ["id", "user.screen_name"], "skip_media": True})
    assert r2.status_code == 200
    assert r2.json()["paths"] == ["id", "user.screen_name"]

    r3 = client.post("/sanitise", content=json.dumps(TWEET).encode("utf-8"))
    assert r3.json() == {"id": 1, "user": {"screen_name": "someone"}}

    health = client.get("/health").json()
    assert health["field_count"] == 2


def test_api_fields_replace_from_keep_file_text(monkeypatch) -> None:
    client = _client(monkeypatch)

    r = client.put(
        "/fields",
        json={"text": "# keep-file\nid, text\nentities.media\n", "skip_media": True},
    )

    assert r.status_code == 200
    data = r.json()
    assert data["fields"] == ["id", "text", "entities.media"]
    assert data["paths"] == ["id", "text"]


def test_api_fields_rejects_empty_selection(monkeypatch) -> None:
    client = _client(monkeypatch)

    r = client.put("/fields", json={"fields": ["  ", ""]})
    assert r.status_code == 422

    r2 = client.put("/fields", json={"text": "# only a comment\n"})
    assert r2.status_code == 422


def test_api_auth_and_capabilities(monkeypatch) -> None:
    client = _client(monkeypatch, TWEETSAN_API_KEYS="k1:alice:fields:write;k2:bob:")

    assert client.get("/health").json()["auth_required"] is True
    assert client.get("/fields").status_code == 401
    assert client.get("/fields", headers={"X-Tweetsan-API-Key": "wrong"}).status_code == 401

    r = client.put(
        "/fields", json={"fields": ["id"]}, headers={"X-Tweetsan-API-Key": "k2"}
    )
    assert r.status_code == 403

    r2 = client.put(
        "/fields", json={"fields": ["id"]}, headers={"X-Tweetsan-API-Key": "k1"}
    )
    assert r2.status_code == 200

    r3 = client.post(
        "/sanitise",
        content=json.dumps(TWEET).encode("utf-8"),
        headers={"X-Tweetsan-API-Key": "k2"},
    )
    assert r3.json() == {"id": 1}


def test_api_body_limits(monkeypatch) -> None:
    client = _client(monkeypatch, TWEETSAN_MAX_BODY_BYTES="16")

    assert client.post("/sanitise", content=b'{"id":1}').status_code == 200
    assert client.post("/sanitise", content=json.dumps(TWEET).encode("utf-8")).status_code == 413
    assert client.post("/sanitise", content=b'{"t":"\xff"}').status_code == 400


def test_api_request_id_on_every_response(monkeypatch) -> None:
    client = _client(monkeypatch, TWEETSAN_API_KEYS="k1:alice:fields:write")
    key = {"X-Tweetsan-API-Key": "k1"}

    responses = [
        client.get("/health"),
        client.get("/fields"),
        client.get("/fields", headers=key),
        client.post("/sanitise", content=b"{bad", headers=key),
        client.post("/sanitise/batch", content=b'{"id": 1}\n', headers=key),
    ]

    assert [r.status_code for r in responses] == [200, 401, 200, 422, 200]
    ids = [r.headers.get("x-request-id") for r in responses]
    assert all(ids)
    assert len(set(ids)) == len(ids)


def test_api_request_id_echo_and_replace(monkeypatch) -> None:
    client = _client(monkeypatch)

    r = client.get("/health", headers={"X-Request-ID": "trace-42"})
    assert r.headers["x-request-id"] == "trace-42"

    long_id = "x" * 500
    r2 = client.get("/health", headers={"X-Request-ID": long_id})
    assert r2.headers["x-request-id"] != long_id
    assert 0 < len(r2.headers["x-request-id"]) <= 128


def test_api_request_log_carries_document_counts(monkeypatch, caplog) -> None:
    client = _client(monkeypatch)

    with caplog.at_level(logging.INFO, logger="tweetsan.api"):
        client.post("/sanitise/batch", content=b'{"id": 1}\n{bad\n{"id": 2}\n')
        client.post("/sanitise", content=b'{"id": 1}')

    records = [r for r in caplog.records if r.getMessage() == "sanitise_request"]
    assert [(r.path, r.documents, r.errors) for r in records] == [
        ("/sanitise/batch", 3, 1),
        ("/sanitise", 1, 0),
    ]
    assert records[0].levelno == logging.WARNING
    assert records[1].levelno == logging.INFO


def test_api_lone_surrogate_document(monkeypatch) -> None:
    client = _client(monkeypatch)

    r = client.post("/sanitise", content=b'{"text": "broken \\ud83d", "lang": "en"}')

    assert r.status_code == 200
    assert r.json() == {"text": "broken \ud83d"}


def test_parse_api_keys() -> None:
    keys = parse_api_keys("k1:alice:fields:write; k2:bob: ;bad;:nobody:x;k3:carol:admin")

    assert set(keys) == {"k1", "k2", "k3"}
    assert keys["k1"].can(FIELDS_WRITE)
    assert not keys["k2"].can(FIELDS_WRITE)
    assert keys["k3"].capabilities == frozenset()
