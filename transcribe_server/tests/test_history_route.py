"""Tests for the /history endpoints."""

from transcribe_server.core.errors import StoreError


def _upload(client, filename):
    response = client.post(
        "/upload", files={"audio": (filename, b"audio", "audio/webm")}
    )
    assert response.status_code == 200


def test_history_is_empty_initially(client):
    response = client.get("/history")

    assert response.status_code == 200
    assert response.json() == []


def test_history_is_newest_first(client):
    for name in ("first.webm", "second.webm", "third.webm"):
        _upload(client, name)

    history = client.get("/history").json()

    assert [item["filename"] for item in history] == [
        "third.webm",
        "second.webm",
        "first.webm",
    ]
    created = [item["createdAt"] for item in history]
    assert created == sorted(created, reverse=True)


def test_history_item_shape(client):
    _upload(client, "sample.webm")

    item = client.get("/history").json()[0]

    assert set(item) == {"id", "_id", "filename", "text", "createdAt"}
    assert item["id"] == item["_id"]


def test_delete_removes_only_that_record(client):
    _upload(client, "keep.webm")
    _upload(client, "drop.webm")
    history = client.get("/history").json()
    drop_id = next(item["id"] for item in history if item["filename"] == "drop.webm")

    response = client.delete(f"/history/{drop_id}")

    assert response.status_code == 200
    assert response.json() == {"message": "Deleted successfully"}
    remaining = client.get("/history").json()
    assert [item["filename"] for item in remaining] == ["keep.webm"]
    assert drop_id not in {item["id"] for item in remaining}


def test_delete_unknown_id_is_a_no_op(client):
    _upload(client, "sample.webm")
    before = client.get("/history").json()

    response = client.delete("/history/does-not-exist")

    assert response.status_code == 200
    assert response.json() == {"message": "Deleted successfully"}
    assert client.get("/history").json() == before


def test_history_store_failure(client, monkeypatch):
    store = client.app.state.gateway.store

    def _unavailable():
        raise StoreError("database is locked")

    monkeypatch.setattr(store, "list_all", _unavailable)

    response = client.get("/history")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch history"}


def test_delete_store_failure(client, monkeypatch):
    store = client.app.state.gateway.store

    def _unavailable(record_id):
        raise StoreError("database is locked")

    monkeypatch.setattr(store, "delete", _unavailable)

    response = client.delete("/history/abc")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to delete item"}
