"""End-to-end tests of the HTTP surface with a fake dispatcher and a temporary database."""

import httpx

from dispatch.client import DispatchError, HttpDispatcher
from utils.dependencies import get_dispatcher

API = "/api/v1"


def create_environment(client, name="dev", **variables):
    payload = {
        "name": name,
        "variables": [{"key": k, "value": v} for k, v in variables.items()],
    }
    response = client.post(f"{API}/environments", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def create_collection_with_requests(client, *requests):
    collection = client.post(f"{API}/collections", json={"name": "Users API"}).json()
    for i, (method, url) in enumerate(requests):
        response = client.post(
            f"{API}/collections/{collection['id']}/requests",
            json={"name": f"request {i}", "method": method, "url": url, "headers": []},
        )
        assert response.status_code == 201, response.text
    return collection


def test_health_and_ping(client):
    assert client.get(f"{API}/health").json()["status"] == "healthy"
    assert client.get(f"{API}/ping").json() == {"message": "pong"}


def test_environment_lifecycle(client):
    created = create_environment(client, "dev", base="https://api.example.com")
    env_id = created["id"]
    assert created["variables"] == [{"key": "base", "value": "https://api.example.com"}]

    assert [e["name"] for e in client.get(f"{API}/environments").json()] == ["dev"]

    updated = client.put(f"{API}/environments/{env_id}", json={
        "name": "staging",
        "variables": [{"key": " token ", "value": " abc "}],
    })
    assert updated.status_code == 200
    assert updated.json()["name"] == "staging"
    assert updated.json()["variables"] == [{"key": "token", "value": "abc"}]

    assert client.get(f"{API}/environments/{env_id}").json()["name"] == "staging"
    assert client.delete(f"{API}/environments/{env_id}").status_code == 200
    assert client.get(f"{API}/environments/{env_id}").status_code == 404


def test_duplicate_environment_name_conflicts(client):
    create_environment(client, "dev")

    response = client.post(f"{API}/environments", json={"name": "dev", "variables": []})

    assert response.status_code == 409


def test_duplicate_variable_keys_are_rejected(client):
    response = client.post(f"{API}/environments", json={
        "name": "dev",
        "variables": [{"key": "a", "value": "1"}, {"key": "a", "value": "2"}],
    })

    assert response.status_code == 422


def test_send_resolves_and_records_history(client, dispatcher):
    create_environment(client, "dev", base="https://api.example.com", token="abc")

    response = client.post(f"{API}/requests/send", json={
        "method": "GET",
        "url": "{{base}}/users",
        "headers": [{"key": "Authorization", "value": "Bearer {{token}}"}],
        "environment": "dev",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == 200
    assert body["data"] == {"ok": True}
    sent = dispatcher.sent[0]
    assert sent.url == "https://api.example.com/users"
    assert sent.header_map() == {"Authorization": "Bearer abc"}

    history = client.get(f"{API}/requests/history").json()
    assert history["total"] == 1
    assert history["history"][0]["url"] == "https://api.example.com/users"
    assert history["history"][0]["success"] is True


def test_send_names_missing_variables(client, dispatcher):
    create_environment(client, "dev")

    response = client.post(f"{API}/requests/send", json={
        "method": "GET", "url": "{{base}}/users", "environment": "dev",
    })

    assert response.status_code == 400
    assert "base" in response.json()["detail"]
    assert dispatcher.sent == []


def test_send_reports_circular_reference(client):
    create_environment(client, "dev", a="{{b}}", b="{{a}}")

    response = client.post(f"{API}/requests/send", json={
        "method": "GET", "url": "https://api.example.com/{{a}}", "environment": "dev",
    })

    assert response.status_code == 400
    assert "ircular" in response.json()["detail"]


def test_send_rejects_invalid_json_body(client):
    create_environment(client, "dev", base="https://api.example.com")

    response = client.post(f"{API}/requests/send", json={
        "method": "POST", "url": "{{base}}/users", "body": "{not json", "environment": "dev",
    })

    assert response.status_code == 400


def test_send_with_unknown_environment(client):
    response = client.post(f"{API}/requests/send", json={
        "method": "GET", "url": "https://api.example.com", "environment": "nope",
    })

    assert response.status_code == 404


def test_send_reports_transport_failure_in_body(client, dispatcher):
    def refuse(request):
        raise DispatchError("connection refused")

    dispatcher.responder = refuse
    create_environment(client, "dev")

    response = client.post(f"{API}/requests/send", json={
        "method": "GET", "url": "https://api.example.com/", "environment": "dev",
    })

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["status"] == 0
    assert response.json()["error"] == "connection refused"


def test_history_filters_and_clear(client):
    create_environment(client, "dev")
    for method, url in [("GET", "https://a.example.com/"), ("DELETE", "https://b.example.com/x")]:
        client.post(f"{API}/requests/send", json={"method": method, "url": url, "environment": "dev"})

    deletes = client.get(f"{API}/requests/history", params={"method": "delete"}).json()
    assert [h["url"] for h in deletes["history"]] == ["https://b.example.com/x"]

    searched = client.get(f"{API}/requests/history", params={"search": "a.example"}).json()
    assert searched["total"] == 1

    assert client.delete(f"{API}/requests/history").json()["deleted"] == 2
    assert client.get(f"{API}/requests/history").json()["total"] == 0


def test_load_test_single_request_is_stored(client, dispatcher):
    create_environment(client, "dev", base="https://api.example.com")

    response = client.post(f"{API}/loadtest", json={
        "request": {"method": "GET", "url": "{{base}}/users"},
        "concurrency": 2,
        "iterations": 3,
        "environment": "dev",
    })

    assert response.status_code == 200, response.text
    report = response.json()
    assert report["aggregate"]["total_requests"] == 6
    assert len(report["attempts"]) == 6
    assert report["per_request"][0]["url"] == "https://api.example.com/users"
    assert len(dispatcher.sent) == 6

    stored = client.get(f"{API}/loadtest/{report['id']}").json()
    assert stored["aggregate"] == report["aggregate"]
    assert stored["concurrency"] == 2
    assert stored["request"]["url"] == "{{base}}/users"


def test_load_test_for_collection(client):
    create_environment(client, "dev", base="https://api.example.com")
    collection = create_collection_with_requests(
        client, ("GET", "{{base}}/users"), ("DELETE", "{{base}}/users/1"),
    )

    response = client.post(f"{API}/loadtest", json={
        "collection_id": collection["id"], "concurrency": 2, "iterations": 3, "environment": "dev",
    })

    assert response.status_code == 200, response.text
    report = response.json()
    assert report["aggregate"]["total_requests"] == 12
    assert [m["total_requests"] for m in report["per_request"]] == [6, 6]
    assert {m["method"] for m in report["per_request"]} == {"GET", "DELETE"}


def test_load_test_validation_messages(client):
    create_environment(client, "dev", base="https://api.example.com")
    request = {"method": "GET", "url": "{{base}}/users"}

    cases = [
        ({"concurrency": 1, "iterations": 1, "environment": "dev"}, "required"),
        ({"request": request, "collection_id": "c1", "concurrency": 1, "iterations": 1, "environment": "dev"}, "not both"),
        ({"request": request, "concurrency": 0, "iterations": 1, "environment": "dev"}, "Concurrency"),
        ({"request": request, "concurrency": 101, "iterations": 1, "environment": "dev"}, "Concurrency"),
        ({"request": request, "concurrency": 1, "iterations": 51, "environment": "dev"}, "Iterations"),
        ({"request": request, "concurrency": 1, "iterations": 1}, "Environment"),
    ]
    for payload, message in cases:
        response = client.post(f"{API}/loadtest", json=payload)
        assert response.status_code == 400, payload
        assert message in response.json()["detail"]


def test_load_test_lookups(client):
    create_environment(client, "dev")
    empty = client.post(f"{API}/collections", json={"name": "empty"}).json()

    unknown_env = client.post(f"{API}/loadtest", json={
        "request": {"method": "GET", "url": "https://api.example.com"},
        "concurrency": 1, "iterations": 1, "environment": "prod",
    })
    unknown_collection = client.post(f"{API}/loadtest", json={
        "collection_id": "missing", "concurrency": 1, "iterations": 1, "environment": "dev",
    })
    empty_collection = client.post(f"{API}/loadtest", json={
        "collection_id": empty["id"], "concurrency": 1, "iterations": 1, "environment": "dev",
    })

    assert unknown_env.status_code == 404
    assert unknown_collection.status_code == 404
    assert empty_collection.status_code == 400
    assert client.get(f"{API}/loadtest/missing").status_code == 404


def test_load_test_rejects_unresolvable_request(client, dispatcher):
    create_environment(client, "dev")

    response = client.post(f"{API}/loadtest", json={
        "request": {"method": "GET", "url": "{{base}}/users"},
        "concurrency": 1, "iterations": 1, "environment": "dev",
    })

    assert response.status_code == 400
    assert "index 0" in response.json()["detail"]
    assert "base" in response.json()["detail"]
    assert dispatcher.sent == []


def test_collection_requests(client):
    collection = create_collection_with_requests(client, ("GET", "{{base}}/a"), ("POST", "{{base}}/b"))

    listed = client.get(f"{API}/collections/{collection['id']}/requests").json()["requests"]
    assert [r["url"] for r in listed] == ["{{base}}/a", "{{base}}/b"]
    assert client.get(f"{API}/collections/{collection['id']}").json()["request_count"] == 2

    assert client.delete(f"{API}/collections/{collection['id']}").status_code == 200
    assert client.get(f"{API}/collections/{collection['id']}").status_code == 404
    assert client.post(f"{API}/collections/missing/requests", json={
        "name": "x", "method": "GET", "url": "https://api.example.com",
    }).status_code == 404


def test_send_reports_unencodable_header_in_body(client):
    def handler(request):
        return httpx.Response(200, json={"ok": True})

    http_dispatcher = HttpDispatcher(transport=httpx.MockTransport(handler), retry_count=0)
    client.app.dependency_overrides[get_dispatcher] = lambda: http_dispatcher
    create_environment(client, "dev", tok="héllo")

    response = client.post(f"{API}/requests/send", json={
        "method": "GET",
        "url": "https://api.example.com/",
        "headers": [{"key": "X-Tok", "value": "{{tok}}"}],
        "environment": "dev",
    })

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["status"] == 0
    history = client.get(f"{API}/requests/history").json()
    assert history["total"] == 1
    assert history["history"][0]["success"] is False


def test_send_keeps_header_value_whitespace(client, dispatcher):
    create_environment(client, "dev", token="abc")

    client.post(f"{API}/requests/send", json={
        "method": "GET",
        "url": "https://api.example.com/",
        "headers": [{"key": " X-Pad ", "value": "  {{token}} "}],
        "environment": "dev",
    })

    assert dispatcher.sent[0].header_map() == {"X-Pad": "  abc "}


def test_delete_single_history_entry(client):
    create_environment(client, "dev")
    for url in ["https://a.example.com/", "https://b.example.com/"]:
        client.post(f"{API}/requests/send", json={"method": "GET", "url": url, "environment": "dev"})
    entries = client.get(f"{API}/requests/history").json()["history"]

    response = client.delete(f"{API}/requests/history/{entries[0]['id']}")

    assert response.status_code == 200
    remaining = client.get(f"{API}/requests/history").json()
    assert remaining["total"] == 1
    assert remaining["history"][0]["id"] == entries[1]["id"]
    assert client.delete(f"{API}/requests/history/{entries[0]['id']}").status_code == 404
