from conftest import api_error

PREFIX = "/api/v1"


def _body(event, registrations, **extra):
    body = {"eventData": event, "registrations": registrations}
    body.update(extra)
    return body


def test_create_sheet(client, google_client, event, registrations):
    response = client.post(f"{PREFIX}/sheets/create", json=_body(event, registrations))

    assert response.status_code == 201
    payload = response.get_json()
    assert payload["success"] is True
    assert payload["message"] == "Google Sheet created successfully"
    assert payload["data"]["spreadsheetId"] == "sheet-123"
    assert payload["data"]["shareableLink"] == "https://docs.google.com/spreadsheets/d/sheet-123/edit#gid=0"
    assert payload["data"]["rowCount"] == 2
    assert all(step["succeeded"] for step in payload["data"]["steps"])
    assert google_client.created["tabs"] == ["Registrations", "Dashboard"]


def test_create_sheet_validation_error(client, google_client, event, registrations):
    registrations[0]["participant_email"] = "broken"

    response = client.post(f"{PREFIX}/sheets/create", json=_body(event, registrations))

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == "Validation error"
    assert payload["details"][0]["field"] == "registrations[0].participant_email"
    assert "title" in payload["receivedData"]["eventDataKeys"]
    assert "participant_email" in payload["receivedData"]["registrationSample"]
    assert google_client.calls == []


def test_create_sheet_without_body(client):
    response = client.post(f"{PREFIX}/sheets/create", data="not json", content_type="text/plain")

    assert response.status_code == 400
    assert response.get_json()["details"][0]["field"] == "body"


def test_create_sheet_without_registrations(client, event):
    response = client.post(f"{PREFIX}/sheets/create", json=_body(event, []))

    assert response.status_code == 400
    assert response.get_json()["error"] == "No registrations provided"


def test_create_scaffold_sheet(client, event):
    response = client.post(f"{PREFIX}/sheets/create", json=_body(event, [], allowEmpty=True))

    assert response.status_code == 201
    assert response.get_json()["data"]["rowCount"] == 0


def test_create_sheet_rate_limited_upstream(client, google_client, event, registrations):
    google_client.fail("create_spreadsheet", api_error(429))

    response = client.post(f"{PREFIX}/sheets/create", json=_body(event, registrations))

    assert response.status_code == 429
    assert response.get_json()["error"] == "Rate limit exceeded"


def test_create_sheet_permission_denied(client, google_client, event, registrations):
    google_client.fail("create_spreadsheet", api_error(403))

    response = client.post(f"{PREFIX}/sheets/create", json=_body(event, registrations))

    assert response.status_code == 403
    assert response.get_json()["error"] == "Permission denied"


def test_create_sheet_bad_custom_fields(client, registrations):
    event = {"id": 1, "title": "Talk", "custom_fields": [{"id": "a", "label": "A"}]}
    event["custom_fields"].append({"id": "b", "label": "B", "type": 3})

    response = client.post(f"{PREFIX}/sheets/create", json=_body(event, registrations))

    assert response.status_code == 400
    assert response.get_json()["details"][0]["field"] == "event.custom_fields[1].type"


def test_update_sheet(client, google_client, event, registrations):
    client.post(f"{PREFIX}/sheets/create", json=_body(event, registrations))

    response = client.put(f"{PREFIX}/sheets/sheet-123/update", json=_body(event, registrations[:1]))

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["message"] == "Google Sheet updated successfully"
    assert payload["data"]["rowCount"] == 1
    assert google_client.cleared[0] == "Registrations!A4:Z"


def test_update_missing_sheet(client, google_client, event, registrations):
    google_client.fail("clear_values", api_error(404))

    response = client.put(f"{PREFIX}/sheets/unknown/update", json=_body(event, registrations))

    assert response.status_code == 404
    assert response.get_json()["error"] == "Sheet not found"


def test_get_sheet(client, event, registrations):
    client.post(f"{PREFIX}/sheets/create", json=_body(event, registrations))

    response = client.get(f"{PREFIX}/sheets/sheet-123")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["title"] == "Hackathon - Event Registrations"
    assert data["lastModified"] == "2024-03-15T10:31:00.000Z"


def test_get_missing_sheet(client):
    response = client.get(f"{PREFIX}/sheets/nope")

    assert response.status_code == 404
    assert response.get_json() == {
        "success": False,
        "error": "Sheet not found",
        "message": "Get sheet info failed: The specified Google Sheet could not be found",
    }


def test_delete_sheet(client, google_client, event, registrations):
    client.post(f"{PREFIX}/sheets/create", json=_body(event, registrations))

    response = client.delete(f"{PREFIX}/sheets/sheet-123")

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Google Sheet deleted successfully"}
    assert google_client.deleted == ["sheet-123"]


def test_sheets_unavailable_without_google_client(monkeypatch, event, registrations):
    monkeypatch.delenv("API_PREFIX", raising=False)
    from app import create_app

    client = create_app(build_clients=False).test_client()

    response = client.post(f"{PREFIX}/sheets/create", json=_body(event, registrations))

    assert response.status_code == 503


def test_root_and_not_found(client):
    root = client.get("/")
    assert root.status_code == 200
    assert root.get_json()["endpoints"]["sheets"] == f"{PREFIX}/sheets"

    missing = client.get("/api/v1/nothing-here")
    assert missing.status_code == 404
    payload = missing.get_json()
    assert payload["error"] == "Endpoint not found"
    assert f"{PREFIX}/health" in payload["availableEndpoints"]


def test_api_prefix_is_configurable(monkeypatch, google_client):
    monkeypatch.setenv("API_PREFIX", "/api/v2")
    from app import create_app

    client = create_app(google_client=google_client, build_clients=False).test_client()

    assert client.get("/api/v2/health").status_code == 200
    assert client.get("/api/v1/health").status_code == 404
