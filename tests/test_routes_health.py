from google.auth.exceptions import RefreshError

PREFIX = "/api/v1"


def test_health_ok(client, google_client):
    response = client.get(f"{PREFIX}/health")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "healthy"
    assert payload["services"] == {"api": "healthy", "googleAuth": "healthy"}
    assert payload["serviceAccount"] == google_client.service_account_email
    assert ("test_authentication",) in google_client.calls


def test_health_degraded_when_auth_fails(client, google_client):
    google_client.fail("test_authentication", RefreshError("invalid_grant: account not found"))

    response = client.get(f"{PREFIX}/health")

    assert response.status_code == 503
    payload = response.get_json()
    assert payload["status"] == "degraded"
    assert payload["services"]["googleAuth"] == "unhealthy"
    assert "invalid_grant" in payload["googleAuthError"]


def test_detailed_health(client, monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://events.example.com,https://admin.example.com")

    response = client.get(f"{PREFIX}/health/detailed")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["services"] == {
        "api": "healthy",
        "googleAuth": "healthy",
        "googleSheets": "healthy",
        "googleDrive": "healthy",
    }
    assert payload["environment"]["apiPrefix"] == PREFIX
    assert payload["configuration"]["allowedOrigins"] == [
        "https://events.example.com",
        "https://admin.example.com",
    ]
    assert payload["configuration"]["hasGoogleCredentials"] is True


def test_detailed_health_without_client(monkeypatch):
    monkeypatch.delenv("API_PREFIX", raising=False)
    from app import create_app

    client = create_app(build_clients=False).test_client()

    response = client.get(f"{PREFIX}/health/detailed")

    assert response.status_code == 503
    payload = response.get_json()
    assert payload["status"] == "degraded"
    assert payload["configuration"]["serviceAccountEmail"] == "not configured"
    assert payload["googleAuthError"] == "Google API client not configured"
