from datetime import datetime


def test_health_ok(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["service"] == "elevaforge-backend"
    assert datetime.fromisoformat(body["timestamp"].replace("Z", "+00:00"))


def test_health_rejects_other_methods(client):
    response = client.post("/api/health")
    assert response.status_code == 405
    assert "GET" in response.headers["allow"]


def test_unknown_path_is_404(client):
    response = client.get("/api/unknown")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}
