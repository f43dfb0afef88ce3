"""
Tests for the health check endpoint.
"""


def test_health_check_returns_200(client):
    response = client.get("/health")
    assert response.status_code == 200


def test_health_check_returns_service_name(client):
    """Monitoring parses this field; keep it stable."""
    response = client.get("/health")
    assert response.json()["service"] == "water-delivery"


def test_health_check_reports_database_status(client):
    data = client.get("/health").json()
    assert data["database"] in ("healthy", "unhealthy")
