from fastapi.testclient import TestClient

from signoff.api.main import app
from signoff.core.clock import local_today
from signoff.core.config import get_settings


def test_health_endpoint_returns_service_metadata() -> None:
    client = TestClient(app)

    response = client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["service"]
    # Status can be "ok" or "degraded" depending on datastore availability
    assert payload["status"] in ["ok", "degraded"]
    assert "database" in payload["datastores"]
    assert "redis" in payload["datastores"]


def test_health_reports_reference_day_and_course_store(worker_factory) -> None:
    client = TestClient(app)
    before = local_today().isoformat()

    payload = client.get("/health").json()

    assert payload["timezone"] == get_settings().timezone
    assert payload["today"] in {before, local_today().isoformat()}
    assert payload["datastores"]["database"] == {"status": "ok", "course_count": 0}
