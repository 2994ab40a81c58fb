"""Tests pour l'endpoint de santé et l'exposition des métriques."""

from clocwise.core.http_constants import HTTP_OK
from tests.helpers import API


def test_health(client, container):
    """Teste que l'endpoint de santé retourne un statut OK et le backend actif."""
    r = client.get(f"{API}/health")
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["status"] == "OK"
    assert body["timestamp"]
    assert body["storage"] == ("memory" if container.primary_store is None else "primary")


def test_metrics_endpoint(client):
    client.get(f"{API}/health")
    r = client.get("/metrics")
    assert r.status_code == HTTP_OK
    assert "http_requests_total" in r.text


def test_health_detects_unreachable_primary(degraded_client):
    """Le primaire injoignable est signalé dès le premier appel à /health."""
    r = degraded_client.get(f"{API}/health")
    assert r.status_code == HTTP_OK
    assert r.json()["storage"] == "fallback"
