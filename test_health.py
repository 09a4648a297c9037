"""
Tests for GET /health and GET /metrics.
"""

from datetime import datetime


class TestHealth:
    """Test the health check endpoint."""

    def test_empty_store(self, client):
        """Test health on an empty store."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["messagesCount"] == 0

    def test_timestamp_iso8601(self, client):
        """Test the timestamp is ISO-8601 UTC with a Z suffix."""
        timestamp = client.get("/health").json()["timestamp"]

        assert timestamp.endswith("Z")
        datetime.fromisoformat(timestamp.replace("Z", "+00:00"))

    def test_counts_messages(self, client):
        """Test messagesCount follows saves and deletes."""
        first = client.post("/save", json={"text": "one"}).json()["id"]
        client.post("/save", json={"text": "two"})
        assert client.get("/health").json()["messagesCount"] == 2

        client.delete(f"/messages/{first}")
        assert client.get("/health").json()["messagesCount"] == 1

    def test_healthy_with_corrupt_file(self, fail_closed_client, data_file):
        """Test health stays 200 even when the data file cannot be parsed."""
        data_file.write_text("[{", encoding="utf-8")

        response = fail_closed_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["messagesCount"] == 0


class TestMetrics:
    """Test the Prometheus metrics endpoint."""

    def test_metrics_exposed(self, client):
        """Test request and operation counters show up after traffic."""
        client.post("/save", json={"text": "counted"})
        client.post("/save", json={"text": ""})
        client.delete("/messages/doesnotexist")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        body = response.text
        assert "http_requests_total" in body
        assert 'message_operations_total{operation="create",result="created"}' in body
        assert 'message_operations_total{operation="create",result="rejected"}' in body
        assert 'message_operations_total{operation="delete",result="not_found"}' in body
        assert 'path="/messages/{id}"' in body
