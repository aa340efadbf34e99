"""
Tests para verificar que el rate limiting del formulario funciona correctamente.
"""
import pytest


@pytest.fixture
def client_with_limits(make_app):
    """Cliente de test con un límite muy bajo para el formulario."""
    app = make_app(RATELIMIT_CONTACT="2 per minute")
    return app.test_client()


class TestContactRateLimit:
    """Tests para rate limiting en /api/contact."""

    def test_requests_within_limit(self, client_with_limits, mail_outbox, valid_payload):
        for _ in range(2):
            response = client_with_limits.post("/api/contact", json=valid_payload)
            assert response.status_code == 200

    def test_exceeding_limit_returns_429(self, client_with_limits, mail_outbox, valid_payload):
        for _ in range(2):
            client_with_limits.post("/api/contact", json=valid_payload)

        response = client_with_limits.post("/api/contact", json=valid_payload)
        assert response.status_code == 429
        assert response.get_json() == {"ok": False, "error": "Too many requests"}
        assert response.headers.get("Retry-After")
        assert len(mail_outbox) == 2

    def test_validation_failures_count_towards_limit(self, client_with_limits, mail_outbox):
        for _ in range(2):
            response = client_with_limits.post("/api/contact", json={"name": "J"})
            assert response.status_code == 400

        response = client_with_limits.post("/api/contact", json={"name": "J"})
        assert response.status_code == 429

    def test_limit_is_per_client_ip(self, client_with_limits, mail_outbox, valid_payload):
        for _ in range(2):
            client_with_limits.post(
                "/api/contact", json=valid_payload, environ_base={"REMOTE_ADDR": "198.51.100.1"}
            )

        other = client_with_limits.post(
            "/api/contact", json=valid_payload, environ_base={"REMOTE_ADDR": "198.51.100.2"}
        )
        assert other.status_code == 200

    def test_rotating_forwarded_for_does_not_reset_limit(self, client_with_limits, mail_outbox, valid_payload):
        statuses = [
            client_with_limits.post(
                "/api/contact", json=valid_payload, headers={"X-Forwarded-For": f"10.0.0.{i}"}
            ).status_code
            for i in range(5)
        ]

        assert statuses == [200, 200, 429, 429, 429]
        assert len(mail_outbox) == 2

    def test_trusted_proxy_hop_is_used_as_key(self, make_app, mail_outbox, valid_payload):
        client = make_app(RATELIMIT_CONTACT="2 per minute", PROXY_FIX_X_FOR=1).test_client()

        for _ in range(2):
            client.post("/api/contact", json=valid_payload, headers={"X-Forwarded-For": "203.0.113.1"})
        blocked = client.post("/api/contact", json=valid_payload, headers={"X-Forwarded-For": "203.0.113.1"})
        other = client.post("/api/contact", json=valid_payload, headers={"X-Forwarded-For": "203.0.113.2"})

        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_preflight_is_not_limited(self, client_with_limits):
        for _ in range(5):
            response = client_with_limits.options(
                "/api/contact",
                headers={"Origin": "https://example.com", "Access-Control-Request-Method": "POST"},
            )
            assert response.status_code == 204
