from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from core.config import settings


class TestHealth:
    def test_liveness(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_database(self, client):
        for path in ("/health/supabase", "/health/database"):
            response = client.get(path)
            assert response.status_code == 200
            assert response.json() == {"status": "healthy", "database": "connected"}

    def test_database_down(self, client):
        with patch("sqlalchemy.orm.Session.execute", side_effect=OperationalError("SELECT 1", {}, Exception("down"))):
            response = client.get("/health/database")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_config_reports_presence_only(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RAZORPAY_KEY_SECRET", "super-secret-value")
        monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "")

        response = client.get("/health/config")

        body = response.json()
        assert response.status_code == 200
        assert body["healthy"] is True
        assert body["environment"]["optional"]["RAZORPAY_KEY_SECRET"] == {"set": True}
        assert body["environment"]["optional"]["TWILIO_AUTH_TOKEN"] == {"set": False}
        assert "super-secret-value" not in response.text
        assert settings.JWT_SECRET not in response.text

    def test_config_flags_missing_critical_setting(self, client, monkeypatch):
        monkeypatch.setattr(settings, "JWT_SECRET", "")
        body = client.get("/health/config").json()
        assert body["healthy"] is False
        assert body["issues"] == ["JWT_SECRET is not set"]
