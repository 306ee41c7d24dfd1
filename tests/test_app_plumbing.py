"""
Tests for the application shell: config selection, health probes, request
headers, CORS, JSON error handlers, JWT identity and the log formatters.
"""

import json
import logging

import pytest

from stakemap.config import ProductionConfig, _database_url
from stakemap.middleware.logging_config import JSONFormatter, ReadableFormatter


class TestConfig:
    def test_testing_config_is_loaded(self, app):
        assert app.config["TESTING"] is True
        assert app.config["SQLALCHEMY_DATABASE_URI"] == "sqlite:///:memory:"
        assert app.config["RATELIMIT_ENABLED"] is False

    def test_postgres_scheme_is_normalised(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/stakemap")

        assert _database_url() == "postgresql://u:p@db:5432/stakemap"

    def test_production_requires_database_url(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", None)

        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            ProductionConfig()

    def test_production_requires_secret_key(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", "postgresql://db/stakemap")
        monkeypatch.delenv("SECRET_KEY", raising=False)

        with pytest.raises(RuntimeError, match="SECRET_KEY"):
            ProductionConfig()


class TestHealth:
    def test_ready(self, client):
        res = client.get("/api/v1/health/ready")

        assert res.status_code == 200
        assert res.get_json() == {"status": "ok"}

    def test_live_checks_database(self, client):
        res = client.get("/api/v1/health/live")

        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "ok"


class TestRequestHandling:
    def test_request_id_is_echoed(self, client):
        res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "abc123"})

        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers

    def test_cors_allows_dashboard_origin(self, client):
        res = client.get("/api/v1/health/ready", headers={"Origin": "http://localhost:3000"})

        assert res.headers.get("Access-Control-Allow-Origin") == "http://localhost:3000"

    def test_cors_ignores_unknown_origin(self, client):
        res = client.get("/api/v1/health/ready", headers={"Origin": "http://evil.example"})

        assert "Access-Control-Allow-Origin" not in res.headers

    def test_unknown_api_path_returns_json_404(self, client):
        res = client.get("/api/v1/does-not-exist")

        assert res.status_code == 404
        assert res.get_json()["error"] == "Not found"

    def test_wrong_method_returns_405(self, client):
        res = client.patch("/api/v1/health/ready", json={})

        assert res.status_code == 405

    def test_oversized_body_returns_413(self, client, app):
        limit = app.config["MAX_CONTENT_LENGTH"]

        res = client.post(
            "/api/v1/kpi/sub-clusters",
            data=b"x" * (limit + 1),
            content_type="application/json",
        )

        assert res.status_code == 413

    def test_jwt_identity_is_exposed_on_g(self, app, auth_headers):
        from flask import g

        with app.test_request_context("/api/v1/kpi", headers=auth_headers(user_id="9", username="zawadi")):
            app.preprocess_request()
            assert g.jwt_user_id == "9"
            assert g.jwt_username == "zawadi"
            assert g.jwt_roles == ["planner"]


class TestLogFormatters:
    def _record(self, **extra):
        record = logging.LogRecord("stakemap.test", logging.INFO, __file__, 1, "plan %s", ("saved",), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter_includes_known_extras(self):
        line = JSONFormatter().format(self._record(action_plan_id=5, kpi_id=10, unrelated="x"))
        payload = json.loads(line)

        assert payload["message"] == "plan saved"
        assert payload["action_plan_id"] == 5
        assert payload["kpi_id"] == 10
        assert "unrelated" not in payload

    def test_json_formatter_includes_service_context_fields(self):
        line = JSONFormatter().format(self._record(
            stakeholder_category_id=3, district_count=2, sub_cluster_count=1, quarter_id=4,
        ))
        payload = json.loads(line)

        assert payload["stakeholder_category_id"] == 3
        assert payload["district_count"] == 2
        assert payload["sub_cluster_count"] == 1
        assert payload["quarter_id"] == 4

    def test_readable_formatter_shows_request_id(self):
        line = ReadableFormatter().format(self._record(request_id="req-1", duration_ms=12.3))

        assert "plan saved" in line
        assert "(req-1)" in line
        assert "[12ms]" in line
