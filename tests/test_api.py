"""
Statement Import API Tests
"""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from fastapi.testclient import TestClient

from api.main import app
from api.stores import reset_stores
from statement_import.config import CONFIG_DIR_ENV


@pytest.fixture
def client():
    """Test client with fresh in-memory stores."""
    reset_stores()
    with TestClient(app) as test_client:
        yield test_client
    reset_stores()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestImportRoutes:
    """Tests for /api/import endpoints."""

    def test_preview(self, client, sample_statement):
        response = client.post(
            "/api/import/preview", json={"text": sample_statement, "account_id": "acc-1"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["stats"]["total"] == 3
        assert data["stats"]["to_import"] == 3
        assert data["items"][0]["categorization"]["category"] == "Alimentación"
        assert data["items"][0]["movement"]["date"] == "2024-01-05"
        assert len(data["items"][0]["movement"]["fingerprint"]) == 16

    def test_preview_does_not_store(self, client, sample_statement):
        payload = {"text": sample_statement, "account_id": "acc-1"}
        client.post("/api/import/preview", json=payload)

        response = client.post("/api/import/preview", json=payload)

        assert response.json()["stats"]["duplicates"] == 0

    def test_import_then_reimport(self, client, sample_statement):
        """Test a second import of the same statement stores nothing."""
        payload = {"text": sample_statement, "account_id": "acc-1"}

        first = client.post("/api/import", json=payload).json()
        second = client.post("/api/import", json=payload).json()

        assert first["imported"] == 3
        assert second["imported"] == 0
        assert second["duplicates"] == 3

    def test_accounts_are_independent(self, client, sample_statement):
        client.post("/api/import", json={"text": sample_statement, "account_id": "acc-1"})
        response = client.post("/api/import", json={"text": sample_statement, "account_id": "acc-2"})

        assert response.json()["imported"] == 3

    def test_empty_text_is_bad_request(self, client):
        response = client.post("/api/import/preview", json={"text": "  ", "account_id": "acc-1"})

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Statement text is empty"

    def test_unparseable_text_is_bad_request(self, client):
        response = client.post("/api/import", json={"text": "nada", "account_id": "acc-1"})

        assert response.status_code == 400
        assert response.json()["detail"]["errors"] == ["No movements recognized in statement text"]

    def test_missing_account_rejected(self, client, sample_statement):
        response = client.post("/api/import/preview", json={"text": sample_statement, "account_id": ""})
        assert response.status_code == 422

    def test_request_overrides(self, client):
        text = """05/01/2024  COMPRA FARMACIA  -8,95 EUR
05/01/2024  COMPRA FARMACIA  -8,95 EUR
"""
        response = client.post(
            "/api/import/preview",
            json={"text": text, "account_id": "acc-1", "ignore_duplicates": True},
        )

        assert response.json()["stats"]["total"] == 1


class TestRuleRoutes:
    """Tests for /api/rules endpoints."""

    def test_check_rule_matches(self, client):
        response = client.post(
            "/api/rules/check",
            json={"description": "COMPRA MERCADONA", "pattern": "mercadona"},
        )

        assert response.status_code == 200
        assert response.json()["matches"] is True

    def test_check_regex_rule(self, client):
        response = client.post(
            "/api/rules/check",
            json={"description": "CEPSA A-7", "pattern": "^(REPSOL|CEPSA)", "match_mode": "regex"},
        )

        assert response.json()["matches"] is True

    def test_check_invalid_regex(self, client):
        response = client.post(
            "/api/rules/check",
            json={"description": "X", "pattern": "(unterminated", "match_mode": "regex"},
        )

        assert response.status_code == 400

    def test_check_non_positive_priority(self, client):
        response = client.post(
            "/api/rules/check",
            json={"description": "X", "pattern": "X", "priority": 0},
        )

        assert response.status_code == 400

    def test_matching_rules_winner_order(self, client):
        response = client.get(
            "/api/rules/matching",
            params={"description": "TRANSFERENCIA RECIBIDA NOMINA"},
        )

        data = response.json()
        assert [r["id"] for r in data["rules"]] == ["transferencia", "nomina"]
        assert data["winner"]["id"] == "transferencia"

    def test_matching_rules_none(self, client):
        data = client.get("/api/rules/matching", params={"description": "ALGO RARO"}).json()

        assert data["rules"] == []
        assert data["winner"] is None


class TestConfigurationFailures:
    """Tests for broken config files loaded on first request."""

    @pytest.fixture
    def broken_config_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_DIR_ENV, str(tmp_path))
        reset_stores()
        yield tmp_path
        reset_stores()

    def test_invalid_settings_reported(self, broken_config_dir, sample_statement):
        (broken_config_dir / "import_settings.yaml").write_text(
            "import:\n  nearby_days: -1\n", encoding="utf-8"
        )
        client = TestClient(app)

        response = client.post(
            "/api/import/preview", json={"text": sample_statement, "account_id": "acc-1"}
        )

        assert response.status_code == 500
        assert "Invalid configuration" in response.json()["detail"]["message"]

    def test_invalid_rule_file_reported(self, broken_config_dir):
        (broken_config_dir / "categorization_rules.yaml").write_text(
            "rules:\n  - {id: bad, pattern: '(oops', match_mode: regex, category: X}\n",
            encoding="utf-8",
        )
        client = TestClient(app)

        response = client.get("/api/rules/matching", params={"description": "X"})

        assert response.status_code == 500
        assert "Invalid rule 'bad'" in response.json()["detail"]["message"]
