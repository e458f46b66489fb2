# tests/test_ops.py
"""
Tests for the operations layer: structured logging and health checks.
"""

import json
import logging
import sys

import pytest

from accounting import ledger
from accounting.models import Transaction
from ops.health import HealthCheck
from ops.logging_config import APP_LOGGERS, JsonFormatter, get_logging_config


# =============================================================================
# Logging
# =============================================================================

def _record(msg="Payment validated", exc_info=None, **extra):
    record = logging.LogRecord("accounting.billing_commands", logging.INFO, __file__, 10, msg, (), exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:

    def test_context_keys_promoted(self):
        line = JsonFormatter().format(_record(company_id=7, transaction_number="TXN-2025-00001", amount=1000))
        entry = json.loads(line)

        assert entry["message"] == "Payment validated"
        assert entry["logger"] == "accounting.billing_commands"
        assert entry["level"] == "INFO"
        assert entry["company_id"] == 7
        assert entry["transaction_number"] == "TXN-2025-00001"
        assert entry["extra"] == {"amount": 1000}

    def test_no_extra_block_without_extras(self):
        entry = json.loads(JsonFormatter().format(_record()))

        assert "extra" not in entry
        assert "exception" not in entry

    def test_unserializable_extra_becomes_string(self):
        entry = json.loads(JsonFormatter().format(_record(when=object())))

        assert entry["extra"]["when"].startswith("<object object")

    def test_exception_and_location(self):
        try:
            raise ValueError("boom")
        except ValueError:
            entry = json.loads(JsonFormatter().format(_record(exc_info=sys.exc_info())))

        assert "ValueError: boom" in entry["exception"]
        assert entry["location"].endswith(":10")


class TestLoggingConfig:

    def test_json_in_production(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        config = get_logging_config(debug=False)

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["root"]["level"] == "INFO"
        assert config["loggers"]["django.request"]["level"] == "ERROR"
        assert set(APP_LOGGERS) <= set(config["loggers"])

    def test_console_in_debug(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        config = get_logging_config(debug=True)

        assert config["handlers"]["console"]["formatter"] == "console"
        assert config["loggers"]["accounting"]["level"] == "WARNING"
        assert config["loggers"]["django.db.backends"]["handlers"] == ["null"]

    def test_sql_log_opt_in(self, monkeypatch):
        monkeypatch.setenv("SQL_LOG", "True")

        assert get_logging_config(debug=True)["loggers"]["django.db.backends"]["handlers"] == ["console"]
        assert get_logging_config(debug=False)["loggers"]["django.db.backends"]["handlers"] == ["null"]


# =============================================================================
# Health
# =============================================================================

@pytest.mark.django_db
class TestHealth:

    def test_liveness(self, client):
        response = client.get("/_health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_readiness(self, client):
        response = client.get("/_health/ready")

        assert response.status_code == 200
        assert response.json()["database"]["status"] == "healthy"

    def test_ledger_pairs_healthy(self, company, owner, eur_account, eur_savings, today):
        ledger.create_transfer_pair(
            company, owner, from_account=eur_account, to_account=eur_savings,
            amount=1000, date=today, description="", notes="",
        )

        assert HealthCheck.check_ledger_pairs()["status"] == "healthy"

    def test_half_written_pair_degraded(self, company, owner, eur_account, eur_savings, today):
        outgoing, incoming = ledger.create_transfer_pair(
            company, owner, from_account=eur_account, to_account=eur_savings,
            amount=1000, date=today, description="", notes="",
        )
        Transaction.objects.filter(pk=incoming.pk).update(linked_transaction=None)

        result = HealthCheck.check_ledger_pairs()

        assert result == {"status": "degraded", "orphan_legs": 1, "unmatched_legs": 1}

    def test_broker_skipped_without_redis(self, settings):
        settings.CELERY_BROKER_URL = "memory://"

        assert HealthCheck.check_broker()["status"] == "skipped"
