"""Unit tests for JSON logging and database helpers."""

import json
import logging

from sqlalchemy import inspect

from cfmonitor.core.logging import JSONFormatter, get_logger
from cfmonitor.database import _mask_url, build_engine, init_db


def _record(**extra):
    record = logging.LogRecord("cfmonitor.test", logging.INFO, __file__, 1, "zone %s done", ("a.com",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_context_fields_included(self):
        line = JSONFormatter().format(_record(account="A", zone="a.com", status_code=401))
        entry = json.loads(line)
        assert entry["message"] == "zone a.com done"
        assert (entry["account"], entry["zone"], entry["status_code"]) == ("A", "a.com", 401)
        assert entry["timestamp"].endswith("+00:00")

    def test_unset_context_fields_omitted(self):
        entry = json.loads(JSONFormatter().format(_record(status_code=None)))
        assert not {"account", "zone", "status_code", "duration_ms"} & set(entry)

    def test_get_logger_is_namespaced_and_idempotent(self):
        logger = get_logger("unit")
        assert logger.name == "cfmonitor.unit"
        assert get_logger("unit").handlers == logger.handlers
        assert len(logger.handlers) == 1


class TestDatabase:
    def test_mask_url_hides_password(self):
        assert _mask_url("postgresql://user:secret@db:5432/cf") == "postgresql://user:****@db:5432/cf"
        assert _mask_url("sqlite:///./cfmonitor.db") == "sqlite:///./cfmonitor.db"

    def test_init_db_creates_snapshot_table(self):
        engine = build_engine("sqlite://")
        init_db(engine)
        assert "analytics_snapshots" in inspect(engine).get_table_names()
        engine.dispose()
