"""Tests for configuration loading, the exception hierarchy and the JSON log formatter."""
from __future__ import annotations

import json
import logging
import os
import unittest
from unittest.mock import patch

from salonbook.config import PostgresConfig, SchedulingConfig, load_scheduling_config
from salonbook.core.exceptions import (
    CollaboratorError,
    ProjectError,
    StockError,
    ValidationError,
)
from salonbook.core.logger import JsonFormatter, LoggerConfig


class TestSchedulingConfig(unittest.TestCase):
    def test_defaults(self):
        config = SchedulingConfig()
        self.assertEqual((config.open_hour, config.close_hour), (8, 20))
        self.assertEqual(config.closed_weekdays, frozenset({6}))
        self.assertEqual(config.hours_label, "8h às 20h")
        self.assertEqual(config.fallback_duration_minutes, 60)

    def test_from_env(self):
        env = {
            "SCHEDULE_OPEN_HOUR": "9",
            "SCHEDULE_CLOSE_HOUR": "18",
            "SCHEDULE_CLOSED_WEEKDAYS": "5, 6",
            "SCHEDULE_TIMEZONE": "UTC",
        }
        with patch.dict(os.environ, env, clear=False):
            config = load_scheduling_config()
        self.assertEqual(config.open_hour, 9)
        self.assertEqual(config.closed_weekdays, frozenset({5, 6}))
        self.assertEqual(config.timezone, "UTC")

    def test_overrides_beat_env(self):
        with patch.dict(os.environ, {"SCHEDULE_SLOT_MINUTES": "15"}, clear=False):
            config = load_scheduling_config(slot_minutes=60)
        self.assertEqual(config.slot_minutes, 60)

    def test_invalid_values(self):
        for kwargs in (
            {"open_hour": 20, "close_hour": 8},
            {"slot_minutes": 0},
            {"slot_minutes": 25},
            {"closed_weekdays": frozenset({7})},
            {"timezone": "Mars/Olympus_Mons"},
        ):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValueError):
                    SchedulingConfig(**kwargs)


class TestPostgresConfig(unittest.TestCase):
    def test_async_url(self):
        config = PostgresConfig(url="postgresql://u:p@db/salonbook")
        self.assertEqual(config.async_url, "postgresql+asyncpg://u:p@db/salonbook")

    def test_rejects_other_schemes(self):
        with self.assertRaises(ValueError):
            PostgresConfig(url="mysql://db/salonbook")


class TestErrors(unittest.TestCase):
    def test_to_dict_hides_cause_by_default(self):
        err = CollaboratorError("db down", cause=RuntimeError("socket closed"))
        payload = err.to_dict()
        self.assertEqual(payload["code"], "COLLABORATOR_ERROR")
        self.assertEqual(payload["http_status"], 502)
        self.assertNotIn("cause", payload)
        self.assertIn("cause_traceback", err.to_dict(include_cause=True))

    def test_field_error(self):
        err = ValidationError.for_field("notes", "Observações muito longas")
        self.assertEqual(err.fields, {"notes": "Observações muito longas"})
        self.assertEqual(err.http_status, 400)

    def test_stock_error_details(self):
        err = StockError("Estoque insuficiente para o produto Gel", product_id=4, product_name="Gel")
        self.assertEqual(err.details, {"product_id": 4, "product_name": "Gel"})
        self.assertEqual(err.http_status, 409)

    def test_response_body_has_no_status_or_cause(self):
        err = CollaboratorError("db down", cause=RuntimeError("socket closed"))
        self.assertEqual(
            err.response_body(),
            {"message": "db down", "code": "COLLABORATOR_ERROR", "details": {}},
        )

    def test_base_defaults(self):
        err = ProjectError("falhou")
        self.assertEqual((err.code, err.http_status), ("ERROR", 500))
        self.assertEqual(str(err), "falhou")


class TestLogging(unittest.TestCase):
    def test_json_formatter_promotes_context(self):
        record = logging.LogRecord("salonbook.test", logging.INFO, __file__, 1, "criado %s", (42,), None)
        record.appointment_id = 42
        record.company_id = 1
        payload = json.loads(JsonFormatter().format(record))
        self.assertEqual(payload["message"], "criado 42")
        self.assertEqual(payload["appointment_id"], 42)
        self.assertEqual(payload["company_id"], 1)
        self.assertNotIn("professional_id", payload)

    def test_logger_config_from_env(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug", "LOG_CONSOLE": "no"}, clear=False):
            config = LoggerConfig.from_env()
        self.assertEqual(config.level, "DEBUG")
        self.assertFalse(config.console)

    def test_rejects_unknown_level(self):
        with self.assertRaises(ValueError):
            LoggerConfig(level="LOUD")


if __name__ == "__main__":
    unittest.main()
