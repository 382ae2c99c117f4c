"""
Project logger: console + optional rotating JSON file.

Usage:
    from salonbook.core.logger import get_logger, configure, LoggerConfig

    # Configure once at startup (optional; from_env() if not called)
    configure(LoggerConfig(level="DEBUG", log_dir="/var/log/salonbook"))

    logger = get_logger(__name__)
    logger.info("Agendamento criado", extra={"appointment_id": 42, "company_id": 1})

Booking context passed through ``extra`` (company_id, professional_id,
appointment_id, action) is emitted as top-level keys by the JSON formatter.
"""
from salonbook.core.logger.config import LoggerConfig
from salonbook.core.logger.formatters import CONTEXT_KEYS, JsonFormatter, PlainConsoleFormatter
from salonbook.core.logger.setup import (
    build_console_handler,
    build_rotating_file_handler,
    configure,
    get_logger,
)

__all__ = [
    "CONTEXT_KEYS",
    "LoggerConfig",
    "JsonFormatter",
    "PlainConsoleFormatter",
    "configure",
    "get_logger",
    "build_rotating_file_handler",
    "build_console_handler",
]
