"""
Application config, loaded from env.

load_postgres_config(), load_scheduling_config().
"""
from salonbook.config.postgres import PostgresConfig, load_postgres_config
from salonbook.config.scheduling import SchedulingConfig, load_scheduling_config

__all__ = [
    "PostgresConfig",
    "load_postgres_config",
    "SchedulingConfig",
    "load_scheduling_config",
]
