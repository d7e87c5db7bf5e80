"""
Service config: frozen dataclasses loaded from env.

Load from env: load_guidance_config(), load_postgres_config().
"""
from guidance.config.guidance import GuidanceConfig, load_guidance_config
from guidance.config.postgres import PostgresConfig, load_postgres_config

__all__ = [
    "GuidanceConfig",
    "load_guidance_config",
    "PostgresConfig",
    "load_postgres_config",
]
