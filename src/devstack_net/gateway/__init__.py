"""Container engine gateway for devstack-net."""

from .catalog import AppCatalog, EngineAppCatalog, StaticAppCatalog
from .engine import DockerEngineGateway, EngineGateway, parse_engine_timestamp

__all__ = [
    "AppCatalog",
    "DockerEngineGateway",
    "EngineAppCatalog",
    "EngineGateway",
    "StaticAppCatalog",
    "parse_engine_timestamp",
]
