"""Data models for devstack-net."""

from .aliases import (
    build_alias_set,
    default_network_name,
    internal_hostname,
    normalize_project_name,
    reserved_network_names,
)
from .apps import AppContext
from .networks import BootstrapDescriptor, ContainerRecord, NetworkRecord

__all__ = [
    "AppContext",
    "BootstrapDescriptor",
    "ContainerRecord",
    "NetworkRecord",
    "build_alias_set",
    "default_network_name",
    "internal_hostname",
    "normalize_project_name",
    "reserved_network_names",
]
