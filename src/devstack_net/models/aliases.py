"""DNS alias and reserved network naming rules."""

import re
from typing import FrozenSet, Iterable, Tuple

from devstack_net.config import Settings

INTERNAL_DOMAIN = "internal"

_PROJECT_NAME_RE = re.compile(r"[^a-z0-9_-]")


def normalize_project_name(name: str) -> str:
    """Normalize an app name the way compose normalizes project names."""
    return _PROJECT_NAME_RE.sub("", name.lower())


def default_network_name(app: str) -> str:
    """Name of the default network compose creates for ``app``."""
    return f"{normalize_project_name(app)}_default"


def internal_hostname(service: str, app: str) -> str:
    """Internal DNS name of ``service`` inside ``app``."""
    return ".".join([service, app, INTERNAL_DOMAIN])


def build_alias_set(service: str, app: str, proxies: Iterable | None = None) -> Tuple[str, ...]:
    """
    Compute the aliases a container gets on the shared bridge network.

    The internal hostname always comes first, followed by the proxy
    hostnames declared for the service. Blank, non-string and repeated
    entries are dropped.

    Args:
        service: Compose service name
        app: App (compose project) name
        proxies: Proxy hostnames declared for the service

    Returns:
        Ordered tuple of distinct aliases
    """
    aliases = [internal_hostname(service, app)]
    for hostname in proxies or ():
        if not isinstance(hostname, str):
            continue
        hostname = hostname.strip()
        if hostname and hostname not in aliases:
            aliases.append(hostname)
    return tuple(aliases)


def reserved_network_names(settings: Settings, apps: Iterable[str]) -> FrozenSet[str]:
    """
    Build the set of network names pruning must never touch.

    Must be recomputed on every pass since apps come and go.

    Args:
        settings: Orchestrator settings
        apps: Names of the currently known apps

    Returns:
        Reserved network names
    """
    reserved = set(settings.reserved_networks_list)
    reserved.add(settings.network_bridge)
    if settings.proxy_net:
        reserved.add(settings.proxy_net)
    reserved.update(default_network_name(app) for app in apps if app)
    return frozenset(reserved)
