"""Adds internal hostnames to reported app service info."""

import copy
from typing import Any

from devstack_net.models import internal_hostname


def _annotate(entry: Any, service: Any, app_name: str) -> Any:
    if not isinstance(entry, dict) or not isinstance(service, str) or not service:
        return entry
    hostnames = entry.get("hostnames")
    if hostnames is None:
        hostnames = []
    elif not isinstance(hostnames, list):
        return entry

    annotated = copy.deepcopy(entry)
    hostname = internal_hostname(service, app_name)
    annotated["hostnames"] = list(hostnames)
    if hostname not in annotated["hostnames"]:
        annotated["hostnames"].append(hostname)
    return annotated


def annotate_hostnames(app_name: str, info: Any) -> Any:
    """
    Return a copy of ``info`` with each service's internal hostname added.

    ``info`` is either a mapping of service name to entry, or a list of
    entries carrying a ``service`` key. Malformed entries are passed through.

    Args:
        app_name: App the services belong to
        info: Service info as reported for the app

    Returns:
        Annotated copy of ``info``
    """
    if isinstance(info, dict):
        return {service: _annotate(entry, service, app_name) for service, entry in info.items()}
    if isinstance(info, list):
        return [
            _annotate(entry, entry.get("service") if isinstance(entry, dict) else None, app_name)
            for entry in info
        ]
    return info
