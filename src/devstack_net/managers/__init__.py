"""Manager modules for network orchestration."""

from .bootstrap import (
    BootstrapOutcome,
    BootstrapSingleton,
    BootstrapState,
    build_bootstrap_descriptor,
)
from .bridge_network import BridgeNetworkEnsurer
from .capacity_guard import NetworkCapacityGuard, PruneReport
from .hostname_annotator import annotate_hostnames
from .network_reconciler import (
    AttachmentResult,
    ContainerNetworkReconciler,
    ReconciliationReport,
)

__all__ = [
    "AttachmentResult",
    "BootstrapOutcome",
    "BootstrapSingleton",
    "BootstrapState",
    "BridgeNetworkEnsurer",
    "ContainerNetworkReconciler",
    "NetworkCapacityGuard",
    "PruneReport",
    "ReconciliationReport",
    "annotate_hostnames",
    "build_bootstrap_descriptor",
]
