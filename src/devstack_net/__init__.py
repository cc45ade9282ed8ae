"""devstack-net: network orchestration for local multi-project dev platforms."""

from devstack_net.orchestrator import NetworkOrchestrator, create_orchestrator

__version__ = "0.1.0"

__all__ = ["NetworkOrchestrator", "create_orchestrator", "__version__"]
