"""Prometheus metrics collection for devstack-net."""

from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)


class MetricsCollector:
    """Collects Prometheus metrics for network orchestration passes."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        """
        Initialize metrics collector with all metrics.

        Args:
            registry: Registry the metrics are registered with
        """
        self.registry = registry

        self.networks_pruned_total = Counter(
            "devstack_networks_pruned_total",
            "Total number of networks removed by the capacity guard",
            registry=registry,
        )

        self.network_prune_failures_total = Counter(
            "devstack_network_prune_failures_total",
            "Total number of network removals that failed",
            registry=registry,
        )

        self.bridge_network_created_total = Counter(
            "devstack_bridge_network_created_total",
            "Total number of times the shared bridge network was created",
            registry=registry,
        )

        self.bootstrap_total = Counter(
            "devstack_bootstrap_total",
            "CA bootstrap checks by outcome",
            ["outcome"],
            registry=registry,
        )

        self.container_attachments_total = Counter(
            "devstack_container_attachments_total",
            "Container attachments to the bridge network by status",
            ["status"],
            registry=registry,
        )

        self.network_count = Gauge(
            "devstack_network_count",
            "Number of engine networks seen by the last capacity check",
            registry=registry,
        )

    def record_prune(self, removed: int, failed: int) -> None:
        """
        Record the result of a pruning pass.

        Args:
            removed: Number of networks removed
            failed: Number of removals that failed
        """
        self.networks_pruned_total.inc(removed)
        self.network_prune_failures_total.inc(failed)

    def record_bridge_created(self) -> None:
        """Record a creation of the shared bridge network."""
        self.bridge_network_created_total.inc()

    def record_bootstrap(self, outcome: str) -> None:
        """Record a CA bootstrap check outcome."""
        self.bootstrap_total.labels(outcome=outcome).inc()

    def record_attachment(self, status: str) -> None:
        """
        Record a container attachment.

        Args:
            status: Attachment status (connected, failed)
        """
        self.container_attachments_total.labels(status=status).inc()

    def set_network_count(self, count: int) -> None:
        """Set the number of networks observed on the engine."""
        self.network_count.set(count)

    def get_metrics(self) -> bytes:
        """
        Get current metrics in Prometheus format.

        Returns:
            Metrics data in bytes
        """
        return generate_latest(self.registry)


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """
    Get the global metrics collector instance.

    Returns:
        MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
