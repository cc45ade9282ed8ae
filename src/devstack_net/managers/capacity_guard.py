"""Network capacity guard that prunes old, unused networks near the engine limit."""

from dataclasses import dataclass, field
from typing import FrozenSet, List

from devstack_net.config import Settings
from devstack_net.gateway import AppCatalog, EngineGateway
from devstack_net.models import NetworkRecord, reserved_network_names
from devstack_net.utils import get_logger
from devstack_net.utils.exceptions import EngineError, EngineUnavailableError
from devstack_net.utils.metrics_collector import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)


@dataclass
class PruneReport:
    """Result of a pruning pass."""

    network_count: int
    limit: int
    reserved: FrozenSet[str] = frozenset()
    candidates: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def triggered(self) -> bool:
        """Whether the network count reached the limit."""
        return self.network_count >= self.limit


def _age_key(network: NetworkRecord) -> tuple:
    # Ties on creation time are broken by id so the selection is deterministic
    return (network.created_at, network.id)


class NetworkCapacityGuard:
    """Keeps the engine below its hard network limit.

    When the limit is reached, removes the oldest networks that are neither
    reserved nor in use, at most ``prune_batch_size`` per pass. Repeated
    passes converge below the limit.
    """

    def __init__(
        self,
        settings: Settings,
        engine: EngineGateway,
        app_catalog: AppCatalog,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.settings = settings
        self.engine = engine
        self.app_catalog = app_catalog
        self.metrics = metrics or get_metrics_collector()

    async def run(self) -> PruneReport:
        """
        Run one pruning pass.

        Returns:
            PruneReport describing what was removed

        Raises:
            EngineUnavailableError: If networks cannot be listed or inspected
        """
        networks = await self.engine.list_networks()
        report = PruneReport(network_count=len(networks), limit=self.settings.network_limit)
        self.metrics.set_network_count(report.network_count)

        if not report.triggered:
            logger.debug(
                "Network count below limit",
                extra={"count": report.network_count, "limit": report.limit},
            )
            return report

        logger.warning(
            "Network limit reached on the container engine",
            extra={"count": report.network_count, "limit": report.limit},
        )
        logger.warning("Cleaning up old networks to make space")

        report.reserved = reserved_network_names(
            self.settings, await self.app_catalog.list_apps()
        )
        candidates = [n for n in networks if n.name not in report.reserved]

        prunable = []
        for network in candidates:
            inspected = await self._inspect(network)
            if inspected is not None:
                prunable.append(inspected)

        selected = sorted(prunable, key=_age_key)[: self.settings.prune_batch_size]
        report.candidates = [n.id for n in selected]

        for network in selected:
            logger.warning(
                "Removing old network",
                extra={"network_id": network.id, "network_name": network.name},
            )
            try:
                await self.engine.remove_network(network.id)
                report.removed.append(network.id)
            except EngineError as e:
                logger.error(
                    "Failed to remove network",
                    extra={"network_id": network.id, "error": str(e)},
                )
                report.failed.append(network.id)

        self.metrics.record_prune(len(report.removed), len(report.failed))
        logger.info(
            "Network pruning completed",
            extra={"removed": len(report.removed), "failed": len(report.failed)},
        )
        return report

    async def _inspect(self, network: NetworkRecord) -> NetworkRecord | None:
        """
        Inspect a candidate and return it only if it is safe to remove.

        Args:
            network: Network from the listing

        Returns:
            Inspected network, or None when it must be skipped
        """
        try:
            inspected = await self.engine.inspect_network(network.id)
        except EngineUnavailableError:
            raise
        except EngineError as e:
            logger.info(
                "Skipping network that could not be inspected",
                extra={"network_id": network.id, "error": str(e)},
            )
            return None

        if inspected.in_use:
            logger.debug("Skipping network in use", extra={"network_id": network.id})
            return None
        if inspected.created_at is None:
            logger.debug(
                "Skipping network without creation time", extra={"network_id": network.id}
            )
            return None
        return inspected
