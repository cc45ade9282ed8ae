"""Attaches app containers to the shared bridge network with stable DNS aliases."""

import asyncio
from dataclasses import dataclass, field
from typing import List, Tuple

from devstack_net.config import Settings
from devstack_net.gateway import EngineGateway
from devstack_net.models import AppContext, ContainerRecord, NetworkRecord, build_alias_set
from devstack_net.utils import get_logger
from devstack_net.utils.exceptions import EngineError, NotConnectedError, ReconciliationError
from devstack_net.utils.metrics_collector import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)


@dataclass
class AttachmentResult:
    """Outcome of attaching one container to the bridge network."""

    container: ContainerRecord
    aliases: Tuple[str, ...]
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ReconciliationReport:
    """Per-container outcome of a reconciliation pass."""

    network: str
    results: List[AttachmentResult] = field(default_factory=list)

    @property
    def connected(self) -> List[AttachmentResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[AttachmentResult]:
        return [r for r in self.results if not r.ok]

    @property
    def stats(self) -> dict:
        return {
            "discovered": len(self.results),
            "connected": len(self.connected),
            "errors": len(self.failed),
        }

    def raise_for_failures(self) -> None:
        """
        Raise if any container failed to attach.

        Raises:
            ReconciliationError: Naming the containers that failed
        """
        if self.failed:
            raise ReconciliationError(
                self.network, [r.container.name for r in self.failed]
            )


class ContainerNetworkReconciler:
    """Reconciles an app's containers with the shared bridge network.

    Every container is disconnected and reconnected so that its aliases
    always match the app's current proxy configuration. Calls already issued
    are never undone, a later start corrects any partial state.
    """

    def __init__(
        self,
        settings: Settings,
        engine: EngineGateway,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.settings = settings
        self.engine = engine
        self.metrics = metrics or get_metrics_collector()

    async def reconcile(self, app: AppContext) -> ReconciliationReport:
        """
        Attach every running container of ``app`` to the bridge network.

        Args:
            app: App whose containers just started

        Returns:
            ReconciliationReport with one result per container

        Raises:
            ReconciliationError: If the bridge network cannot be resolved
            EngineUnavailableError: If the app's containers cannot be listed
        """
        network_name = self.settings.network_bridge
        try:
            network = await self.engine.inspect_network(network_name)
        except EngineError as e:
            raise ReconciliationError(network_name, reason=str(e)) from e

        containers = await self.engine.list_containers(project=app.project_name)
        report = ReconciliationReport(network=network_name)
        if not containers:
            logger.info("No running containers to attach", extra={"app": app.name})
            return report

        semaphore = asyncio.Semaphore(self.settings.reconcile_concurrency)

        async def attach(container: ContainerRecord) -> AttachmentResult:
            async with semaphore:
                return await self._attach(app, network, container)

        report.results = list(await asyncio.gather(*(attach(c) for c in containers)))

        if report.failed:
            logger.error(
                "Some containers could not be attached to the bridge network",
                extra={
                    "app": app.name,
                    "network": network_name,
                    "containers": [r.container.name for r in report.failed],
                },
            )
        logger.info("Bridge network reconciliation completed", extra=report.stats)
        return report

    async def _attach(
        self, app: AppContext, network: NetworkRecord, container: ContainerRecord
    ) -> AttachmentResult:
        """
        Disconnect then reconnect a container with its current aliases.

        Args:
            app: App the container belongs to
            network: Resolved bridge network
            container: Container to attach

        Returns:
            AttachmentResult, carrying the error if the attach failed
        """
        service = container.service or container.name
        aliases = build_alias_set(
            service, container.app or app.project_name, app.proxy_hostnames(container.service)
        )
        result = AttachmentResult(container=container, aliases=aliases)

        try:
            try:
                await self.engine.disconnect(container.id, network.id)
            except NotConnectedError:
                pass
            await self.engine.connect(container.id, network.id, aliases)
        except EngineError as e:
            logger.error(
                "Failed to attach container to bridge network",
                extra={"container": container.name, "network": network.name, "error": str(e)},
            )
            result.error = e
            self.metrics.record_attachment("failed")
            return result

        self.metrics.record_attachment("connected")
        logger.info(
            f"Connected {container.name} to the bridge network",
            extra={"container": container.name, "network": network.name, "aliases": list(aliases)},
        )
        return result
