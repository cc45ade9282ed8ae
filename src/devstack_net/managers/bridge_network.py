"""Ensures the shared bridge network exists."""

from devstack_net.config import Settings
from devstack_net.gateway import EngineGateway
from devstack_net.utils import get_logger
from devstack_net.utils.exceptions import NetworkAlreadyExistsError
from devstack_net.utils.metrics_collector import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

BRIDGE_NETWORK_LABELS = {"io.devstack.network": "bridge"}


class BridgeNetworkEnsurer:
    """Creates the shared bridge network if it is missing."""

    def __init__(
        self,
        settings: Settings,
        engine: EngineGateway,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.settings = settings
        self.engine = engine
        self.metrics = metrics or get_metrics_collector()

    async def ensure(self) -> bool:
        """
        Make sure the shared bridge network exists.

        Must run after the capacity guard in the same start cycle.

        Returns:
            True if the network was created by this call

        Raises:
            EngineError: If the network cannot be listed or created
        """
        name = self.settings.network_bridge
        networks = await self.engine.list_networks()
        if any(network.name == name for network in networks):
            logger.debug("Bridge network already exists", extra={"network": name})
            return False

        try:
            await self.engine.create_network(
                name, driver=self.settings.network_driver, labels=dict(BRIDGE_NETWORK_LABELS)
            )
        except NetworkAlreadyExistsError:
            # Another app start created it between our list and create
            logger.debug("Bridge network created concurrently", extra={"network": name})
            return False

        self.metrics.record_bridge_created()
        logger.info("Created bridge network", extra={"network": name})
        return True
