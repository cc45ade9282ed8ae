"""Certificate authority bootstrap that runs at most once per host."""

from enum import Enum
from pathlib import Path

from devstack_net.config import Settings
from devstack_net.gateway import EngineGateway
from devstack_net.models import BootstrapDescriptor
from devstack_net.utils import get_logger
from devstack_net.utils.exceptions import BootstrapError, ContainerConflictError, EngineError
from devstack_net.utils.metrics_collector import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

SETUP_SCRIPT = "setup-ca.sh"
PLATFORM_LABELS = {
    "io.devstack.container": "TRUE",
    "io.devstack.service-container": "TRUE",
}


class BootstrapState(str, Enum):
    """Lifecycle of the CA artifact on the host."""

    ARTIFACT_MISSING = "artifact_missing"
    BOOTSTRAP_RUNNING = "bootstrap_running"
    ARTIFACT_PRESENT = "artifact_present"


class BootstrapOutcome(str, Enum):
    """What a bootstrap check ended up doing."""

    ARTIFACT_PRESENT = "artifact_present"
    SELF_EXCLUDED = "self_excluded"
    ALREADY_RUNNING = "already_running"
    BOOTSTRAPPED = "bootstrapped"


def build_bootstrap_descriptor(settings: Settings) -> BootstrapDescriptor:
    """
    Describe the CA setup container for the configured platform instance.

    Args:
        settings: Orchestrator settings

    Returns:
        BootstrapDescriptor for the CA setup service
    """
    return BootstrapDescriptor(
        container_id=settings.bootstrap_container_name,
        project=settings.ca_project,
        service="ca",
        image=settings.ca_image,
        command=[f"/{SETUP_SCRIPT}"],
        environment={
            "DEVSTACK_CA_CERT": settings.ca_cert_name,
            "DEVSTACK_SERVICE_TYPE": "ca",
            "COLUMNS": "256",
            "TERM": "xterm",
        },
        volumes={
            str(settings.engine_scripts_dir / SETUP_SCRIPT): {
                "bind": f"/{SETUP_SCRIPT}",
                "mode": "ro",
            },
            str(settings.cert_dir): {"bind": "/certs", "mode": "rw"},
        },
        labels={
            **PLATFORM_LABELS,
            "com.docker.compose.project": settings.ca_project,
            "com.docker.compose.service": "ca",
        },
        auto_remove=True,
        attach=True,
    )


class BootstrapSingleton:
    """Makes sure the CA bootstrap container has produced the root certificate.

    The deterministic container name is the mutual-exclusion token: if a
    container with that name exists, another start is already bootstrapping.
    The bootstrap's own project is excluded so that starting the bootstrap
    container never triggers another bootstrap.
    """

    def __init__(
        self,
        settings: Settings,
        engine: EngineGateway,
        descriptor: BootstrapDescriptor | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.settings = settings
        self.engine = engine
        self.descriptor = descriptor or build_bootstrap_descriptor(settings)
        self.metrics = metrics or get_metrics_collector()

    @property
    def artifact_path(self) -> Path:
        """Host path whose existence means the bootstrap already ran."""
        return self.settings.ca_cert_path

    async def probe(self) -> BootstrapState:
        """Current bootstrap state from the host filesystem and the engine."""
        if self.artifact_path.exists():
            return BootstrapState.ARTIFACT_PRESENT
        if await self.engine.list_containers(name=self.descriptor.container_id):
            return BootstrapState.BOOTSTRAP_RUNNING
        return BootstrapState.ARTIFACT_MISSING

    async def ensure(self, project: str | None = None) -> BootstrapOutcome:
        """
        Run the CA bootstrap unless it already ran or is running.

        Args:
            project: Project whose start triggered the check

        Returns:
            BootstrapOutcome

        Raises:
            BootstrapError: If the bootstrap container fails
        """
        outcome = await self._ensure(project)
        self.metrics.record_bootstrap(outcome.value)
        return outcome

    async def _ensure(self, project: str | None) -> BootstrapOutcome:
        if self.descriptor.owns_project(project):
            return BootstrapOutcome.SELF_EXCLUDED
        state = await self.probe()
        if state is BootstrapState.ARTIFACT_PRESENT:
            return BootstrapOutcome.ARTIFACT_PRESENT

        name = self.descriptor.container_id
        if state is BootstrapState.BOOTSTRAP_RUNNING:
            logger.info("CA bootstrap already in progress", extra={"container": name})
            return BootstrapOutcome.ALREADY_RUNNING

        self.settings.cert_dir.mkdir(parents=True, exist_ok=True)
        logger.info(
            "Running CA bootstrap",
            extra={"container": name, "artifact": str(self.artifact_path)},
        )
        try:
            await self.engine.run_container(self.descriptor)
        except ContainerConflictError as e:
            await self._check_conflicting_container(e)
            logger.info("CA bootstrap started concurrently", extra={"container": name})
            return BootstrapOutcome.ALREADY_RUNNING
        except EngineError as e:
            logger.error("CA bootstrap failed", extra={"container": name, "error": str(e)})
            raise BootstrapError(name, e) from e

        if not self.artifact_path.exists():
            logger.warning(
                "CA bootstrap finished without producing the certificate",
                extra={"container": name, "artifact": str(self.artifact_path)},
            )
        else:
            logger.info("CA bootstrap completed", extra={"container": name})
        return BootstrapOutcome.BOOTSTRAPPED

    async def _check_conflicting_container(self, conflict: ContainerConflictError) -> None:
        """
        Make sure a name clash comes from a live bootstrap.

        A container left behind by an interrupted run keeps the name taken
        forever, so every later start would clash with it.

        Raises:
            BootstrapError: If the container holding the name is not running
        """
        name = self.descriptor.container_id
        containers = await self.engine.list_containers(name=name, all=True)
        if any(not container.running for container in containers):
            logger.error(
                "Stale CA bootstrap container blocks the bootstrap; remove it to retry",
                extra={"container": name},
            )
            raise BootstrapError(name, conflict) from conflict
