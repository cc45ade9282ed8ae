"""Lifecycle pipelines that drive the network orchestration components."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List

from devstack_net.config import Settings, get_settings
from devstack_net.gateway import (
    AppCatalog,
    DockerEngineGateway,
    EngineAppCatalog,
    EngineGateway,
)
from devstack_net.managers import (
    BootstrapSingleton,
    BridgeNetworkEnsurer,
    ContainerNetworkReconciler,
    NetworkCapacityGuard,
    ReconciliationReport,
    annotate_hostnames,
)
from devstack_net.models import AppContext
from devstack_net.utils import get_logger
from devstack_net.utils.docker_client import get_docker_client
from devstack_net.utils.exceptions import StageError
from devstack_net.utils.metrics_collector import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

PRE_ENGINE_START = "pre-engine-start"
POST_START = "post-start"


@dataclass(frozen=True)
class StageContext:
    """Everything a stage may look at."""

    settings: Settings
    engine: EngineGateway
    project: str | None = None
    app: AppContext | None = None


StageFunc = Callable[[StageContext], Awaitable[Any]]


@dataclass(frozen=True)
class Stage:
    """A named step of a lifecycle pipeline."""

    name: str
    priority: int
    run: StageFunc


@dataclass
class StagePipeline:
    """Runs stages one after another in priority order.

    Stages with equal priority run in registration order. The first failing
    stage stops the pipeline.
    """

    event: str
    stages: List[Stage] = field(default_factory=list)

    def add(self, name: str, priority: int, run: StageFunc) -> "StagePipeline":
        self.stages.append(Stage(name=name, priority=priority, run=run))
        return self

    def ordered(self) -> List[Stage]:
        # sorted() is stable, so ties keep registration order
        return sorted(self.stages, key=lambda stage: stage.priority)

    async def run(self, context: StageContext) -> Dict[str, Any]:
        """
        Run every stage against ``context``.

        Returns:
            Mapping of stage name to the stage's result

        Raises:
            StageError: Wrapping the first stage failure
        """
        results: Dict[str, Any] = {}
        for stage in self.ordered():
            logger.debug("Running lifecycle stage", extra={"event": self.event, "stage": stage.name})
            try:
                results[stage.name] = await stage.run(context)
            except Exception as e:
                logger.error(
                    "Lifecycle stage failed",
                    extra={"event": self.event, "stage": stage.name, "error": str(e)},
                )
                raise StageError(stage.name, e) from e
        return results


class NetworkOrchestrator:
    """Wires the orchestration components into the platform lifecycle."""

    def __init__(
        self,
        settings: Settings,
        engine: EngineGateway,
        app_catalog: AppCatalog,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.settings = settings
        self.engine = engine
        metrics = metrics or get_metrics_collector()

        self.capacity_guard = NetworkCapacityGuard(settings, engine, app_catalog, metrics)
        self.bridge_network = BridgeNetworkEnsurer(settings, engine, metrics)
        self.bootstrap = BootstrapSingleton(settings, engine, metrics=metrics)
        self.reconciler = ContainerNetworkReconciler(settings, engine, metrics)

        self.pre_start_pipeline = (
            StagePipeline(PRE_ENGINE_START)
            .add("capacity-guard", 1, lambda ctx: self.capacity_guard.run())
            .add("bridge-network", 2, lambda ctx: self.bridge_network.ensure())
            .add("bootstrap", 2, lambda ctx: self.bootstrap.ensure(ctx.project))
        )
        self.post_start_pipeline = StagePipeline(POST_START).add(
            "reconciler", 1, lambda ctx: self.reconciler.reconcile(ctx.app)
        )

    async def pre_engine_start(self, project: str | None = None) -> Dict[str, Any]:
        """
        Prepare the engine before a project's containers start.

        Args:
            project: Project about to start

        Returns:
            Results keyed by stage name

        Raises:
            StageError: If pruning, bridge creation or the bootstrap fails
        """
        context = StageContext(settings=self.settings, engine=self.engine, project=project)
        return await self.pre_start_pipeline.run(context)

    async def post_start(self, app: AppContext) -> ReconciliationReport:
        """
        Attach a freshly started app to the bridge network.

        Per-container failures are reported, not raised.

        Raises:
            StageError: If the bridge network or the app containers cannot be resolved
        """
        context = StageContext(
            settings=self.settings, engine=self.engine, project=app.project_name, app=app
        )
        results = await self.post_start_pipeline.run(context)
        return results["reconciler"]

    def post_info(self, app: AppContext, info: Any) -> Any:
        """Add internal hostnames to the info reported for ``app``.

        Uses the normalized project name so the hostnames match the aliases
        registered on the bridge network.
        """
        return annotate_hostnames(app.project_name, info)


def create_orchestrator(
    settings: Settings | None = None,
    engine: EngineGateway | None = None,
    app_catalog: AppCatalog | None = None,
    metrics: MetricsCollector | None = None,
) -> NetworkOrchestrator:
    """
    Build an orchestrator, connecting to Docker when no engine is given.

    Args:
        settings: Settings, loaded from the environment when omitted
        engine: Engine gateway, a Docker gateway when omitted
        app_catalog: Known apps, derived from the engine when omitted
        metrics: Metrics collector, the global one when omitted

    Returns:
        NetworkOrchestrator
    """
    settings = settings or get_settings()
    if engine is None:
        engine = DockerEngineGateway(get_docker_client(settings))
    if app_catalog is None:
        app_catalog = EngineAppCatalog(engine)
    return NetworkOrchestrator(settings, engine, app_catalog, metrics)
