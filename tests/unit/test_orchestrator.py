"""Tests for the lifecycle pipelines and NetworkOrchestrator."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from devstack_net.gateway import DockerEngineGateway, EngineAppCatalog, StaticAppCatalog
from devstack_net.managers import BootstrapOutcome
from devstack_net.models import AppContext
from devstack_net.orchestrator import (
    NetworkOrchestrator,
    StageContext,
    StagePipeline,
    create_orchestrator,
)
from devstack_net.utils.exceptions import (
    BootstrapError,
    ContainerRunError,
    EngineUnavailableError,
    ReconciliationError,
    StageError,
)


@pytest.fixture
def orchestrator(settings, engine, metrics):
    """Create an orchestrator over the fake engine."""
    return NetworkOrchestrator(settings, engine, StaticAppCatalog(["shop"]), metrics)


def recorder(calls, name, result=None):
    async def run(context):
        calls.append(name)
        return result

    return run


@pytest.mark.asyncio
async def test_pipeline_runs_in_priority_then_registration_order(settings, engine):
    """Test that stages run by priority and keep registration order on ties."""
    calls = []
    pipeline = (
        StagePipeline("test")
        .add("late", 3, recorder(calls, "late"))
        .add("second", 2, recorder(calls, "second"))
        .add("first", 1, recorder(calls, "first"))
        .add("third", 2, recorder(calls, "third"))
    )

    results = await pipeline.run(StageContext(settings=settings, engine=engine))

    assert calls == ["first", "second", "third", "late"]
    assert list(results) == ["first", "second", "third", "late"]


@pytest.mark.asyncio
async def test_pipeline_stops_at_first_failure(settings, engine):
    """Test that a failing stage is wrapped and later stages do not run."""
    calls = []
    failing = AsyncMock(side_effect=EngineUnavailableError())
    pipeline = (
        StagePipeline("test")
        .add("guard", 1, failing)
        .add("after", 2, recorder(calls, "after"))
    )

    with pytest.raises(StageError) as exc_info:
        await pipeline.run(StageContext(settings=settings, engine=engine))

    assert exc_info.value.stage == "guard"
    assert isinstance(exc_info.value.cause, EngineUnavailableError)
    assert calls == []


@pytest.mark.asyncio
async def test_pre_engine_start_prunes_then_creates_bridge(orchestrator, engine, settings):
    """Test that a full pre-start cycle prunes, ensures the bridge and bootstraps."""
    for i in range(32):
        engine.add_network(f"stale_{i}", age_minutes=i)

    results = await orchestrator.pre_engine_start("blog")

    assert list(results) == ["capacity-guard", "bridge-network", "bootstrap"]
    assert len(results["capacity-guard"].removed) == 5
    assert results["bridge-network"] is True
    assert results["bootstrap"] is BootstrapOutcome.BOOTSTRAPPED
    assert engine.network_by_name(settings.network_bridge) is not None
    assert engine.calls.index("remove_network") < engine.calls.index("create_network")


@pytest.mark.asyncio
async def test_pre_engine_start_for_bootstrap_project(orchestrator, engine, settings):
    """Test that starting the bootstrap project does not bootstrap again."""
    results = await orchestrator.pre_engine_start(settings.ca_project)

    assert results["bootstrap"] is BootstrapOutcome.SELF_EXCLUDED
    assert "run_container" not in engine.calls


@pytest.mark.asyncio
async def test_bootstrap_failure_fails_start(orchestrator, engine):
    """Test that a bootstrap failure surfaces from pre-start."""
    engine.run_container = AsyncMock(side_effect=ContainerRunError("ca_ca_1", 1))

    with pytest.raises(StageError) as exc_info:
        await orchestrator.pre_engine_start("blog")

    assert exc_info.value.stage == "bootstrap"
    assert isinstance(exc_info.value.cause, BootstrapError)


@pytest.mark.asyncio
async def test_post_start_attaches_app(orchestrator, engine, settings):
    """Test that post-start attaches the app's containers to the bridge."""
    bridge = engine.add_network(settings.network_bridge)
    engine.add_container("blog_web_1", "web", "blog")
    app = AppContext(name="blog", proxy={"web": ["blog.test"]})

    report = await orchestrator.post_start(app)

    assert report.stats["connected"] == 1
    assert engine.endpoints[bridge.id]["cid_blog_web_1"] == ("web.blog.internal", "blog.test")


@pytest.mark.asyncio
async def test_post_start_reports_missing_bridge(orchestrator):
    """Test that a missing bridge network fails post-start naming the network."""
    with pytest.raises(StageError) as exc_info:
        await orchestrator.post_start(AppContext(name="blog"))

    assert isinstance(exc_info.value.cause, ReconciliationError)


def test_post_info_adds_hostnames(orchestrator):
    """Test that post-info annotates service info."""
    info = orchestrator.post_info(AppContext(name="blog"), {"web": {}})

    assert info == {"web": {"hostnames": ["web.blog.internal"]}}


@pytest.mark.asyncio
async def test_post_info_hostnames_match_registered_aliases(orchestrator, engine, settings):
    """Test that advertised hostnames are the aliases on the bridge network."""
    bridge = engine.add_network(settings.network_bridge)
    engine.add_container("myblog_web_1", "web", "myblog")
    app = AppContext(name="My Blog")

    await orchestrator.post_start(app)
    info = orchestrator.post_info(app, {"web": {}})

    assert info == {"web": {"hostnames": ["web.myblog.internal"]}}
    assert info["web"]["hostnames"][0] in engine.endpoints[bridge.id]["cid_myblog_web_1"]


def test_create_orchestrator_uses_docker(settings, metrics):
    """Test that the factory wires a Docker gateway and an engine-backed catalog."""
    with patch(
        "devstack_net.orchestrator.get_docker_client", return_value=MagicMock()
    ) as get_client:
        orchestrator = create_orchestrator(settings=settings, metrics=metrics)

    get_client.assert_called_once_with(settings)
    assert isinstance(orchestrator.engine, DockerEngineGateway)
    assert isinstance(orchestrator.capacity_guard.app_catalog, EngineAppCatalog)


@pytest.mark.asyncio
async def test_engine_catalog_lists_projects(engine):
    """Test that the engine catalog reports compose projects."""
    engine.add_container("shop_web_1", "web", "shop")
    engine.add_container("blog_web_1", "web", "blog", running=False)

    assert await EngineAppCatalog(engine).list_apps() == ["blog", "shop"]
