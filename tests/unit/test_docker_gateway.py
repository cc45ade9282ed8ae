"""Tests for DockerEngineGateway."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from docker.errors import APIError, ContainerError, DockerException, NotFound

from devstack_net.gateway.engine import DockerEngineGateway, parse_engine_timestamp
from devstack_net.models import BootstrapDescriptor
from devstack_net.utils.exceptions import (
    ContainerConflictError,
    ContainerRunError,
    EngineError,
    EngineUnavailableError,
    NetworkAlreadyExistsError,
    NetworkNotFoundError,
    NotConnectedError,
)


def api_error(status_code: int, explanation: str) -> APIError:
    """Build an APIError as the Docker SDK raises it."""
    response = MagicMock()
    response.status_code = status_code
    return APIError(explanation, response=response, explanation=explanation)


def docker_network(**attrs):
    network = MagicMock()
    network.attrs = attrs
    return network


def docker_container(name, status="running", labels=None):
    container = MagicMock()
    container.id = f"id_{name}"
    container.name = name
    container.status = status
    container.labels = labels or {}
    return container


@pytest.fixture
def docker_client():
    """Create mock Docker client."""
    return MagicMock()


@pytest.fixture
def gateway(docker_client):
    """Create gateway over the mock client."""
    return DockerEngineGateway(docker_client)


@pytest.fixture
def descriptor():
    return BootstrapDescriptor(
        container_id="ca_ca_1", project="ca", image="devstack/util:stable", command=["/setup-ca.sh"]
    )


def test_parse_engine_timestamp():
    """Test parsing of engine timestamps with nanosecond precision."""
    parsed = parse_engine_timestamp("2024-05-01T10:20:30.123456789Z")

    assert parsed == datetime(2024, 5, 1, 10, 20, 30, 123456, tzinfo=timezone.utc)
    assert parse_engine_timestamp("2024-05-01T12:20:30+02:00") == datetime(
        2024, 5, 1, 10, 20, 30, tzinfo=timezone.utc
    )


@pytest.mark.parametrize("value", [None, "", "yesterday", "0001-01-01T00:00:00Z"])
def test_parse_engine_timestamp_unknown(value):
    """Test that missing or zero timestamps map to None."""
    assert parse_engine_timestamp(value) is None


@pytest.mark.asyncio
async def test_list_networks(gateway, docker_client):
    """Test that networks are converted to records."""
    docker_client.networks.list.return_value = [
        docker_network(Id="n1", Name="bridge", Created="2024-01-01T00:00:00Z", Containers={}),
        docker_network(Id="n2", Name="shop_default", Created="2024-01-02T00:00:00.5Z"),
    ]

    networks = await gateway.list_networks()

    assert [n.name for n in networks] == ["bridge", "shop_default"]
    assert networks[1].created_at == datetime(2024, 1, 2, 0, 0, 0, 500000, tzinfo=timezone.utc)
    assert not networks[1].in_use


@pytest.mark.asyncio
async def test_list_networks_engine_down(gateway, docker_client):
    """Test that a listing failure maps to EngineUnavailableError."""
    docker_client.networks.list.side_effect = DockerException("connection refused")

    with pytest.raises(EngineUnavailableError):
        await gateway.list_networks()


@pytest.mark.asyncio
async def test_inspect_network_reports_containers(gateway, docker_client):
    """Test that inspection returns attached containers."""
    docker_client.networks.get.return_value = docker_network(
        Id="n1", Name="lonely", Created="2024-01-01T00:00:00Z", Containers={"c1": {}, "c2": {}}
    )

    network = await gateway.inspect_network("n1")

    assert network.containers == {"c1", "c2"}
    assert network.in_use


@pytest.mark.asyncio
async def test_inspect_missing_network(gateway, docker_client):
    """Test that a missing network maps to NetworkNotFoundError."""
    docker_client.networks.get.side_effect = NotFound("no such network")

    with pytest.raises(NetworkNotFoundError):
        await gateway.inspect_network("gone")


@pytest.mark.asyncio
async def test_create_network_conflict(gateway, docker_client):
    """Test that a duplicate network name maps to NetworkAlreadyExistsError."""
    docker_client.networks.create.side_effect = api_error(
        409, "network with name devstack_bridge_network already exists"
    )

    with pytest.raises(NetworkAlreadyExistsError):
        await gateway.create_network("devstack_bridge_network")


@pytest.mark.asyncio
async def test_create_network_passes_driver_and_labels(gateway, docker_client):
    """Test that creation uses the requested driver and labels."""
    docker_client.networks.create.return_value = docker_network(Id="n9", Name="x")

    record = await gateway.create_network("x", driver="bridge", labels={"a": "b"})

    docker_client.networks.create.assert_called_once_with("x", driver="bridge", labels={"a": "b"})
    assert record.id == "n9"


@pytest.mark.asyncio
async def test_remove_network_failure(gateway, docker_client):
    """Test that removal failures map to EngineError."""
    docker_client.api.remove_network.side_effect = api_error(403, "network has active endpoints")

    with pytest.raises(EngineError):
        await gateway.remove_network("n1")


@pytest.mark.asyncio
async def test_list_containers_by_project(gateway, docker_client):
    """Test that containers are filtered by compose project and mapped to records."""
    docker_client.containers.list.return_value = [
        docker_container(
            "blog_web_1",
            labels={"com.docker.compose.project": "blog", "com.docker.compose.service": "web"},
        )
    ]

    containers = await gateway.list_containers(project="blog")

    docker_client.containers.list.assert_called_once_with(
        all=False, filters={"label": ["com.docker.compose.project=blog"]}
    )
    assert containers[0].service == "web"
    assert containers[0].app == "blog"
    assert containers[0].running


@pytest.mark.asyncio
async def test_list_containers_exact_name(gateway, docker_client):
    """Test that name filtering is exact even though the engine matches substrings."""
    docker_client.containers.list.return_value = [
        docker_container("ca_ca_1"),
        docker_container("ca_ca_10"),
    ]

    containers = await gateway.list_containers(name="ca_ca_1")

    assert [c.name for c in containers] == ["ca_ca_1"]


@pytest.mark.asyncio
async def test_list_projects(gateway, docker_client):
    """Test that projects are derived from compose labels of all containers."""
    docker_client.containers.list.return_value = [
        docker_container("a", labels={"com.docker.compose.project": "shop"}),
        docker_container("b", status="exited", labels={"com.docker.compose.project": "blog"}),
        docker_container("c", labels={"com.docker.compose.project": "shop"}),
        docker_container("d"),
    ]

    assert await gateway.list_projects() == ["blog", "shop"]


@pytest.mark.asyncio
async def test_run_container_attached(gateway, docker_client, descriptor):
    """Test that the bootstrap runs attached with auto-removal."""
    docker_client.containers.run.return_value = b"CA created\n"

    output = await gateway.run_container(descriptor)

    assert output == "CA created\n"
    kwargs = docker_client.containers.run.call_args.kwargs
    assert kwargs["name"] == "ca_ca_1"
    assert kwargs["remove"] is True
    assert kwargs["detach"] is False


@pytest.mark.asyncio
async def test_run_container_name_conflict(gateway, docker_client, descriptor):
    """Test that a name clash maps to ContainerConflictError."""
    docker_client.containers.run.side_effect = api_error(
        409, 'Conflict. The container name "/ca_ca_1" is already in use'
    )

    with pytest.raises(ContainerConflictError):
        await gateway.run_container(descriptor)


@pytest.mark.asyncio
async def test_run_container_nonzero_exit(gateway, docker_client, descriptor):
    """Test that a failing container maps to ContainerRunError."""
    docker_client.containers.run.side_effect = ContainerError(
        MagicMock(), 2, "/setup-ca.sh", "devstack/util:stable", b"openssl failed"
    )

    with pytest.raises(ContainerRunError) as exc_info:
        await gateway.run_container(descriptor)

    assert exc_info.value.exit_code == 2


@pytest.mark.asyncio
async def test_connect_with_aliases(gateway, docker_client):
    """Test that aliases are passed to the engine."""
    await gateway.connect("c1", "n1", ("web.blog.internal", "blog.test"))

    docker_client.api.connect_container_to_network.assert_called_once_with(
        "c1", "n1", aliases=["web.blog.internal", "blog.test"]
    )


@pytest.mark.asyncio
async def test_disconnect_not_connected(gateway, docker_client):
    """Test that the engine's not-connected response maps to NotConnectedError."""
    docker_client.api.disconnect_container_from_network.side_effect = api_error(
        403, "container c1 is not connected to network devstack_bridge_network"
    )

    with pytest.raises(NotConnectedError):
        await gateway.disconnect("c1", "n1")


@pytest.mark.asyncio
async def test_disconnect_other_error(gateway, docker_client):
    """Test that other disconnect failures are plain engine errors."""
    docker_client.api.disconnect_container_from_network.side_effect = api_error(
        500, "internal server error"
    )

    with pytest.raises(EngineError) as exc_info:
        await gateway.disconnect("c1", "n1")

    assert not isinstance(exc_info.value, NotConnectedError)
