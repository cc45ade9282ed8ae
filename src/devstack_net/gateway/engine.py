"""Container engine gateway.

The orchestrator talks to the engine only through :class:`EngineGateway`.
:class:`DockerEngineGateway` implements it on top of the Docker SDK and maps
SDK failures onto the typed errors in :mod:`devstack_net.utils.exceptions`,
so callers never need to inspect error messages.
"""

import asyncio
import re
from datetime import datetime
from typing import Iterable, List, Protocol

from docker import DockerClient
from docker.errors import APIError, ContainerError, DockerException, NotFound

from devstack_net.models import BootstrapDescriptor, ContainerRecord, NetworkRecord
from devstack_net.utils import get_logger
from devstack_net.utils.exceptions import (
    ContainerConflictError,
    ContainerNotFoundError,
    ContainerRunError,
    EngineError,
    EngineUnavailableError,
    NetworkAlreadyExistsError,
    NetworkNotFoundError,
    NotConnectedError,
)

logger = get_logger(__name__)

PROJECT_LABEL = "com.docker.compose.project"
SERVICE_LABEL = "com.docker.compose.service"

# Engine timestamps carry nanoseconds, datetime only takes microseconds
_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(?P<frac>\d+))?(?P<tz>Z|[+-]\d{2}:\d{2})?$"
)


def parse_engine_timestamp(value: str | None) -> datetime | None:
    """
    Parse an engine timestamp such as ``2024-05-01T10:20:30.123456789Z``.

    Returns:
        Timezone-aware datetime, or None when missing, unparsable or zero
    """
    if not value:
        return None
    match = _TIMESTAMP_RE.match(value)
    if not match:
        return None
    frac = (match.group("frac") or "")[:6].ljust(6, "0")
    tz = match.group("tz") or "Z"
    if tz == "Z":
        tz = "+00:00"
    try:
        parsed = datetime.fromisoformat(f"{match.group('base')}.{frac}{tz}")
    except ValueError:
        return None
    # Docker reports 0001-01-01T00:00:00Z when it does not know
    if parsed.year == 1:
        return None
    return parsed


class EngineGateway(Protocol):
    """Narrow interface over the container engine."""

    async def list_networks(self) -> List[NetworkRecord]: ...

    async def inspect_network(self, network_id: str) -> NetworkRecord: ...

    async def create_network(
        self, name: str, driver: str = "bridge", labels: dict | None = None
    ) -> NetworkRecord: ...

    async def remove_network(self, network_id: str) -> None: ...

    async def list_containers(
        self, project: str | None = None, name: str | None = None, all: bool = False
    ) -> List[ContainerRecord]: ...

    async def list_projects(self) -> List[str]: ...

    async def run_container(self, descriptor: BootstrapDescriptor) -> str: ...

    async def connect(self, container_id: str, network_id: str, aliases: Iterable[str]) -> None: ...

    async def disconnect(self, container_id: str, network_id: str) -> None: ...


def _is_not_connected(error: APIError) -> bool:
    explanation = str(error.explanation or error)
    return "is not connected to" in explanation


class DockerEngineGateway:
    """EngineGateway backed by the Docker SDK.

    SDK calls block, so each one runs in a worker thread.
    """

    def __init__(self, docker_client: DockerClient) -> None:
        self.docker_client = docker_client

    async def list_networks(self) -> List[NetworkRecord]:
        """
        List all engine networks.

        Raises:
            EngineUnavailableError: If the engine cannot list networks
        """
        return await asyncio.to_thread(self._list_networks)

    async def inspect_network(self, network_id: str) -> NetworkRecord:
        """
        Inspect a network, including its attached containers.

        Args:
            network_id: Network ID or name

        Raises:
            NetworkNotFoundError: If the network does not exist
        """
        return await asyncio.to_thread(self._inspect_network, network_id)

    async def create_network(
        self, name: str, driver: str = "bridge", labels: dict | None = None
    ) -> NetworkRecord:
        """
        Create a network.

        Raises:
            NetworkAlreadyExistsError: If a network with this name already exists
        """
        return await asyncio.to_thread(self._create_network, name, driver, labels)

    async def remove_network(self, network_id: str) -> None:
        """Remove a network."""
        await asyncio.to_thread(self._remove_network, network_id)

    async def list_containers(
        self, project: str | None = None, name: str | None = None, all: bool = False
    ) -> List[ContainerRecord]:
        """
        List containers, optionally restricted to a compose project or an exact name.

        Args:
            project: Compose project label to filter on
            name: Exact container name to filter on
            all: Include stopped containers
        """
        return await asyncio.to_thread(self._list_containers, project, name, all)

    async def list_projects(self) -> List[str]:
        """List the compose projects that own at least one container."""
        containers = await asyncio.to_thread(self._list_containers, None, None, True)
        return sorted({c.app for c in containers if c.app})

    async def run_container(self, descriptor: BootstrapDescriptor) -> str:
        """
        Run a one-shot container described by ``descriptor``.

        Returns:
            Container output when attached, otherwise the container ID

        Raises:
            ContainerConflictError: If a container with the same name exists
            ContainerRunError: If the container exits with a non-zero code
        """
        return await asyncio.to_thread(self._run_container, descriptor)

    async def connect(self, container_id: str, network_id: str, aliases: Iterable[str]) -> None:
        """Connect a container to a network with the given DNS aliases."""
        await asyncio.to_thread(self._connect, container_id, network_id, list(aliases))

    async def disconnect(self, container_id: str, network_id: str) -> None:
        """
        Disconnect a container from a network.

        Raises:
            NotConnectedError: If the container is not connected to the network
        """
        await asyncio.to_thread(self._disconnect, container_id, network_id)

    def _list_networks(self) -> List[NetworkRecord]:
        try:
            networks = self.docker_client.networks.list()
        except (DockerException, OSError) as e:
            logger.error("Failed to list networks", extra={"error": str(e)})
            raise EngineUnavailableError("Failed to list networks", e) from e
        return [self._to_network_record(n.attrs) for n in networks]

    def _inspect_network(self, network_id: str) -> NetworkRecord:
        try:
            network = self.docker_client.networks.get(network_id)
        except NotFound as e:
            raise NetworkNotFoundError(network_id, e) from e
        except APIError as e:
            raise EngineError(f"Failed to inspect network {network_id}", e) from e
        except (DockerException, OSError) as e:
            raise EngineUnavailableError(f"Failed to inspect network {network_id}", e) from e
        return self._to_network_record(network.attrs)

    def _create_network(self, name: str, driver: str, labels: dict | None) -> NetworkRecord:
        try:
            network = self.docker_client.networks.create(name, driver=driver, labels=labels or {})
        except APIError as e:
            if e.status_code == 409:
                raise NetworkAlreadyExistsError(name, e) from e
            raise EngineError(f"Failed to create network {name}", e) from e
        except (DockerException, OSError) as e:
            raise EngineUnavailableError(f"Failed to create network {name}", e) from e
        return self._to_network_record(network.attrs)

    def _remove_network(self, network_id: str) -> None:
        try:
            self.docker_client.api.remove_network(network_id)
        except NotFound as e:
            raise NetworkNotFoundError(network_id, e) from e
        except (DockerException, OSError) as e:
            raise EngineError(f"Failed to remove network {network_id}", e) from e

    def _list_containers(
        self, project: str | None, name: str | None, all: bool
    ) -> List[ContainerRecord]:
        filters: dict = {}
        if project:
            filters["label"] = [f"{PROJECT_LABEL}={project}"]
        if name:
            filters["name"] = name
        try:
            containers = self.docker_client.containers.list(all=all, filters=filters)
        except (DockerException, OSError) as e:
            logger.error("Failed to list containers", extra={"error": str(e)})
            raise EngineUnavailableError("Failed to list containers", e) from e

        records = []
        for container in containers:
            # The engine's name filter matches substrings
            if name and container.name != name:
                continue
            labels = container.labels or {}
            records.append(
                ContainerRecord(
                    id=container.id,
                    name=container.name,
                    service=labels.get(SERVICE_LABEL),
                    app=labels.get(PROJECT_LABEL),
                    running=container.status == "running",
                )
            )
        return records

    def _run_container(self, descriptor: BootstrapDescriptor) -> str:
        name = descriptor.container_id
        try:
            output = self.docker_client.containers.run(
                descriptor.image,
                descriptor.command or None,
                name=name,
                environment=descriptor.environment,
                volumes=descriptor.volumes,
                labels=descriptor.labels,
                remove=descriptor.auto_remove,
                detach=not descriptor.attach,
            )
        except ContainerError as e:
            raise ContainerRunError(name, e.exit_status, e) from e
        except APIError as e:
            if e.status_code == 409:
                raise ContainerConflictError(name, e) from e
            raise EngineError(f"Failed to run container {name}", e) from e
        except (DockerException, OSError) as e:
            raise EngineUnavailableError(f"Failed to run container {name}", e) from e

        if not descriptor.attach:
            return output.id
        if isinstance(output, bytes):
            return output.decode("utf-8", errors="replace")
        return str(output or "")

    def _connect(self, container_id: str, network_id: str, aliases: List[str]) -> None:
        try:
            self.docker_client.api.connect_container_to_network(
                container_id, network_id, aliases=aliases
            )
        except NotFound as e:
            raise ContainerNotFoundError(container_id, e) from e
        except (DockerException, OSError) as e:
            raise EngineError(
                f"Failed to connect {container_id} to network {network_id}", e
            ) from e

    def _disconnect(self, container_id: str, network_id: str) -> None:
        try:
            self.docker_client.api.disconnect_container_from_network(container_id, network_id)
        except APIError as e:
            if _is_not_connected(e):
                raise NotConnectedError(container_id, network_id, e) from e
            if isinstance(e, NotFound):
                raise ContainerNotFoundError(container_id, e) from e
            raise EngineError(
                f"Failed to disconnect {container_id} from network {network_id}", e
            ) from e
        except (DockerException, OSError) as e:
            raise EngineError(
                f"Failed to disconnect {container_id} from network {network_id}", e
            ) from e

    @staticmethod
    def _to_network_record(attrs: dict) -> NetworkRecord:
        return NetworkRecord(
            id=attrs.get("Id", ""),
            name=attrs.get("Name", ""),
            created_at=parse_engine_timestamp(attrs.get("Created")),
            containers=frozenset((attrs.get("Containers") or {}).keys()),
        )
