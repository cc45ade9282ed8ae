"""Shared connection to the Docker daemon."""

import docker
from docker import DockerClient
from docker.errors import DockerException

from devstack_net.config import Settings, get_settings
from devstack_net.utils import get_logger
from devstack_net.utils.exceptions import EngineUnavailableError

logger = get_logger(__name__)


def connect(settings: Settings) -> DockerClient:
    """
    Open a client for ``settings.docker_host``, or from the environment.

    Raises:
        EngineUnavailableError: If the daemon does not answer a ping
    """
    try:
        if settings.docker_host:
            client = docker.DockerClient(base_url=settings.docker_host)
        else:
            client = docker.from_env()
        client.ping()
    except DockerException as e:
        logger.error(
            "Container engine unreachable",
            extra={"docker_host": settings.docker_host or "env", "error": str(e)},
        )
        raise EngineUnavailableError(original_error=e) from e
    return client


class DockerClientManager:
    """Holds one lazily opened client."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._client: DockerClient | None = None

    def get_client(self) -> DockerClient:
        if self._client is None:
            self._client = connect(self.settings)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


_docker_manager: DockerClientManager | None = None


def get_docker_client(settings: Settings | None = None) -> DockerClient:
    """Process-wide client; ``settings`` only matter on the first call."""
    global _docker_manager
    if _docker_manager is None:
        _docker_manager = DockerClientManager(settings)
    return _docker_manager.get_client()


def close_docker_client() -> None:
    global _docker_manager
    if _docker_manager is not None:
        _docker_manager.close()
        _docker_manager = None
