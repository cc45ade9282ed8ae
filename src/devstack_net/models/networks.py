"""Engine resource views used by the orchestrator."""

from datetime import datetime
from typing import Dict, FrozenSet, List

from pydantic import BaseModel, ConfigDict, Field


class NetworkRecord(BaseModel):
    """A network as reported by the engine.

    Records are only valid for the pass that produced them and are never
    cached across passes.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Engine network ID")
    name: str = Field(..., description="Network name (not unique at runtime)")
    created_at: datetime | None = Field(None, description="Creation timestamp, if known")
    containers: FrozenSet[str] = Field(
        default_factory=frozenset, description="IDs of attached containers"
    )

    @property
    def in_use(self) -> bool:
        """Whether any container is attached to the network."""
        return bool(self.containers)


class ContainerRecord(BaseModel):
    """Read-only view of an app container."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Engine container ID")
    name: str = Field(..., description="Container name")
    service: str | None = Field(None, description="Compose service the container runs")
    app: str | None = Field(None, description="Compose project the container belongs to")
    running: bool = Field(default=True, description="Whether the container is running")


class BootstrapDescriptor(BaseModel):
    """Everything needed to run the one-shot CA bootstrap container.

    The container name doubles as the singleton token: the engine refuses to
    create a second container with the same name.
    """

    model_config = ConfigDict(frozen=True)

    container_id: str = Field(..., description="Deterministic container name")
    project: str = Field(..., description="Project name reserved for the bootstrap")
    service: str = Field(default="ca", description="Service name inside the project")
    image: str = Field(..., description="Image running the setup script")
    command: List[str] = Field(default_factory=list, description="Command to run")
    environment: Dict[str, str] = Field(default_factory=dict)
    volumes: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    labels: Dict[str, str] = Field(default_factory=dict)
    auto_remove: bool = Field(default=True, description="Remove the container once it exits")
    attach: bool = Field(default=True, description="Block until the container exits")

    def owns_project(self, project: str | None) -> bool:
        """Whether ``project`` is the bootstrap's own reserved project."""
        return project is not None and project == self.project
