"""Settings and configuration management for devstack-net."""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Names docker itself creates and that must never be pruned
DEFAULT_RESERVED_NETWORKS = "bridge,host,none"


class Settings(BaseSettings):
    """Orchestrator settings loaded from environment variables.

    Settings are immutable once constructed and are handed to every
    component explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEVSTACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Platform identity
    instance: str = Field(
        default="",
        description="Instance suffix, lets several platform installs share one engine",
    )

    user_conf_root: Path = Field(
        default=Path.home() / ".devstack",
        description="Root directory for per-user platform configuration",
    )

    # Certificate authority bootstrap
    ca_cert_dir: Path | None = Field(
        default=None,
        description="Directory holding the CA artifacts (defaults to <user_conf_root>/certs)",
    )

    ca_cert_name: str = Field(
        default="devstack.pem",
        description="File name of the root CA certificate produced by the bootstrap",
    )

    ca_project_prefix: str = Field(
        default="devstackcasetup",
        description="Project name reserved for the CA bootstrap container",
    )

    ca_image: str = Field(
        default="devstack/util:stable",
        description="Image used to run the CA setup script",
    )

    engine_scripts_dir: Path = Field(
        default=Path.home() / ".devstack" / "scripts",
        description="Host directory containing setup-ca.sh",
    )

    # Networking
    network_bridge: str = Field(
        default="devstack_bridge_network",
        description="Name of the shared bridge network every app container joins",
    )

    network_driver: str = Field(
        default="bridge",
        description="Driver used when creating the shared bridge network",
    )

    proxy_net: str | None = Field(
        default=None,
        description="Optional reverse proxy network that must never be pruned",
    )

    reserved_networks: str = Field(
        default=DEFAULT_RESERVED_NETWORKS,
        description="Comma-separated list of engine networks that must never be pruned",
    )

    network_limit: int = Field(
        default=32,
        ge=1,
        description="Network count at which pruning kicks in",
    )

    prune_batch_size: int = Field(
        default=5,
        ge=1,
        description="Maximum number of networks removed in one pruning pass",
    )

    reconcile_concurrency: int = Field(
        default=4,
        ge=1,
        description="Maximum number of containers attached to the bridge network concurrently",
    )

    # Docker configuration
    docker_host: str | None = Field(
        default=None,
        description="Docker daemon host URL (defaults to Docker's standard detection)",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
    )

    @property
    def cert_dir(self) -> Path:
        """Directory holding the CA artifacts."""
        if self.ca_cert_dir is not None:
            return self.ca_cert_dir
        return self.user_conf_root / "certs"

    @property
    def ca_cert_path(self) -> Path:
        """Host path of the root CA certificate."""
        return self.cert_dir / self.ca_cert_name

    @property
    def ca_project(self) -> str:
        """Project name reserved for the CA bootstrap."""
        return f"{self.ca_project_prefix}{self.instance}"

    @property
    def bootstrap_container_name(self) -> str:
        """Deterministic name of the CA bootstrap container."""
        return "_".join([self.ca_project, "ca", "1"])

    @property
    def reserved_networks_list(self) -> List[str]:
        """Parse reserved network names into a list."""
        return [n.strip() for n in self.reserved_networks.split(",") if n.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
