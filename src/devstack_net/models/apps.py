"""Application context handed to the lifecycle hooks."""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from .aliases import normalize_project_name


class AppContext(BaseModel):
    """An application whose containers are being started."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="App name")
    project: str | None = Field(None, description="Compose project name, derived from name")
    proxy: Dict[str, Any] = Field(
        default_factory=dict, description="Proxy hostnames declared per service"
    )

    @property
    def project_name(self) -> str:
        """Compose project the app's containers are labelled with."""
        return self.project or normalize_project_name(self.name)

    def proxy_hostnames(self, service: str | None) -> List:
        """Proxy hostnames declared for ``service``, empty when none."""
        if service is None:
            return []
        hostnames = self.proxy.get(service)
        if not isinstance(hostnames, list):
            return []
        return hostnames
