"""Sources of the currently known apps."""

from typing import Iterable, List, Protocol

from .engine import EngineGateway


class AppCatalog(Protocol):
    """Lists the names of the apps known to the platform."""

    async def list_apps(self) -> List[str]: ...


class StaticAppCatalog:
    """Catalog over a fixed list of app names."""

    def __init__(self, apps: Iterable[str] = ()) -> None:
        self._apps = list(apps)

    async def list_apps(self) -> List[str]:
        return list(self._apps)


class EngineAppCatalog:
    """Catalog derived from the compose projects that own containers on the engine."""

    def __init__(self, engine: EngineGateway) -> None:
        self.engine = engine

    async def list_apps(self) -> List[str]:
        return await self.engine.list_projects()
