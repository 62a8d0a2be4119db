"""Default route resolver and application lookup."""

from collections.abc import Mapping
from urllib.parse import quote

# Characters encodeURIComponent leaves alone besides quote()'s defaults.
_COMPONENT_SAFE = "!*'()"


class Routes:
    """Builds the dashboard's navigable view paths."""

    def get_nodes_view_path(self) -> str:
        return "/nodes"

    def get_node_view_path(self, node_name: str) -> str:
        return f"/node/{self.double_encode(node_name)}"

    def get_apps_view_path(self) -> str:
        return "/apps"

    def double_encode(self, segment: str) -> str:
        """Encode a path segment twice, so it survives one decode by the router."""
        return quote(quote(segment, safe=_COMPONENT_SAFE), safe=_COMPONENT_SAFE)


class ApplicationDirectory:
    """In-memory application name -> application type name lookup.

    Names are stored without the ``fabric:/`` scheme prefix.
    """

    def __init__(self, type_names: Mapping[str, str] | None = None) -> None:
        self._type_names: dict[str, str] = {}
        for name, type_name in (type_names or {}).items():
            self.add(name, type_name)

    def add(self, app_name: str, type_name: str) -> None:
        self._type_names[app_name.removeprefix("fabric:/")] = type_name

    def find_type_name(self, app_name: str) -> str | None:
        return self._type_names.get(app_name.removeprefix("fabric:/"))
