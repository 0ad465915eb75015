"""Introspection of the application's route table.

Every privileged route declares its role allowlist through ``require_roles``;
this module reads those declarations back so the table can be listed (the
404 response does) and checked in tests without going through HTTP.

The table is read from the routers the application includes, not from
``app.routes``: depending on the FastAPI release, an included router shows up
there either flattened into its routes or as a single nested entry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, List, Optional

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute

_PATH_PARAM_RE = re.compile(r"\{(\w+)(?::\w+)?\}")


@dataclass(frozen=True)
class RouteSpec:
    method: str
    path: str
    name: str
    roles: Optional[FrozenSet[str]]

    @property
    def display_path(self) -> str:
        """``/api/admin/teams/{team_id:objectid}`` -> ``/api/admin/teams/:team_id``"""
        return _PATH_PARAM_RE.sub(r":\1", self.path)

    def describe(self) -> str:
        return f"{self.display_path} ({self.method})"


def include_routers(app: FastAPI, routers: Iterable[APIRouter]) -> None:
    """Mount ``routers`` and remember them for ``route_table``."""
    included = list(getattr(app.state, "routers", []))
    for router in routers:
        app.include_router(router)
        included.append(router)
    app.state.routers = included


def _route_roles(route: APIRoute) -> Optional[FrozenSet[str]]:
    for dependency in route.dependant.dependencies:
        roles = getattr(dependency.call, "allowed_roles", None)
        if roles is not None:
            return roles
    return None


def _api_routes(app: FastAPI) -> Iterator[APIRoute]:
    for router in getattr(app.state, "routers", []):
        for route in router.routes:
            if isinstance(route, APIRoute):
                yield route


def route_table(app: FastAPI) -> List[RouteSpec]:
    table = []
    seen = set()
    for route in _api_routes(app):
        if not route.include_in_schema:
            continue
        roles = _route_roles(route)
        for method in sorted(route.methods):
            if (method, route.path) in seen:
                continue
            seen.add((method, route.path))
            table.append(RouteSpec(method=method, path=route.path, name=route.name, roles=roles))
    return table


def find_route(app: FastAPI, method: str, path: str) -> Optional[RouteSpec]:
    for route in route_table(app):
        if route.method == method.upper() and route.path == path:
            return route
    return None
