"""
Resolves console locations (``domain/example.lol``, ``contact``, ``resources``)
into routes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from registrar_console.domains.epp.resources import RESOURCES, ResourceKind
from registrar_console.utils.logger import get_logger

logger = get_logger()

DEFAULT_PAGE = "dashboard"
STATIC_PAGES = frozenset({"dashboard", "resources", "contact-us", "whois-settings", "security-settings"})


@dataclass(frozen=True)
class StaticRoute:
    """A page with no registry object behind it."""

    name: str


@dataclass(frozen=True)
class ObjectRoute:
    """A page showing one registry object; an empty key means a new object."""

    resource: ResourceKind
    key: str = ""

    @property
    def is_new(self) -> bool:
        return not self.key

    @property
    def location(self) -> str:
        return f"{self.resource.name}/{self.key}" if self.key else self.resource.name


Route = Union[StaticRoute, ObjectRoute]


def resolve(location: str) -> Route:
    """Parse a location string into a route. Unknown locations fall back to the dashboard."""
    path = (location or "").strip().lstrip("#").strip("/")
    head, _, key = path.partition("/")
    if head in RESOURCES:
        return ObjectRoute(RESOURCES[head], key.strip())
    if not head:
        return StaticRoute(DEFAULT_PAGE)
    if head in STATIC_PAGES:
        return StaticRoute(head)
    logger.warning("Unknown console location %r; showing %s", location, DEFAULT_PAGE)
    return StaticRoute(DEFAULT_PAGE)
