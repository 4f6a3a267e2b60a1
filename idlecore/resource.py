from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ResourceType(str, Enum):
    """The closed set of resource kinds."""

    MONEY = "money"
    TECHNIQUE = "technique"
    RENOWN = "renown"


@dataclass(frozen=True)
class ResourceDef:
    """Static display definition of a resource."""

    id: str
    display_name: str = ""
    prefix: str = ""
    suffix: str = ""

    def decorate(self, formatted: str) -> str:
        return f"{self.prefix}{formatted}{self.suffix}"


RESOURCE_DEFS: dict[str, ResourceDef] = {
    ResourceType.MONEY.value: ResourceDef("money", "Money", prefix="$"),
    ResourceType.TECHNIQUE.value: ResourceDef("technique", "Technique", suffix=" TP"),
    ResourceType.RENOWN.value: ResourceDef("renown", "Renown", suffix=" RP"),
}

RESOURCE_IDS: tuple[str, ...] = tuple(r.value for r in ResourceType)


def resource_id(resource: ResourceType | str) -> str:
    """Normalise an enum member or plain string to the stored resource key."""
    if isinstance(resource, ResourceType):
        return resource.value
    return resource


def get_resource_def(resource: ResourceType | str) -> ResourceDef | None:
    return RESOURCE_DEFS.get(resource_id(resource))
