"""Capability registry."""

from collections.abc import Iterable, Iterator
from types import MappingProxyType

from makilab.domain.entities.capability import Capability
from makilab.domain.entities.qualified_name import BRIDGE_PREFIX, CAPABILITY_SEPARATOR
from makilab.domain.exceptions import CapabilityRegistrationError


class CapabilityRegistry:
    """Immutable table of capabilities keyed by name.

    Built once at startup. Names are validated here so that a qualified
    name can always be split on its first separator.
    """

    def __init__(self, capabilities: Iterable[Capability] = ()) -> None:
        """Initialize the registry.

        Args:
            capabilities: Capabilities to register, in display order.

        Raises:
            CapabilityRegistrationError: A name is empty, duplicated,
                contains the separator or starts with the bridge prefix.
        """
        table: dict[str, Capability] = {}
        for capability in capabilities:
            name = capability.name
            if not name:
                raise CapabilityRegistrationError(name, "Capability name is empty")
            if CAPABILITY_SEPARATOR in name:
                raise CapabilityRegistrationError(
                    name,
                    f"Capability name {name!r} contains the separator "
                    f"{CAPABILITY_SEPARATOR!r}",
                )
            if name.startswith(BRIDGE_PREFIX):
                raise CapabilityRegistrationError(
                    name,
                    f"Capability name {name!r} starts with the reserved "
                    f"prefix {BRIDGE_PREFIX!r}",
                )
            if name in table:
                raise CapabilityRegistrationError(
                    name, f"Capability {name!r} is registered twice"
                )
            table[name] = capability
        self._capabilities = MappingProxyType(table)

    def get(self, name: str) -> Capability | None:
        return self._capabilities.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._capabilities)

    def __iter__(self) -> Iterator[Capability]:
        return iter(self._capabilities.values())

    def __len__(self) -> int:
        return len(self._capabilities)

    def __contains__(self, name: object) -> bool:
        return name in self._capabilities
