"""Built-in capabilities."""

from makilab.infrastructure.capabilities.memory import MemoryCapability
from makilab.infrastructure.capabilities.time import TimeCapability
from makilab.infrastructure.capabilities.web import WebCapability

__all__ = ["MemoryCapability", "TimeCapability", "WebCapability"]
