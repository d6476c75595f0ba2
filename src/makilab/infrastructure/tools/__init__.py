"""Legacy flat tools."""

from makilab.infrastructure.tools.get_time import GetTimeTool

__all__ = ["GetTimeTool"]
