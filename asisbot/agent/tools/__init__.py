"""Deterministic tools."""

from asisbot.agent.tools.base import Tool
from asisbot.agent.tools.calculator import CalculatorTool
from asisbot.agent.tools.clock import ClockTool
from asisbot.agent.tools.invoker import ToolInvoker
from asisbot.agent.tools.weather import WeatherTool
from asisbot.agent.tools.web import WebSearchTool

__all__ = ["CalculatorTool", "ClockTool", "Tool", "ToolInvoker", "WeatherTool", "WebSearchTool"]
