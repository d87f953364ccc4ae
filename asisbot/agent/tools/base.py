"""Base class for deterministic tools."""

from abc import ABC, abstractmethod
from typing import Any


class Tool(ABC):
    """A deterministic capability the dispatcher can run without the AI.

    ``execute`` always returns user-facing text; provider failures are turned
    into friendly messages inside the tool.
    """

    name: str = ""
    description: str = ""

    @abstractmethod
    async def execute(self, **kwargs: Any) -> str:
        """Run the tool and return the reply text."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
