"""Base use case."""

from abc import ABC, abstractmethod
from typing import Any


class BaseUseCase(ABC):
    """Base use case: one ``execute`` per transport-level operation."""

    @abstractmethod
    async def execute(self, request: Any) -> Any:
        pass
