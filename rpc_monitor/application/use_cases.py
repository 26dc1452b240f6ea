"""
Use cases - Base class for application use cases.
"""

from abc import ABC, abstractmethod
from typing import Any


class UseCase(ABC):  # pylint: disable=too-few-public-methods
    """A single application workflow with its ports injected at construction."""

    @abstractmethod
    def execute(self) -> Any:
        """Run the workflow."""
