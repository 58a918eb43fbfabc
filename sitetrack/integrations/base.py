from abc import ABC, abstractmethod

from sitetrack.common.logging import get_logger


class BaseIntegration(ABC):
    """Common logger wiring and a health check for outside services."""

    def __init__(self, name: str):
        self.name = name
        self.logger = get_logger(f"integrations.{name}")

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the integration is usable."""
        ...
