"""
Base crawler plugin.

The crawler host owns scheduling: it calls ``process_environment`` once
per crawled environment and ``cleanup`` when the crawl is over.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from scaledown.core.models import Environment, Organization


class CrawlerPlugin(ABC):
    """
    Abstract base class for crawler plugins.

    Subclasses must implement:
    - process_environment(): handle one crawled environment
    - cleanup(): release resources at the end of a crawl
    """

    def __init__(self, name: str) -> None:
        self.name = name

    @property
    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether the plugin should act on environments."""

    async def init(self) -> None:
        """Prepare the plugin before the first environment is processed."""

    @abstractmethod
    async def process_environment(
        self,
        environment: Environment,
        organizations: Mapping[str, Organization],
    ) -> Any:
        """Process one crawled environment."""

    @abstractmethod
    async def cleanup(self) -> None:
        """Release resources once the crawl is over."""
