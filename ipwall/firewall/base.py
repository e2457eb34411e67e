"""
Abstract Firewall Backend Interface

A backend owns the kernel objects for one source: whatever holds the
addresses and the rules that reference it.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..models import NetworkSet, Source, TargetAction
from .tools import ToolPaths, ToolRunner


@dataclass
class FirewallConfig:
    """Per-source backend configuration"""

    source: Source
    target: TargetAction = TargetAction.DROP
    tools: ToolPaths = field(default_factory=ToolPaths)


class Firewall(ABC):
    """
    Abstract base class for firewall backends.

    Implementations must make ``install`` and ``uninstall`` idempotent and
    ``block`` atomic from the point of view of matching traffic.
    """

    def __init__(self, config: FirewallConfig, runner: ToolRunner):
        self.config = config
        self.runner = runner
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def source(self) -> Source:
        return self.config.source

    @abstractmethod
    def install(self) -> None:
        """Create the set and rules for the source if missing."""
        pass

    @abstractmethod
    def uninstall(self) -> None:
        """Remove the rules and set for the source. Missing objects are fine."""
        pass

    @abstractmethod
    def block(self, networks: NetworkSet) -> int:
        """
        Replace the blocked addresses with ``networks``.

        Args:
            networks: Non-empty set of prefixes

        Returns:
            Number of entries now loaded
        """
        pass
