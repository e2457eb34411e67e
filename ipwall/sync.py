"""Per-source synchronization of feeds into the firewall."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .config import Settings
from .errors import IpwallError, PersistenceError
from .fetcher import ListFetcher
from .firewall import Firewall
from .models import Source
from .state import State

FirewallFactory = Callable[[Source], Firewall]


@dataclass
class SyncResult:
    """Outcome of syncing one source."""

    source: str
    action: str  # "install" or "uninstall"
    success: bool
    entries: int = 0
    watermark: Optional[datetime] = None
    error: str = ""


class SyncOrchestrator:
    """
    Applies every configured source to the firewall, one at a time.

    For each source in install mode: set up set and rules, fetch the feed
    (skipping stale copies), swap in the new content if there is any and
    record the watermark. A failing source never stops the others.
    """

    def __init__(
        self,
        settings: Settings,
        state: State,
        fetcher: ListFetcher,
        firewall_factory: FirewallFactory,
    ):
        self.settings = settings
        self.state = state
        self.fetcher = fetcher
        self.firewall_factory = firewall_factory
        self.logger = logging.getLogger(__name__)

    def run(self, uninstall: bool = False) -> list[SyncResult]:
        """Sync all enabled sources and return one result per source."""
        sources = self.settings.sources()
        self.logger.debug(
            f"Processing {len(sources)} source(s): "
            f"{', '.join(s.name for s in sources)}"
        )
        return [self.sync_source(source, uninstall) for source in sources]

    def sync_source(self, source: Source, uninstall: bool = False) -> SyncResult:
        """Install or uninstall one source, reporting instead of raising."""
        action = "uninstall" if uninstall else "install"

        try:
            if uninstall:
                self._uninstall(source)
                result = SyncResult(source.name, action, success=True)
            else:
                entries, watermark = self._install(source)
                result = SyncResult(
                    source.name,
                    action,
                    success=True,
                    entries=entries,
                    watermark=watermark,
                )
        except IpwallError as e:
            self.logger.error(f"error {action}ing {source.name} filters: {e}")
            return SyncResult(source.name, action, success=False, error=str(e))

        self.logger.info(f"{action}ed {source.name} filters")

        if result.watermark is not None:
            self._save_watermark(source, result.watermark)

        return result

    def _uninstall(self, source: Source) -> None:
        self.firewall_factory(source).uninstall()

    def _install(self, source: Source) -> tuple[int, Optional[datetime]]:
        firewall = self.firewall_factory(source)
        firewall.install()

        networks, watermark = self.fetcher.fetch(
            source.url, self.state.get(source.name)
        )

        entries = 0
        if networks:
            entries = firewall.block(networks)
        else:
            self.logger.info(f"No new data for {source.name}")

        return entries, watermark

    def _save_watermark(self, source: Source, watermark: datetime) -> None:
        self.state.set(source.name, watermark)
        try:
            self.state.save()
        except PersistenceError as e:
            # Firewall is already updated; next run just re-fetches
            self.logger.error(f"error saving state for {source.name}: {e}")
