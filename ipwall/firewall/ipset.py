"""
ipset + iptables backend

Addresses live in an ipset ``hash:net`` set; iptables rules in INPUT and
FORWARD reference it with ``-m set --match-set``.
"""

from ..models import NetworkSet
from .base import Firewall, FirewallConfig
from .rules import FilterRules
from .sets import SetStore
from .tools import ToolRunner


class IpsetFirewall(Firewall):
    """Firewall backend built on ipset and iptables."""

    def __init__(self, config: FirewallConfig, runner: ToolRunner):
        super().__init__(config, runner)
        set_name = config.source.set_name
        self.sets = SetStore(set_name, config.tools.ipset, runner)
        self.rules = FilterRules(
            set_name, config.target, config.tools.iptables, runner
        )

    def install(self) -> None:
        # iptables refuses --match-set for a set that does not exist yet
        self.sets.ensure_exists()
        self.rules.install()

    def uninstall(self) -> None:
        removed = self.rules.uninstall()
        self.logger.debug(f"Removed {removed} rule(s) for {self.source.name}")
        self.sets.destroy()

    def block(self, networks: NetworkSet) -> int:
        return self.sets.atomic_replace(networks)
