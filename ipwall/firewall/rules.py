"""iptables rules that match traffic against a blocklist set."""

import logging

from ..models import TargetAction
from .tools import ToolRunner

CHAINS = ("INPUT", "FORWARD")

# Only tcp traffic to these ports is matched
PROTECTED_PORTS = "22,80,443"


class FilterRules:
    """Keeps exactly one blocking rule per chain for a set."""

    def __init__(
        self,
        set_name: str,
        target: TargetAction,
        iptables_path: str,
        runner: ToolRunner,
        chains: tuple[str, ...] = CHAINS,
    ):
        self.set_name = set_name
        self.target = target
        self.iptables = iptables_path
        self.runner = runner
        self.chains = chains
        self.logger = logging.getLogger(f"{__name__}.{set_name}")

    def rule_spec(self) -> list[str]:
        """Match and target arguments shared by check, insert and delete"""
        return [
            "-p",
            "tcp",
            "-m",
            "multiport",
            "--dports",
            PROTECTED_PORTS,
            "-m",
            "set",
            "--match-set",
            self.set_name,
            "src",
            "-j",
            *self.target.to_args(),
        ]

    def is_installed(self, chain: str) -> bool:
        # -C matches rules listed with implied options (REJECT --reject-with)
        result = self.runner.run(
            [self.iptables, "-C", chain, *self.rule_spec()], check=False
        )
        return result.ok

    def install(self) -> None:
        """Insert the rule at the head of each chain unless already present."""
        for chain in self.chains:
            if self.is_installed(chain):
                self.logger.debug(f"Rule for {self.set_name} present in {chain}")
                continue

            self.logger.info(
                f"Inserting {self.target} rule for {self.set_name} in {chain}"
            )
            self.runner.run([self.iptables, "-I", chain, *self.rule_spec()])

    def uninstall(self) -> int:
        """
        Delete every copy of the rule from each chain.

        A failing delete means no copy is left; that ends the loop for the
        chain and is not reported.

        Returns:
            Number of rules removed
        """
        removed = 0

        for chain in self.chains:
            while True:
                result = self.runner.run(
                    [self.iptables, "-D", chain, *self.rule_spec()], check=False
                )
                if not result.ok:
                    break
                removed += 1
                self.logger.info(f"Removed rule for {self.set_name} from {chain}")

        return removed
