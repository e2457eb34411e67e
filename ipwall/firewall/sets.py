"""ipset set lifecycle: ensure, atomic replace, destroy."""

import ipaddress
import logging
import random
import string
from typing import Iterable

from ..errors import FirewallToolError
from ..models import NetworkSet
from .tools import ToolRunner

SET_TYPE = "hash:net"

# Extra room in the temporary set beyond the number of entries loaded
MAXELEM_SLACK = 10000

TEMP_NAME_LENGTH = 20


def random_name(length: int = TEMP_NAME_LENGTH) -> str:
    """Random alphanumeric identifier for a temporary set"""
    alphabet = string.ascii_letters + string.digits
    return "".join(random.choices(alphabet, k=length))


def build_restore_script(
    temp: str, target: str, networks: Iterable[ipaddress.IPv4Network]
) -> str:
    """
    Emit an ``ipset restore`` script that loads ``networks`` into a fresh
    temporary set and swaps it with ``target``.
    """
    entries = sorted(networks)
    lines = [f"create {temp} {SET_TYPE} maxelem {len(entries) + MAXELEM_SLACK}"]
    lines.extend(f"add {temp} {network}" for network in entries)
    lines.append(f"swap {temp} {target}")
    lines.append(f"destroy {temp}")
    return "\n".join(lines) + "\n"


class SetStore:
    """
    Manages one named ``hash:net`` set in the kernel.

    The live set is never flushed in place; new content is loaded into a
    temporary set which is then swapped with the live one.
    """

    def __init__(self, name: str, ipset_path: str, runner: ToolRunner):
        self.name = name
        self.ipset = ipset_path
        self.runner = runner
        self.logger = logging.getLogger(f"{__name__}.{name}")

    def exists(self) -> bool:
        output = self.runner.run([self.ipset, "list", "-n"]).stdout
        return any(line.strip() == self.name for line in output.splitlines())

    def ensure_exists(self) -> None:
        """Create the set if it is missing. No-op otherwise."""
        if self.exists():
            self.logger.debug(f"Set {self.name} already exists")
            return

        self.logger.info(f"Creating set {self.name}")
        self.runner.run([self.ipset, "create", self.name, SET_TYPE])

    def atomic_replace(self, networks: NetworkSet) -> int:
        """
        Replace the whole membership of the live set.

        Only IPv4 prefixes are loaded. The live set is left untouched when
        there is nothing to load.

        Args:
            networks: New set content, must not be empty

        Returns:
            Number of entries loaded into the set
        """
        if not networks:
            raise ValueError(f"refusing to replace {self.name} with an empty set")

        ipv4 = [n for n in networks if isinstance(n, ipaddress.IPv4Network)]
        if not ipv4:
            self.logger.warning(
                f"No IPv4 prefixes among {len(networks)} entries, "
                f"leaving {self.name} unchanged"
            )
            return 0

        temp = random_name()
        script = build_restore_script(temp, self.name, ipv4)

        self.logger.debug(f"Loading {len(ipv4)} entries into {temp}")
        try:
            self.runner.run([self.ipset, "restore"], input=script)
        except FirewallToolError:
            # restore is not transactional; drop a half-built temporary set
            self.runner.run([self.ipset, "destroy", temp], check=False)
            raise
        self.logger.info(f"Swapped {len(ipv4)} entries into {self.name}")
        return len(ipv4)

    def destroy(self) -> None:
        """Remove the set. A set that does not exist counts as removed."""
        result = self.runner.run([self.ipset, "destroy", self.name], check=False)
        if result.ok:
            self.logger.info(f"Destroyed set {self.name}")
        elif "does not exist" in result.stderr:
            self.logger.debug(f"Set {self.name} already absent")
        else:
            self.logger.warning(
                f"Could not destroy set {self.name}: {result.stderr.strip()}"
            )

    def members(self) -> NetworkSet:
        """Read the current membership of the live set."""
        output = self.runner.run([self.ipset, "list", self.name]).stdout
        networks: NetworkSet = set()
        in_members = False

        for line in output.splitlines():
            line = line.strip()
            if line.startswith("Members:"):
                in_members = True
                continue
            if in_members and line:
                networks.add(ipaddress.ip_network(line.split()[0], strict=False))

        return networks
