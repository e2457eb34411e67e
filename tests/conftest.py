"""Shared fixtures: in-memory ipset/iptables and a stub HTTP session."""

import ipaddress
from typing import Optional

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from ipwall.firewall import CommandResult, ToolPaths, ToolRunner

IPSET = "/usr/sbin/ipset"
IPTABLES = "/usr/sbin/iptables"

NOT_FOUND = "ipset v7.1: The set with the given name does not exist"


class FakeRunner(ToolRunner):
    """
    Emulates the parts of ipset and iptables that ipwall uses.

    Every live set size is recorded after each ipset operation (including
    each line of a restore script) so tests can check that a set was never
    observed empty.
    """

    def __init__(self):
        super().__init__()
        self.sets: dict[str, set[str]] = {}
        self.chains: dict[str, list[str]] = {"INPUT": [], "FORWARD": []}
        self.commands: list[list[str]] = []
        self.observed: dict[str, list[int]] = {}
        self.fail_on: Optional[tuple[str, ...]] = None

    def _execute(self, cmd: list[str], input: Optional[str]) -> CommandResult:
        self.commands.append(cmd)
        if self.fail_on and tuple(cmd[1 : 1 + len(self.fail_on)]) == self.fail_on:
            return CommandResult(2, "", "simulated failure")
        if cmd[0] == IPSET:
            return self._ipset(cmd[1:], input)
        if cmd[0] == IPTABLES:
            return self._iptables(cmd[1:])
        return CommandResult(127, "", f"{cmd[0]}: not found")

    # ipset

    def _ipset(self, args: list[str], input: Optional[str]) -> CommandResult:
        if args == ["list", "-n"]:
            return CommandResult(0, "".join(f"{name}\n" for name in self.sets))
        if args[0] == "list":
            return self._list(args[1])
        if args == ["restore"]:
            for number, line in enumerate((input or "").splitlines(), 1):
                result = self._ipset_op(line.split())
                if not result.ok:
                    return CommandResult(
                        1, "", f"Error in line {number}: {result.stderr}"
                    )
            return CommandResult(0)
        return self._ipset_op(args)

    def _ipset_op(self, args: list[str]) -> CommandResult:
        op, name = args[0], args[1]
        if op == "create":
            if name in self.sets:
                return CommandResult(1, "", "set with the same name already exists")
            self.sets[name] = set()
        elif op == "add":
            if name not in self.sets:
                return CommandResult(1, "", NOT_FOUND)
            network = ipaddress.ip_network(args[2], strict=False)
            self.sets[name].add(str(network))
        elif op == "swap":
            other = args[2]
            if name not in self.sets or other not in self.sets:
                return CommandResult(1, "", NOT_FOUND)
            self.sets[name], self.sets[other] = self.sets[other], self.sets[name]
        elif op == "destroy":
            if name not in self.sets:
                return CommandResult(1, "", NOT_FOUND)
            rules = [r for chain in self.chains.values() for r in chain]
            if any(f"--match-set {name} " in r for r in rules):
                return CommandResult(1, "", "Set cannot be destroyed: it is in use")
            del self.sets[name]
        else:
            return CommandResult(1, "", f"unknown command {op}")

        for set_name, members in self.sets.items():
            self.observed.setdefault(set_name, []).append(len(members))
        return CommandResult(0)

    def _list(self, name: str) -> CommandResult:
        if name not in self.sets:
            return CommandResult(1, "", NOT_FOUND)
        lines = [f"Name: {name}", "Type: hash:net", "Members:"]
        lines.extend(sorted(self.sets[name]))
        return CommandResult(0, "\n".join(lines) + "\n")

    # iptables

    @staticmethod
    def _listed(chain: str, spec: list[str]) -> str:
        """Rule as `iptables -S` prints it, implied options included."""
        if spec[-2:] == ["-j", "REJECT"]:
            spec = [*spec, "--reject-with", "icmp-port-unreachable"]
        return " ".join(["-A", chain, *spec])

    def _iptables(self, args: list[str]) -> CommandResult:
        op, chain = args[0], args[1]
        rules = self.chains.setdefault(chain, [])
        listed = self._listed(chain, args[2:])

        if op == "-S":
            lines = [f"-P {chain} ACCEPT", *rules]
            return CommandResult(0, "\n".join(lines) + "\n")
        if op == "-C":
            if listed not in rules:
                return CommandResult(
                    1, "", "Bad rule (does a matching rule exist in that chain?)."
                )
            return CommandResult(0)
        if op == "-I":
            set_name = args[args.index("--match-set") + 1]
            if set_name not in self.sets:
                return CommandResult(2, "", f"Set {set_name} doesn't exist.")
            rules.insert(0, listed)
            return CommandResult(0)
        if op == "-D":
            if listed not in rules:
                return CommandResult(
                    1, "", "Bad rule (does a matching rule exist in that chain?)."
                )
            rules.remove(listed)
            return CommandResult(0)
        return CommandResult(2, "", f"unknown option {op}")


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200, headers=None):
        self.text = text
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Serves canned responses per URL and records requests."""

    def __init__(self):
        self.responses: dict[str, object] = {}
        self.requests: list[str] = []

    def add(self, url: str, text: str = "", status_code: int = 200, headers=None):
        self.responses[url] = FakeResponse(text, status_code, headers)

    def add_error(self, url: str, error: Exception):
        self.responses[url] = error

    def get(self, url: str, timeout=None):
        self.requests.append(url)
        response = self.responses.get(url)
        if response is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def tools() -> ToolPaths:
    return ToolPaths(ipset=IPSET, iptables=IPTABLES)
