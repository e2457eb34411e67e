"""
External tool helpers

Resolves the ipset/iptables binaries once at startup and runs them.
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from ..errors import FirewallToolError

logger = logging.getLogger(__name__)

DEFAULT_IPSET_PATH = "/usr/sbin/ipset"
DEFAULT_IPTABLES_PATH = "/usr/sbin/iptables"

DEFAULT_TOOL_TIMEOUT = 60


def find_binary(name: str, fallback: str) -> str:
    """
    Locate an executable on PATH, falling back to a fixed location.

    Raises:
        FirewallToolError: if neither lookup yields an executable file
    """
    path = shutil.which(name)
    if path:
        return path

    if os.path.isfile(fallback) and os.access(fallback, os.X_OK):
        return fallback

    raise FirewallToolError(f"cannot find {name} on PATH or at {fallback}")


@dataclass(frozen=True)
class ToolPaths:
    """Resolved locations of the packet-filter binaries"""

    ipset: str = DEFAULT_IPSET_PATH
    iptables: str = DEFAULT_IPTABLES_PATH

    @classmethod
    def discover(cls) -> "ToolPaths":
        return cls(
            ipset=find_binary("ipset", DEFAULT_IPSET_PATH),
            iptables=find_binary("iptables", DEFAULT_IPTABLES_PATH),
        )


@dataclass
class CommandResult:
    """Outcome of an external command"""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ToolRunner:
    """Runs external commands with captured output."""

    def __init__(self, timeout: int = DEFAULT_TOOL_TIMEOUT):
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def run(
        self,
        cmd: Sequence[str],
        input: Optional[str] = None,
        check: bool = True,
    ) -> CommandResult:
        """
        Execute a command.

        Args:
            cmd: Command and arguments
            input: Text to write to stdin
            check: Raise FirewallToolError on non-zero exit

        Returns:
            CommandResult with exit status and output
        """
        self.logger.debug(f"Executing: {' '.join(cmd)}")

        result = self._execute(list(cmd), input)

        if check and not result.ok:
            stderr = result.stderr.strip()
            raise FirewallToolError(
                f"{' '.join(cmd)} exited with {result.returncode}: {stderr}",
                command=cmd,
                returncode=result.returncode,
                stderr=stderr,
            )

        return result

    def _execute(self, cmd: list[str], input: Optional[str]) -> CommandResult:
        try:
            proc = subprocess.run(
                cmd,
                input=input,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise FirewallToolError(
                f"timeout after {self.timeout}s: {' '.join(cmd)}", command=cmd
            )
        except OSError as e:
            raise FirewallToolError(f"cannot execute {cmd[0]}: {e}", command=cmd)

        return CommandResult(proc.returncode, proc.stdout, proc.stderr)
