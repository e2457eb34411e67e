"""Data models for ipwall."""

import ipaddress
import re
from dataclasses import dataclass
from enum import Enum
from typing import Union

NetworkPrefix = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
NetworkSet = set[NetworkPrefix]

# Prefix for every kernel object we own (sets, rule matches)
SET_PREFIX = "ipwall-"

# ipset names are limited to 31 characters (IPSET_MAXNAMELEN - 1)
MAX_SET_NAME_LENGTH = 31

# No whitespace, no control characters
SOURCE_NAME_PATTERN = re.compile(r"^[^\s\x00-\x1f\x7f]+$")

FIREHOL_URL = "https://iplists.firehol.org/files/firehol_level{level}.netset"


class TargetAction(str, Enum):
    """Firewall disposition for traffic matching a blocklist"""

    DROP = "DROP"
    REJECT = "REJECT"
    TARPIT = "TARPIT"

    @classmethod
    def parse(cls, value: str) -> "TargetAction":
        """Parse a target name case-insensitively (``drop``, ``Drop``, ``DROP``)."""
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            choices = ", ".join(t.value.lower() for t in cls)
            raise ValueError(
                f"unknown target {value!r} (expected one of: {choices})"
            ) from None

    def to_args(self) -> list[str]:
        """iptables ``-j`` arguments for this target."""
        if self is TargetAction.TARPIT:
            return ["TARPIT", "--tarpit"]
        return [self.value]

    def __str__(self) -> str:
        return " ".join(self.to_args())


@dataclass(frozen=True)
class Source:
    """A remote network-list feed"""

    name: str
    url: str

    def __post_init__(self) -> None:
        validate_source_name(self.name)

    @property
    def set_name(self) -> str:
        """Kernel set identifier, stable across runs"""
        return f"{SET_PREFIX}{self.name}"

    @classmethod
    def firehol(cls, level: int) -> "Source":
        return cls(name=f"firehol-level{level}", url=FIREHOL_URL.format(level=level))


def validate_source_name(name: str) -> None:
    """
    Check that a source name can be embedded in a firewall object identifier.

    Raises:
        ValueError: if the name is empty, has whitespace/control characters,
            or makes the set name exceed the ipset length limit.
    """
    if not name or not SOURCE_NAME_PATTERN.match(name):
        raise ValueError(
            f"invalid source name {name!r}: must be non-empty without whitespace"
        )
    if len(SET_PREFIX) + len(name) > MAX_SET_NAME_LENGTH:
        limit = MAX_SET_NAME_LENGTH - len(SET_PREFIX)
        raise ValueError(
            f"invalid source name {name!r}: longer than {limit} characters"
        )


BUILTIN_SOURCES = {level: Source.firehol(level) for level in (1, 2, 3)}
