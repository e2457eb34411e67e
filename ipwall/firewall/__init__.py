# Firewall backends
# Provides abstract backend interface and the ipset/iptables implementation

from .base import Firewall, FirewallConfig
from .ipset import IpsetFirewall
from .registry import get_backend, list_backends, register_backend
from .rules import FilterRules
from .sets import SetStore
from .tools import CommandResult, ToolPaths, ToolRunner

__all__ = [
    "Firewall",
    "FirewallConfig",
    "IpsetFirewall",
    "FilterRules",
    "SetStore",
    "ToolPaths",
    "ToolRunner",
    "CommandResult",
    "get_backend",
    "list_backends",
    "register_backend",
]
