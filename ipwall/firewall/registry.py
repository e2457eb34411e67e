"""
Firewall Backend Registry

Factory for creating firewall backend instances by name.
"""

import logging
from typing import Optional, Type

from ..errors import FirewallToolError
from ..models import Source, TargetAction
from .base import Firewall, FirewallConfig
from .tools import ToolPaths, ToolRunner

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "ipset"

# Backend registry
_backends: dict[str, Type[Firewall]] = {}


def register_backend(name: str, backend_class: Type[Firewall]) -> None:
    """Register a firewall backend class"""
    _backends[name.lower()] = backend_class
    logger.debug(f"Registered firewall backend: {name}")


def list_backends() -> list[str]:
    return sorted(_backends)


def get_backend(
    name: str,
    source: Source,
    target: TargetAction,
    tools: ToolPaths,
    runner: Optional[ToolRunner] = None,
) -> Firewall:
    """
    Get a firewall backend instance for one source.

    Args:
        name: Backend name (e.g., "ipset")
        source: Source the backend manages
        target: Disposition for matched traffic
        tools: Resolved binary paths
        runner: Command runner (defaults to a new ToolRunner)

    Returns:
        Configured Firewall instance

    Raises:
        FirewallToolError: if no backend is registered under ``name``
    """
    backend_class = _backends.get(name.lower())
    if backend_class is None:
        raise FirewallToolError(
            f"unknown firewall backend {name!r} "
            f"(available: {', '.join(list_backends())})"
        )

    config = FirewallConfig(source=source, target=target, tools=tools)
    return backend_class(config, runner or ToolRunner())


# Auto-register built-in backends
def _register_builtin_backends():
    """Register all built-in backends"""
    from .ipset import IpsetFirewall

    register_backend("ipset", IpsetFirewall)


_register_builtin_backends()
