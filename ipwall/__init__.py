"""ipwall: IP blocklist feeds synced into the kernel packet filter.

Public API:
    - SyncOrchestrator: Runs install/uninstall for every configured source
    - ListFetcher: Conditional feed download and netset parsing
    - Settings: User settings (target, feeds)
    - State: Persisted Last-Modified watermarks

Backend API (for extending):
    - Firewall: Base class for firewall backends
    - register_backend / get_backend: Backend registry
"""

__version__ = "0.2.0"

from .config import Settings
from .errors import (
    FetchError,
    FirewallToolError,
    IpwallError,
    PersistenceError,
    PrefixParseError,
    SettingsError,
    TimestampParseError,
)
from .fetcher import ListFetcher
from .firewall import Firewall, get_backend, register_backend
from .models import Source, TargetAction
from .state import State
from .sync import SyncOrchestrator, SyncResult

__all__ = [
    # Main API
    "SyncOrchestrator",
    "SyncResult",
    "ListFetcher",
    "Settings",
    "State",
    "Source",
    "TargetAction",
    # Backend API
    "Firewall",
    "get_backend",
    "register_backend",
    # Errors
    "IpwallError",
    "FetchError",
    "TimestampParseError",
    "PrefixParseError",
    "FirewallToolError",
    "PersistenceError",
    "SettingsError",
]
