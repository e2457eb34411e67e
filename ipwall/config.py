"""Configuration for ipwall: settings file and runtime paths."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import SettingsError
from .fetcher import DEFAULT_TIMEOUT
from .firewall.registry import DEFAULT_BACKEND, list_backends
from .models import BUILTIN_SOURCES, Source, TargetAction

DEFAULT_CONFIG_PATH = "/etc/ipwall/config.yaml"
DEFAULT_STATE_PATH = "/var/lib/ipwall/state.json"


@dataclass
class RuntimePaths:
    """Locations of the settings and state files"""

    config: Path = Path(DEFAULT_CONFIG_PATH)
    state: Path = Path(DEFAULT_STATE_PATH)

    @classmethod
    def from_env(cls) -> "RuntimePaths":
        """Create paths from environment variables."""
        return cls(
            config=Path(os.environ.get("IPWALL_CONFIG", DEFAULT_CONFIG_PATH)),
            state=Path(os.environ.get("IPWALL_STATE", DEFAULT_STATE_PATH)),
        )


@dataclass
class FireholConfig:
    """Which FireHOL aggregate levels are enabled."""

    level1: bool = False
    level2: bool = True
    level3: bool = True

    def enabled_levels(self) -> list[int]:
        flags = {1: self.level1, 2: self.level2, 3: self.level3}
        return [level for level, enabled in flags.items() if enabled]


@dataclass
class Settings:
    """
    User settings, read once at startup.

    Attributes:
        target: Disposition for matched traffic.
        backend: Firewall backend name.
        timeout: HTTP timeout in seconds.
        firehol: Built-in feed toggles.
        custom_sources: Additional feeds as name -> URL, applied sorted by name.
    """

    target: TargetAction = TargetAction.DROP
    backend: str = DEFAULT_BACKEND
    timeout: int = DEFAULT_TIMEOUT
    firehol: FireholConfig = field(default_factory=FireholConfig)
    custom_sources: dict[str, str] = field(default_factory=dict)

    def sources(self) -> list[Source]:
        """
        Enabled sources, built-ins first, then custom ones by name.

        Raises:
            SettingsError: on an invalid or duplicate source name
        """
        sources = [BUILTIN_SOURCES[level] for level in self.firehol.enabled_levels()]
        reserved = {s.name for s in BUILTIN_SOURCES.values()}

        for name, url in sorted(self.custom_sources.items()):
            if name in reserved:
                raise SettingsError(
                    f"custom source {name!r} clashes with a built-in source"
                )
            try:
                sources.append(Source(name=name, url=url))
            except ValueError as e:
                raise SettingsError(str(e)) from e

        return sources

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Build settings from parsed YAML, validating every field."""
        if not isinstance(data, dict):
            raise SettingsError("settings must be a mapping")

        try:
            target = TargetAction.parse(data.get("target", "drop"))
        except ValueError as e:
            raise SettingsError(str(e)) from e

        backend = str(data.get("backend", DEFAULT_BACKEND)).lower()
        if backend not in list_backends():
            raise SettingsError(
                f"unknown backend {backend!r} "
                f"(available: {', '.join(list_backends())})"
            )

        timeout = data.get("timeout", DEFAULT_TIMEOUT)
        if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
            raise SettingsError(f"timeout must be a positive integer, got {timeout!r}")

        firehol_data = data.get("firehol") or {}
        if not isinstance(firehol_data, dict):
            raise SettingsError("'firehol' must be a mapping")
        unknown = set(firehol_data) - {"level1", "level2", "level3"}
        if unknown:
            raise SettingsError(f"unknown firehol keys: {', '.join(sorted(unknown))}")
        defaults = FireholConfig()
        firehol = FireholConfig(
            level1=bool(firehol_data.get("level1", defaults.level1)),
            level2=bool(firehol_data.get("level2", defaults.level2)),
            level3=bool(firehol_data.get("level3", defaults.level3)),
        )

        sources_data = data.get("sources") or {}
        if not isinstance(sources_data, dict):
            raise SettingsError("'sources' must be a mapping of name to URL")
        custom_sources = {str(k): str(v) for k, v in sources_data.items()}

        settings = cls(
            target=target,
            backend=backend,
            timeout=timeout,
            firehol=firehol,
            custom_sources=custom_sources,
        )
        # Validate names up front so a bad file fails before any source runs
        settings.sources()
        return settings

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        """
        Load settings from a YAML file.

        A missing file yields the defaults.

        Raises:
            SettingsError: if the file cannot be read or is invalid
        """
        path = Path(path or DEFAULT_CONFIG_PATH)

        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls()
        except OSError as e:
            raise SettingsError(f"cannot read settings {path}: {e}") from e

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise SettingsError(f"invalid YAML in {path}: {e}") from e

        return cls.from_dict(data or {})
