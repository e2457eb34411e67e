"""Persisted watermarks: the Last-Modified value last applied per source."""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import format_datetime
from pathlib import Path
from typing import Any, Optional

from .errors import PersistenceError, TimestampParseError
from .fetcher import parse_last_modified

logger = logging.getLogger(__name__)


@dataclass
class State:
    """Watermarks per source name, stored as JSON"""

    path: Path
    last_modified: dict[str, datetime] = field(default_factory=dict)

    def get(self, name: str) -> Optional[datetime]:
        return self.last_modified.get(name)

    def set(self, name: str, watermark: datetime) -> None:
        self.last_modified[name] = watermark

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_modified": {
                name: format_datetime(value)
                for name, value in sorted(self.last_modified.items())
            }
        }

    @classmethod
    def from_dict(cls, path: Path, data: dict[str, Any]) -> "State":
        entries = data.get("last_modified", {})
        if not isinstance(entries, dict):
            raise PersistenceError(f"{path}: 'last_modified' must be a mapping")

        last_modified = {}
        for name, value in entries.items():
            try:
                last_modified[str(name)] = parse_last_modified(str(value))
            except TimestampParseError as e:
                raise PersistenceError(f"{path}: entry {name!r}: {e}") from e

        return cls(path=path, last_modified=last_modified)

    @classmethod
    def load(cls, path: Path) -> "State":
        """
        Read state from ``path``. A missing file is an empty state.

        Raises:
            PersistenceError: if the file is unreadable or malformed
        """
        path = Path(path)

        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No state file at {path}, starting fresh")
            return cls(path=path)
        except OSError as e:
            raise PersistenceError(f"cannot read state {path}: {e}") from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"invalid JSON in {path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"{path}: state must be a JSON object")

        return cls.from_dict(path, data)

    def save(self) -> None:
        """
        Write state to disk, replacing the previous file atomically.

        Raises:
            PersistenceError: if the file cannot be written
        """
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8"
            )
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"cannot write state {self.path}: {e}") from e

        logger.debug(f"Saved state to {self.path}")
