"""
Feed fetcher

Retrieves remote netset feeds over HTTP and parses them into sets of
network prefixes. A Last-Modified watermark avoids going backwards when a
feed temporarily serves an older copy.
"""

import ipaddress
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import requests

from . import __version__
from .errors import FetchError, PrefixParseError, TimestampParseError
from .models import NetworkSet

logger = logging.getLogger(__name__)

COMMENT_MARKERS = (";", "#")

DEFAULT_TIMEOUT = 30


def strip_comment(line: str) -> str:
    """Return the part of a line before the first ``;`` or ``#``."""
    positions = [line.find(marker) for marker in COMMENT_MARKERS]
    positions = [pos for pos in positions if pos >= 0]
    if not positions:
        return line
    return line[: min(positions)]


def parse_netset(text: str) -> NetworkSet:
    """
    Parse a netset document, one network prefix per line.

    Comments and blank lines are skipped. Bare addresses become host
    prefixes and host bits are masked off.

    Raises:
        PrefixParseError: on the first line that is not a valid prefix
    """
    networks: NetworkSet = set()

    for line_number, line in enumerate(text.splitlines(), 1):
        content = strip_comment(line).strip()
        if not content:
            continue

        try:
            networks.add(ipaddress.ip_network(content, strict=False))
        except ValueError:
            raise PrefixParseError(line_number, content) from None

    return networks


def parse_last_modified(value: str) -> datetime:
    """
    Parse an RFC 2822 Last-Modified header value.

    A ``-0000`` zone comes back naive from the stdlib parser; it is
    treated as UTC so that every watermark carries an offset.
    """
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError) as e:
        raise TimestampParseError(f"invalid Last-Modified header {value!r}: {e}")

    if parsed is None:
        raise TimestampParseError(f"invalid Last-Modified header {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ListFetcher:
    """Fetches and parses netset feeds."""

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create configured requests session"""
        session = requests.Session()
        session.headers.update({"User-Agent": f"ipwall/{__version__}"})
        return session

    def fetch(
        self, url: str, previous: Optional[datetime] = None
    ) -> tuple[NetworkSet, Optional[datetime]]:
        """
        Download a feed and parse it.

        Args:
            url: Feed URL
            previous: Watermark of the last applied version, if any

        Returns:
            Tuple of (networks, watermark). The set is empty and the
            previous watermark is returned unchanged when the feed reports
            a modification time older than ``previous``.
        """
        self.logger.debug(f"Fetching {url}")

        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"request to {url} failed: {e}") from e

        header = response.headers.get("Last-Modified")
        if header is None:
            watermark = previous
        else:
            watermark = parse_last_modified(header)

            if previous is not None and watermark < previous:
                self.logger.warning(
                    f"{url} reports Last-Modified {header}, older than "
                    f"{previous.isoformat()}; keeping current set"
                )
                return set(), previous

        networks = parse_netset(response.text)
        self.logger.debug(f"Parsed {len(networks)} prefixes from {url}")
        return networks, watermark
