"""Exception hierarchy for ipwall.

Every error raised while syncing a single source derives from IpwallError,
so the orchestrator can report it and move on to the next source.
"""

from typing import Optional, Sequence


class IpwallError(Exception):
    """Base class for all ipwall errors"""


class FetchError(IpwallError):
    """Feed could not be retrieved (transport or HTTP failure)"""


class TimestampParseError(FetchError):
    """Last-Modified header is not a valid RFC 2822 timestamp"""


class PrefixParseError(FetchError):
    """Feed body contains a line that is not a network prefix"""

    def __init__(self, line_number: int, content: str):
        super().__init__(f"line {line_number}: invalid network prefix {content!r}")
        self.line_number = line_number
        self.content = content


class FirewallToolError(IpwallError):
    """External packet-filter tool failed or could not be found"""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = list(command or [])
        self.returncode = returncode
        self.stderr = stderr


class PersistenceError(IpwallError):
    """Settings or state file could not be read or written"""


class SettingsError(PersistenceError):
    """Settings file content is invalid"""
