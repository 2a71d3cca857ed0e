"""Exception taxonomy for hostprobe.

Only two kinds of failure ever leave the probing engine:

- configuration failures (``MalformedPattern``) raised before any probing
  starts, and
- stream failures (``InputReadError`` / ``OutputWriteError``) that abort the run.

``TransportError`` is raised by the probe client and always handled by the
host prober: an unreachable candidate is an expected result, not an error.
"""

from typing import Any, Dict, Optional


class ProbeError(Exception):
    """Base exception for all hostprobe errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransportError(ProbeError):
    """Connection refused, timeout, TLS or DNS failure for one candidate URL."""

    def __init__(self, url: str, reason: Any):
        super().__init__(f"{url}: {reason}", details={"url": url, "reason": str(reason)})
        self.url = url
        self.reason = reason


class MalformedPattern(ProbeError):
    """A configured regular expression does not compile."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(
            f"Invalid pattern {pattern!r}: {reason}",
            details={"pattern": pattern, "reason": reason},
        )
        self.pattern = pattern


class InputReadError(ProbeError):
    """Reading hosts or a pattern file failed."""


class OutputWriteError(ProbeError):
    """Writing a result to the output stream failed."""
