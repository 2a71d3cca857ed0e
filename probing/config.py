"""
ProbeConfig — the immutable settings shared by every probe of a run.
"""

from dataclasses import dataclass
from pathlib import Path
import re
from typing import Iterable

from probing.errors import InputReadError
from probing.matcher import compile_patterns

DEFAULT_TIMEOUT_MS = 6000
DEFAULT_CONCURRENCY = 60
DEFAULT_USER_AGENT = "hostprobe/0.1.0"

STRATEGIES = ("pool", "gate")


@dataclass(frozen=True)
class ProbeConfig:
    timeout_ms:  int                   = DEFAULT_TIMEOUT_MS
    concurrency: int                   = DEFAULT_CONCURRENCY
    patterns:    tuple[re.Pattern, ...] = ()
    user_agent:  str                   = DEFAULT_USER_AGENT
    strategy:    str                   = "pool"

    def __post_init__(self):
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout_ms} ms")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {self.concurrency}")
        if self.strategy not in STRATEGIES:
            raise ValueError(f"unknown strategy {self.strategy!r} (expected one of {', '.join(STRATEGIES)})")
        # accept any iterable of compiled patterns, store as a tuple
        object.__setattr__(self, "patterns", tuple(self.patterns))

    @classmethod
    def build(
        cls,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        concurrency: int = DEFAULT_CONCURRENCY,
        patterns: Iterable[str] = (),
        **options,
    ) -> "ProbeConfig":
        """Build a config from raw pattern strings. Raises ``MalformedPattern``."""
        return cls(
            timeout_ms=timeout_ms,
            concurrency=concurrency,
            patterns=compile_patterns(patterns),
            **options,
        )

    @property
    def timeout(self) -> float:
        return self.timeout_ms / 1000

    @property
    def has_matchers(self) -> bool:
        return bool(self.patterns)


def load_patterns(path: str | Path) -> list[str]:
    """Read one pattern per non-empty line."""
    try:
        with open(path, encoding="utf-8") as f:
            return [line.rstrip("\r\n") for line in f if line.strip()]
    except (OSError, UnicodeDecodeError) as exc:
        raise InputReadError(f"Cannot read pattern file {path}: {exc}", details={"path": str(path)}) from exc
