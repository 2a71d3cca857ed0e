"""
HostProber — probe one host across its candidate URLs.

For each candidate, in order:
  - transport failure          -> UNREACHABLE, try the next candidate
  - response, no matchers      -> REACHABLE, done
  - response, matchers hit     -> MATCHED, done
  - response, matchers miss    -> REACHABLE_NO_MATCH, try the next candidate

A host whose candidates are all exhausted produces no result.
"""

from dataclasses import dataclass
from enum import Enum

from probing.client import ProbeClient
from probing.config import ProbeConfig
from probing.errors import TransportError
from probing.matcher import evaluate
from probing.target import Target
import probing.reporter as reporter


class Outcome(str, Enum):
    UNREACHABLE        = "unreachable"
    REACHABLE_NO_MATCH = "reachable-no-match"
    REACHABLE          = "reachable"
    MATCHED            = "matched"


@dataclass(frozen=True)
class ProbeOutcome:
    url:      str
    outcome:  Outcome
    status:   int | None      = None
    captures: tuple[str, ...] = ()

    @property
    def terminal(self) -> bool:
        return self.outcome in (Outcome.REACHABLE, Outcome.MATCHED)


@dataclass(frozen=True)
class HostResult:
    host:     str
    url:      str
    outcome:  Outcome
    status:   int | None      = None
    captures: tuple[str, ...] = ()


class HostProber:
    def __init__(self, config: ProbeConfig, client=None):
        self.config = config
        self.client = client or ProbeClient(config)

    def probe_candidate(self, url: str) -> ProbeOutcome:
        try:
            resp = self.client.fetch(url, read_body=self.config.has_matchers)
        except TransportError as exc:
            reporter.debug(f"{url} unreachable ({exc.reason})")
            return ProbeOutcome(url, Outcome.UNREACHABLE)

        found = evaluate(resp.body, self.config.patterns)
        if found is None:
            reporter.debug(f"{url} [{resp.status}] no pattern matched")
            return ProbeOutcome(url, Outcome.REACHABLE_NO_MATCH, resp.status)
        if isinstance(found, list):
            return ProbeOutcome(url, Outcome.MATCHED, resp.status, tuple(found))
        return ProbeOutcome(url, Outcome.REACHABLE, resp.status)

    def run(self, host: str) -> HostResult | None:
        target = Target(host)
        for url in target.candidates:
            result = self.probe_candidate(url)
            if result.terminal:
                reporter.debug(f"{url} [{result.status}] {result.outcome.value}")
                return HostResult(
                    host=target.raw,
                    url=result.url,
                    outcome=result.outcome,
                    status=result.status,
                    captures=result.captures,
                )
        return None
