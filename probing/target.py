"""
Target — turn one input line into the ordered list of URLs worth probing.

A line that already carries a scheme is probed as-is. A bare ``host[:port]``
is tried over https first, then http, unless the explicit port pins the
scheme (``:80`` is never https, ``:443`` is never http).
"""

import re

SCHEME_HTTPS = "https://"
SCHEME_HTTP = "http://"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
_PORT_RE = re.compile(r":(\d+)$")


def _authority(raw: str) -> str:
    # host[:port] part of a scheme-less input; drop path, query and fragment
    return re.split(r"[/?#]", raw, maxsplit=1)[0]


def _explicit_port(raw: str) -> int | None:
    authority = _authority(raw)
    if authority.startswith("["):
        # [v6::addr]:port
        _, _, authority = authority.partition("]")
    m = _PORT_RE.search(authority)
    return int(m.group(1)) if m else None


class Target:
    def __init__(self, raw: str):
        self.raw = raw.strip()
        self._parse()

    def _parse(self):
        self.has_scheme = bool(_SCHEME_RE.match(self.raw))
        self.port = None if self.has_scheme else _explicit_port(self.raw)

    @property
    def candidates(self) -> tuple[str, ...]:
        if self.has_scheme:
            return (self.raw,)

        urls = []
        if self.port != 80:
            urls.append(SCHEME_HTTPS + self.raw)
        if self.port != 443:
            urls.append(SCHEME_HTTP + self.raw)
        return tuple(dict.fromkeys(urls))

    def __str__(self) -> str:
        return self.raw


def generate(host: str) -> list[str]:
    """Return the candidate URLs for ``host``, in the order they are tried."""
    return list(Target(host).candidates)
