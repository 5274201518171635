"""Server CFG content rules: listening endpoint discovery.

A CFG file is only accepted if it declares where the server listens:
at least one ``endpoint_add_tcp`` bound to all interfaces, at least one
``endpoint_add_udp``, and every endpoint on the same port.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_ENDPOINT_RE = re.compile(
    r"""^\s*endpoint_add_(?P<kind>\w+)\s+"""
    r"""["']?(?P<iface>[0-9a-fA-F.:\[\]]+):(?P<port>\d+)["']?.*$""",
    re.IGNORECASE | re.MULTILINE,
)

_WILDCARD_INTERFACES = frozenset({"0.0.0.0", "::", "[::]"})


class CfgContentError(ValueError):
    """The CFG file was read but does not declare a usable listening port."""


@dataclass(frozen=True)
class Endpoint:
    """One ``endpoint_add_*`` directive."""

    kind: str
    interface: str
    port: int
    line: str


def find_endpoints(raw_cfg: str) -> list[Endpoint]:
    """Return every endpoint directive in *raw_cfg*, in file order."""
    return [
        Endpoint(
            kind=m.group("kind").lower(),
            interface=m.group("iface"),
            port=int(m.group("port")),
            line=m.group(0).strip(),
        )
        for m in _ENDPOINT_RE.finditer(raw_cfg)
    ]


def extract_port(raw_cfg: str) -> int:
    """Return the listening port declared by *raw_cfg*.

    Raises :class:`CfgContentError` when no endpoint is declared, when the
    TCP or UDP requirement is not met, or when endpoints disagree on the port.
    """
    endpoints = find_endpoints(raw_cfg)
    if not endpoints:
        raise CfgContentError("No endpoints found")

    if not any(e.kind == "tcp" and e.interface in _WILDCARD_INTERFACES for e in endpoints):
        raise CfgContentError("You MUST have a TCP endpoint with interface 0.0.0.0")

    if not any(e.kind == "udp" for e in endpoints):
        raise CfgContentError("You MUST have at least one UDP endpoint")

    port = endpoints[0].port
    if any(e.port != port for e in endpoints):
        raise CfgContentError("All endpoints MUST have the same port")

    return port
