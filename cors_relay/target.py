"""Target URL validation."""

import re

from yarl import URL

from .errors import HostNotAllowed, InvalidTarget, MissingTarget
from .models import Target

ALLOWED_SCHEMES = frozenset({"http", "https"})

# already a wire-ready URL: printable ASCII, no spaces
_WIRE_READY = re.compile(r"[\x21-\x7e]+")


def parse_target(raw: str | None) -> Target:
    """
    Validate the ``url`` query parameter.

    Raises:
        MissingTarget: parameter absent or empty
        InvalidTarget: not an absolute http(s) URL with a host
    """
    if not raw:
        raise MissingTarget()

    try:
        url = URL(raw, encoded=True) if _WIRE_READY.fullmatch(raw) else URL(raw)
    except (ValueError, TypeError) as exc:
        raise InvalidTarget() from exc

    if url.scheme.lower() not in ALLOWED_SCHEMES or not url.host:
        raise InvalidTarget()

    return Target(url=url, host=url.host.lower())


def is_host_allowed(target: Target, allowed_hosts: frozenset[str] | None) -> bool:
    """Exact, case-insensitive hostname match; None allows every host."""
    if allowed_hosts is None:
        return True
    return target.host in allowed_hosts


def check_host(target: Target, allowed_hosts: frozenset[str] | None) -> None:
    if not is_host_allowed(target, allowed_hosts):
        raise HostNotAllowed()
