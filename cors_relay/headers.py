"""Header filtering and CORS header construction."""

import base64
import json
from collections.abc import Mapping

from multidict import CIMultiDict

from .logging import get_logger

logger = get_logger(__name__)

HOP_BY_HOP = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
    }
)

ALLOW_METHODS = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization, X-Requested-With, X-CSRF-Token, Accept, Origin"
MAX_AGE = "86400"
DEFAULT_EXPOSE_HEADERS = "Content-Type, Content-Length, ETag"

BODYLESS_METHODS = frozenset({"GET", "HEAD"})


def cors_headers(origin: str | None = None) -> dict[str, str]:
    """Cross-origin headers attached to every response, echoing ``origin`` or ``*``."""
    return {
        "Access-Control-Allow-Origin": origin or "*",
        "Access-Control-Allow-Credentials": "false",
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Max-Age": MAX_AGE,
    }


def is_hop_by_hop(name: str) -> bool:
    return name.lower() in HOP_BY_HOP


def decode_extra_headers(h64: str | None) -> dict[str, str] | None:
    """
    Decode the ``h64`` query parameter into a header mapping.

    The value is base64 (standard or URL-safe alphabet, padding optional) of a
    JSON object. Anything that does not decode to an object yields None.
    """
    if not h64:
        return None

    # query decoding turns a literal "+" into a space
    text = h64.strip().replace(" ", "+").replace("-", "+").replace("_", "/")
    text += "=" * (-len(text) % 4)

    try:
        parsed = json.loads(base64.b64decode(text).decode("utf-8"))
    except (ValueError, RecursionError):
        logger.debug("Ignoring undecodable h64 parameter")
        return None

    if not isinstance(parsed, dict):
        logger.debug("Ignoring h64 parameter that is not a JSON object")
        return None

    return {
        str(name): value if isinstance(value, str) else json.dumps(value)
        for name, value in parsed.items()
    }


def build_upstream_headers(
    inbound: Mapping[str, str],
    extra: Mapping[str, str] | None,
    *,
    method: str,
    default_user_agent: str,
) -> CIMultiDict[str]:
    """
    Headers for the outbound request.

    Hop-by-hop headers and ``Origin`` are dropped, a default User-Agent is
    added when missing and ``extra`` is overlaid last, replacing any header
    of the same name.
    """
    headers: CIMultiDict[str] = CIMultiDict()
    for name, value in inbound.items():
        if not is_hop_by_hop(name):
            headers.add(name, value)

    headers.popall("Origin", None)
    if method.upper() in BODYLESS_METHODS:
        headers.popall("Content-Length", None)

    if "User-Agent" not in headers:
        headers["User-Agent"] = default_user_agent

    if extra:
        for name, value in extra.items():
            headers[name] = value

    return headers


def build_relayed_headers(upstream: Mapping[str, str], origin: str | None) -> CIMultiDict[str]:
    """Upstream response headers minus hop-by-hop ones, plus the CORS set."""
    headers: CIMultiDict[str] = CIMultiDict()
    for name, value in upstream.items():
        if not is_hop_by_hop(name):
            headers.add(name, value)

    headers.update(cors_headers(origin))
    headers.setdefault("Access-Control-Expose-Headers", DEFAULT_EXPOSE_HEADERS)
    return headers
