"""Reading and writing CSP values in HTTP header mappings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from csp_header.logging_config import get_logger

if TYPE_CHECKING:
    from csp_header.model.policy import Policy

logger = get_logger(__name__)

# Checked in this order when reading; both are written back.
HEADER_NAMES: tuple[str, ...] = ("Content-Security-Policy", "X-WebKit-CSP")


def find_policy_header(headers: Mapping[str, str]) -> str:
    """Return the value of the first CSP header present, matching names case-insensitively.

    Example:
        >>> find_policy_header({"x-webkit-csp": "default-src 'self'"})
        "default-src 'self'"
    """
    for name in HEADER_NAMES:
        wanted = name.lower()
        for key, value in headers.items():
            if key.lower() == wanted and value:
                return value
    return ""


def apply_policy(policy: Policy, headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` carrying ``policy`` under every CSP header name.

    Existing CSP headers are dropped whatever their casing. An empty policy
    removes them without adding new ones.
    """
    wanted = {name.lower() for name in HEADER_NAMES}
    result = {key: value for key, value in headers.items() if key.lower() not in wanted}
    dropped = len(headers) - len(result)

    csp = str(policy)
    if csp:
        for name in HEADER_NAMES:
            result[name] = csp

    logger.debug("csp_headers_applied", dropped=dropped, empty=not csp)
    return result
