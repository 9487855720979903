"""
Protocol negotiation between the legacy and versioned CQL query RPCs.

Servers from API version 19.35.0 onwards accept ``execute_cql3_query``,
which carries a consistency level with every request. Older servers, or
clients that explicitly ask for a CQL 2 dialect, use ``execute_cql_query``
and switch the connection's CQL version with ``set_cql_version``.
"""

import enum
import logging
import re
from typing import List, Optional, Tuple

from .constants import VERSIONED_CQL_FLOOR, VERSIONED_RPC_API_VERSION

logger = logging.getLogger(__name__)

_LEADING_DIGITS = re.compile(r"\d+")


class ProtocolMode(enum.Enum):
    """Which query RPC a session uses."""

    LEGACY = "legacy"
    VERSIONED = "versioned"


def parse_version(version: str) -> List[int]:
    """
    Split a dotted version string into integer components.

    A non-numeric suffix on a component is ignored, so ``"3.0.0-beta1"``
    parses as ``[3, 0, 0]``. Components without leading digits count as 0.
    """
    components = []
    for part in str(version).strip().split("."):
        match = _LEADING_DIGITS.match(part)
        components.append(int(match.group()) if match else 0)
    return components


def compare_versions(left: str, right: str) -> int:
    """
    Compare two dotted version strings numerically.

    Returns:
        -1, 0 or 1 as ``left`` is lower than, equal to or higher than
        ``right``. Missing trailing components count as 0.
    """
    a = parse_version(left)
    b = parse_version(right)
    width = max(len(a), len(b))
    a += [0] * (width - len(a))
    b += [0] * (width - len(b))
    return (a > b) - (a < b)


def version_at_least(version: str, minimum: str) -> bool:
    return compare_versions(version, minimum) >= 0


def negotiate(
    server_version: str, requested_version: Optional[str] = None
) -> Tuple[ProtocolMode, Optional[str]]:
    """
    Decide which query RPC to use after a physical connect.

    Args:
        server_version: API version reported by the server.
        requested_version: CQL version asked for by the caller, if any.

    Returns:
        Tuple of (protocol mode, CQL version the server must switch to or
        None when no switch is needed).
    """
    if version_at_least(server_version, VERSIONED_RPC_API_VERSION) and (
        requested_version is None or version_at_least(requested_version, VERSIONED_CQL_FLOOR)
    ):
        mode, switch_to = ProtocolMode.VERSIONED, None
    elif requested_version is not None:
        mode, switch_to = ProtocolMode.LEGACY, requested_version
    else:
        mode, switch_to = ProtocolMode.LEGACY, None

    logger.debug(
        "Negotiated %s mode (server API %s, requested CQL %s)",
        mode.value,
        server_version,
        requested_version,
    )
    return mode, switch_to


def supports_versioned_query(transport_class: type) -> bool:
    """Check whether a transport class exposes the versioned query RPC at all."""
    return callable(getattr(transport_class, "execute_cql3_query", None))


def provisional_mode(requested_version: Optional[str], transport_class: type) -> ProtocolMode:
    """
    Guess the protocol mode before any server round-trip.

    Only the requested CQL version and the transport binding are consulted;
    the result is replaced by ``negotiate`` once a connection is made.
    """
    wants_cql3 = requested_version is None or parse_version(requested_version)[0] >= 3
    if wants_cql3 and supports_versioned_query(transport_class):
        return ProtocolMode.VERSIONED
    return ProtocolMode.LEGACY
