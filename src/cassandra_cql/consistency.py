"""
Consistency level resolution.

Symbolic names (``"one"``, ``"quorum"``, ``"local_quorum"`` ...) are mapped
onto the numeric values the driver puts on the wire. The mapping itself
belongs to ``cassandra.ConsistencyLevel``; nothing here duplicates it.
"""

from typing import Any

from cassandra import ConsistencyLevel

from .exceptions import InvalidArgument


def canonical_name(name: Any) -> str:
    """Normalize a symbolic consistency name."""
    return str(name).upper()


def resolve(name: Any) -> int:
    """
    Resolve a symbolic consistency name to its numeric level.

    Args:
        name: Consistency name, case-insensitive.

    Returns:
        The driver's numeric consistency level.

    Raises:
        InvalidArgument: If the name is not a known consistency level.
    """
    try:
        return ConsistencyLevel.name_to_value[canonical_name(name)]
    except KeyError:
        raise InvalidArgument(f"Invalid consistency level: {name}") from None
