"""Decoder for pool-indexed JSON graphs.

Client-side frameworks serialize page data as a flat array (the pool) where
integers found inside objects and arrays point at other pool entries, so that
repeated sub-objects are stored once::

    [{"matches": 1}, [2], {"name": 3}, "G2"]  ->  {"matches": [{"name": "G2"}]}
"""
from typing import Any, Dict, List, Optional


# Negative references are special values rather than pool positions
SPECIAL_VALUES = {
    -1: None,           # undefined
    -2: None,           # array hole
    -3: float('nan'),
    -4: float('inf'),
    -5: float('-inf'),
    -6: -0.0,
}


def resolve(pool: List[Any], value: Any, memo: Optional[Dict[int, Any]] = None) -> Any:
    """
    Resolve ``value`` against ``pool``.

    Integers in range are references. A referenced primitive is returned as
    is; a referenced object or array is resolved recursively. Each pool index
    is decoded once: shared sub-structures resolve to the same object and
    cycles terminate. Negative references -1 to -6 decode to undefined (None),
    hole (None), NaN, infinity, negative infinity and -0.0; other
    out-of-range integers are returned unchanged.

    Args:
        pool: The flat value array
        value: Value to resolve (usually an index)
        memo: Pool index -> resolved object, shared across calls

    Returns:
        Plain Python value with references replaced
    """
    if memo is None:
        memo = {}

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if 0 <= value < len(pool):
            return _resolve_index(pool, value, memo)
        return SPECIAL_VALUES.get(value, value)
    if isinstance(value, dict):
        return {key: resolve(pool, item, memo) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve(pool, item, memo) for item in value]
    return value


def resolve_root(pool: List[Any]) -> Any:
    """Resolve the graph rooted at pool index 0."""
    if not pool:
        return None
    return resolve(pool, 0, {})


def _resolve_index(pool: List[Any], index: int, memo: Dict[int, Any]) -> Any:
    if index in memo:
        return memo[index]

    entry = pool[index]

    if isinstance(entry, dict):
        resolved = {}
        memo[index] = resolved
        for key, item in entry.items():
            resolved[key] = resolve(pool, item, memo)
        return resolved

    if isinstance(entry, list):
        # Tagged values such as ["Date", "2025-01-01T10:00:00.000Z"]
        if len(entry) == 2 and entry[0] == 'Date' and isinstance(entry[1], str):
            memo[index] = entry[1]
            return entry[1]
        resolved = []
        memo[index] = resolved
        for item in entry:
            resolved.append(resolve(pool, item, memo))
        return resolved

    # primitives are never dereferenced again
    return entry
