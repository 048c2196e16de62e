"""Query Parameter Parsing — raw URL query pairs to a (possibly nested) parameter mapping.

Invariants:
    - Pure function: no IO
    - "name[first]=x" and "name.first=x" both become {"name": {"first": "x"}}
    - A key supplied more than once, or as both scalar and object, becomes a list;
      the validator rejects lists, so ambiguous input never reaches the compiler
    - Values are kept as received (strings); no coercion happens here
"""

from typing import Any, Iterable


def split_key(key: str) -> list[str]:
    """Split bracket or dot notation into path segments."""
    normalized = key.replace("[", ".").replace("]", "")
    parts = normalized.split(".")
    if any(part == "" for part in parts):
        return [key]
    return parts


def parse_query_pairs(pairs: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Build a parameter mapping from ordered (key, value) query pairs."""
    parameters: dict[str, Any] = {}
    for key, value in pairs:
        _insert(parameters, split_key(key), value)
    return parameters


def _insert(target: dict[str, Any], parts: list[str], value: Any) -> None:
    head, rest = parts[0], parts[1:]
    if not rest:
        if head in target:
            target[head] = _as_list(target[head]) + [value]
        else:
            target[head] = value
        return

    child = target.get(head)
    if child is None:
        child = target[head] = {}
    elif not isinstance(child, dict):
        target[head] = _as_list(child) + [{".".join(rest): value}]
        return
    _insert(child, rest, value)


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else [value]
