"""
Deep merge of free-form metadata records.

Metadata values are JSON-like trees (str, int, float, bool, None, lists and
dicts). A translation's metadata is layered over the language-neutral
metadata of the same entity with these rules, applied per key of the
override:

- both values are dicts: merge recursively
- both values are lists: the override list replaces the base list
- anything else: the override value replaces the base value, even when
  that changes the type (dict -> str, list -> dict, ...)

Keys only present in the base are kept as they are. Neither input is
modified. A top-level input that is not a record at all (None, a list, a
string) counts as empty.
"""

from typing import Any, Dict, Mapping, Optional

JsonRecord = Dict[str, Any]


def as_record(value: Any) -> JsonRecord:
    """
    Shallow copy of value if it is a record, else an empty record.

    >>> as_record({"a": 1})
    {'a': 1}
    >>> as_record(["a", "b"])
    {}
    """
    if isinstance(value, Mapping):
        return dict(value)
    return {}


def merge_metadata(
    base: Optional[Mapping[str, Any]],
    override: Optional[Mapping[str, Any]],
) -> JsonRecord:
    """
    Merge override into a copy of base.

    >>> merge_metadata({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}})
    {'a': {'x': 1, 'y': 3}}
    >>> merge_metadata({"a": [1, 2]}, {"a": [3]})
    {'a': [3]}
    """
    output = as_record(base)
    if not isinstance(override, Mapping):
        return output

    for key, value in override.items():
        base_value = output.get(key)
        if isinstance(base_value, Mapping) and isinstance(value, Mapping):
            output[key] = merge_metadata(base_value, value)
        else:
            # lists replace lists; everything else is last-write-wins
            output[key] = value
    return output
