"""
Helpers for inspecting a mapping used as filter or primary keys before it goes into a query
(typically through `escape.and_dictionary`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .escape import UNDEFINED


@dataclass(frozen=True)
class FilterKeysReport:
    """
    Attributes:
        are_empty_string_filter_keys: Some value is an empty string.
        are_filter_keys_empty: The mapping exists but has no keys.
        are_filter_keys_falsy: No mapping at all (`None` / `UNDEFINED`).
        are_all_filter_keys_undefined: Every value is `UNDEFINED`, so an `and_dictionary`
            built from it would render nothing.
    """

    are_empty_string_filter_keys: bool
    are_filter_keys_empty: bool
    are_filter_keys_falsy: bool
    are_all_filter_keys_undefined: bool


def examine_filter_keys(filter_keys: Mapping[str, Any] | None) -> FilterKeysReport:
    if filter_keys is None or filter_keys is UNDEFINED:
        return FilterKeysReport(
            are_empty_string_filter_keys=False,
            are_filter_keys_empty=False,
            are_filter_keys_falsy=True,
            are_all_filter_keys_undefined=True,
        )

    values = list(filter_keys.values())
    return FilterKeysReport(
        are_empty_string_filter_keys=any(value == "" for value in values),
        are_filter_keys_empty=len(values) == 0,
        are_filter_keys_falsy=False,
        are_all_filter_keys_undefined=all(value is UNDEFINED for value in values),
    )


__all__ = ["FilterKeysReport", "examine_filter_keys"]
