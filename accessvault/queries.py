"""Helpers that build MongoDB filters, paging options and object ids."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from bson.regex import Regex

_REGEX_META = frozenset("\\.+*?()|[]{}^$#&-~")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_OBJECT_ID_HEX_LENGTH = 24


def compute_skip(limit: int | None, page: int | None) -> int | None:
    """Return how many documents to skip for ``page``, or None when paging does not apply."""
    if limit is None or page is None or limit <= 1 or page <= 1:
        return None
    return max((page - 1) * limit, 0)


def find_kwargs(limit: int | None, page: int | None) -> dict[str, int]:
    """Return the ``limit`` and ``skip`` keyword arguments for a ``find`` call."""
    kwargs: dict[str, int] = {}
    if limit is not None:
        kwargs["limit"] = limit
    skip = compute_skip(limit, page)
    if skip is not None:
        kwargs["skip"] = skip
    return kwargs


def _escape(text: str) -> str:
    return "".join(f"\\{char}" if char in _REGEX_META else char for char in text)


def exact_match_filter(field: str, value: str) -> dict[str, Any]:
    """Return a filter matching ``field`` equal to ``value``, ignoring case."""
    return {field: {"$regex": Regex(f"^{_escape(value)}$", "i")}}


def text_search_filter(text: str) -> dict[str, Any]:
    """Return a full-text search filter for ``text``."""
    return {"$text": {"$search": text}}


def _parse_object_id(text: str) -> ObjectId:
    if len(text) % 2 == 0:
        for index, char in enumerate(text):
            if char not in _HEX_DIGITS:
                raise InvalidId(
                    f"invalid character '{char}' was found at index {index} "
                    f'in the provided hex string: "{text}"'
                )
        if len(text) == _OBJECT_ID_HEX_LENGTH:
            return ObjectId(text)
    raise InvalidId(
        "provided hex string representation must be exactly 12 bytes, "
        f'instead got: "{text}", length {len(text)}'
    )


def parse_object_ids(values: Iterable[str]) -> list[ObjectId]:
    """Parse hexadecimal id strings; raise ``InvalidId`` on the first that is not valid."""
    return [_parse_object_id(value) for value in values]