"""Uniform response envelope shared by every API response.

Every body leaving the API has the same four members::

    {"success": bool, "data": any | null, "meta": object, "error": object | null}

Payloads are normalized before emission by :meth:`EnvelopeFormatter.transform`:

* mapping keys are rewritten to camelCase (string keys only),
* sequences keep their order with each element transformed,
* ``datetime``/``date`` values become integer microseconds since the epoch,
* enums emit their value (data-type enums) or their name (plain enums),
* paginated collections (page objects, or mappings with ``data``,
  ``current_page``, ``per_page`` and ``total``) are unwrapped into ``data``
  plus a pagination block,
* bytes are decoded as UTF-8,
* objects opt into custom output through ``to_envelope()``; anything else is
  reflected from its public attributes.

The formatter is framework-agnostic; :mod:`pairauth.core.responses` turns an
:class:`Envelope` into a Flask response.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MICROSECOND = timedelta(microseconds=1)

_SEPARATORS = re.compile(r"[_\-\s]+")
_SCALARS = (str, int, float, bool, Decimal, UUID)
_PAGE_KEYS = frozenset({"data", "current_page", "per_page", "total"})


# --------------------------------------------------------------------------- #
# Capabilities
# --------------------------------------------------------------------------- #


@runtime_checkable
class EnvelopeSerializable(Protocol):
    """Opt-in capability for objects that choose their own wire projection."""

    def to_envelope(self) -> Any: ...


@runtime_checkable
class Paginated(Protocol):
    """A page of results with its position inside the full collection."""

    data: Sequence[Any]
    current_page: int
    per_page: int
    total: int


@dataclasses.dataclass(frozen=True, slots=True)
class PageView:
    """A page described by a plain mapping with the four pagination keys."""

    data: Sequence[Any]
    current_page: int
    per_page: int
    total: int


def as_page(value: Any) -> Paginated | None:
    """Return ``value`` as a page when it is one, else ``None``.

    Mappings qualify when they carry ``data``, ``current_page``, ``per_page``
    and ``total``, and ``data`` is a list-like collection.
    """
    if isinstance(value, Paginated):
        return value
    if isinstance(value, Mapping) and _PAGE_KEYS <= value.keys():
        items = value["data"]
        if isinstance(items, Sequence) and not isinstance(items, (str, bytes)):
            return PageView(items, value["current_page"], value["per_page"], value["total"])
    return None


# --------------------------------------------------------------------------- #
# Key rewriting
# --------------------------------------------------------------------------- #


def camel_case(key: str) -> str:
    """Rewrite an underscore/hyphen/space separated key to camelCase.

    Already camelCased keys come back unchanged.

    :param key: Key to rewrite (e.g. ``"current_page"``).
    :type key: str
    :returns: camelCased key (e.g. ``"currentPage"``).
    :rtype: str
    """
    parts = [part for part in _SEPARATORS.split(key) if part]
    if not parts:
        return key
    head, *tail = parts
    return head[:1].lower() + head[1:] + "".join(p[:1].upper() + p[1:] for p in tail)


class KeyCache:
    """Memoization table for key rewrites.

    Created once per application by the factory and shared by all requests.
    The table is never a correctness dependency: clearing it at any time only
    costs recomputation.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._entries.get(key)

    def store(self, key: str, value: str) -> str:
        self._entries[key] = value
        return value

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# --------------------------------------------------------------------------- #
# Scalar conversions
# --------------------------------------------------------------------------- #


def to_epoch_micros(value: date) -> int:
    """Convert a date or datetime to whole microseconds since the Unix epoch.

    Naive datetimes are read as UTC and plain dates as UTC midnight.
    """
    if isinstance(value, datetime):
        moment = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    else:
        moment = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return (moment - EPOCH) // ONE_MICROSECOND


def enum_to_wire(member: Enum) -> Any:
    """Return the value of data-type enums (``str``/``int`` mixins), else the name."""
    if isinstance(member, _SCALARS):
        return member.value
    return member.name


# --------------------------------------------------------------------------- #
# Envelope
# --------------------------------------------------------------------------- #


@dataclasses.dataclass(frozen=True, slots=True)
class Envelope:
    """A finished response body and the HTTP status it travels with."""

    body: dict[str, Any]
    status: int = 200

    @property
    def success(self) -> bool:
        return bool(self.body.get("success"))


class EnvelopeFormatter:
    """Build success/error envelopes and normalize their payloads.

    :param key_cache: Memoization table for key rewrites. A private one is
        created when omitted.
    :type key_cache: KeyCache | None
    """

    def __init__(self, key_cache: KeyCache | None = None) -> None:
        self.key_cache = key_cache if key_cache is not None else KeyCache()

    # ------------------------------ Public API -----------------------------

    def wrap_success(
        self,
        data: Any = None,
        meta: Mapping[str, Any] | None = None,
        status: int = 200,
    ) -> Envelope:
        """Wrap a successful result.

        A top-level paginated collection is unwrapped: its items become
        ``data`` and its pagination block is merged into ``meta``.

        :param data: Main payload.
        :param meta: Additional metadata.
        :param status: HTTP status code.
        :returns: Success envelope.
        :rtype: Envelope
        """
        out_meta = self.transform(dict(meta or {}))
        page = as_page(data)
        if page is not None:
            out_data = self.transform(list(page.data))
            out_meta["pagination"] = self._pagination_block(page)
        else:
            out_data = self.transform(data)

        return Envelope(
            body={"success": True, "data": out_data, "meta": out_meta, "error": None},
            status=status,
        )

    def wrap_error(
        self,
        message: str,
        code: str = "ERROR",
        status: int = 500,
        details: Mapping[str, Any] | None = None,
    ) -> Envelope:
        """Wrap a failure; ``data`` is null and ``meta`` empty.

        :param message: Client-safe error message.
        :param code: Stable machine-readable error code.
        :param status: HTTP status code.
        :param details: Optional structured details (null when omitted).
        :returns: Error envelope.
        :rtype: Envelope
        """
        return Envelope(
            body={
                "success": False,
                "data": None,
                "meta": {},
                "error": {
                    "code": code,
                    "message": message,
                    "details": None if details is None else self.transform(details),
                },
            },
            status=status,
        )

    def transform_key(self, key: str) -> str:
        """Return the camelCase form of ``key``, memoized in the key cache."""
        cached = self.key_cache.get(key)
        if cached is not None:
            return cached
        return self.key_cache.store(key, camel_case(key))

    def transform(self, value: Any) -> Any:
        """Recursively normalize ``value`` for the wire."""
        if value is None:
            return None
        if isinstance(value, Enum):
            return enum_to_wire(value)
        if isinstance(value, date):
            return to_epoch_micros(value)
        if isinstance(value, _SCALARS):
            return value
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8", errors="replace")
        page = as_page(value)
        if page is not None:
            return {
                "data": self.transform(list(page.data)),
                "meta": {"pagination": self._pagination_block(page)},
            }
        if isinstance(value, EnvelopeSerializable):
            return self.transform(value.to_envelope())
        if isinstance(value, Mapping):
            return self._transform_mapping(value)
        if isinstance(value, (Sequence, set, frozenset)):
            return [self.transform(item) for item in value]
        return self._reflect(value)

    # ------------------------------ Internals ------------------------------

    def _transform_mapping(self, mapping: Mapping[Any, Any]) -> dict[Any, Any]:
        return {
            (self.transform_key(k) if isinstance(k, str) else k): self.transform(v)
            for k, v in mapping.items()
        }

    def _pagination_block(self, page: Paginated) -> dict[str, int]:
        return {
            "currentPage": int(page.current_page),
            "perPage": int(page.per_page),
            "total": int(page.total),
        }

    def _reflect(self, obj: Any) -> dict[Any, Any]:
        """Treat an unknown object as a mapping of its public attributes."""
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            fields = {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
            return self._transform_mapping(fields)

        try:
            attrs = dict(vars(obj))
        except TypeError:
            attrs = {
                name: getattr(obj, name)
                for name in _slot_names(type(obj))
                if hasattr(obj, name)
            }
        return self._transform_mapping(
            {k: v for k, v in attrs.items() if not k.startswith("_")}
        )


def _slot_names(cls: type) -> list[str]:
    names: list[str] = []
    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        names.extend(s for s in slots if s not in names)
    return names


__all__ = [
    "Envelope",
    "EnvelopeFormatter",
    "EnvelopeSerializable",
    "KeyCache",
    "PageView",
    "Paginated",
    "as_page",
    "camel_case",
    "enum_to_wire",
    "to_epoch_micros",
]
