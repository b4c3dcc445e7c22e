"""Boot modes a job can be asked to serve."""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from typing import Union


class Mode(enum.IntEnum):
    """What a booting machine is being handled as."""

    NONE = 0
    HARDWARE = 1
    MANAGEMENT = 2
    INSTANCE = 3
    PROV = 4
    DEPROV = 5

    def slug(self) -> str:
        """The short name used in query strings."""
        return _SLUGS[self]

    def __str__(self) -> str:
        return _NAMES[self]


_SLUGS = {
    Mode.NONE: "none",
    Mode.HARDWARE: "hardware",
    Mode.MANAGEMENT: "management",
    Mode.INSTANCE: "instance",
    Mode.PROV: "prov",
    Mode.DEPROV: "deprov",
}

_NAMES = {
    Mode.NONE: "(no mode)",
    Mode.HARDWARE: "Hardware",
    Mode.MANAGEMENT: "Management",
    Mode.INSTANCE: "Instance",
    Mode.PROV: "Provision",
    Mode.DEPROV: "Deprovision",
}

_MODES_BY_SLUG = {slug: mode for mode, slug in _SLUGS.items()}

QueryValue = Union[str, Sequence[str]]


def _first(params: Mapping[str, QueryValue], key: str) -> str:
    value = params.get(key)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return value[0] if value else ""


def modes_from_query(params: Mapping[str, QueryValue]) -> set[Mode]:
    """The modes named, comma separated, by the ``modes`` (or ``mode``) parameter."""
    text = _first(params, "modes") or _first(params, "mode")
    return {_MODES_BY_SLUG[slug] for slug in text.split(",") if slug in _MODES_BY_SLUG}