"""Errors returned by the provisioning API."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping

_NOT_FOUND = 404


class HTTPError(Exception):
    """An API response with an unsuccessful status code."""

    def __init__(self, status_code: int, errors: Iterable[str] = ()) -> None:
        self.status_code = status_code
        self.errors = list(errors)
        super().__init__(status_code, self.errors)

    def __str__(self) -> str:
        if not self.errors:
            return f"HTTP {self.status_code}"
        return f"HTTP {self.status_code}: " + "; ".join(self.errors)

    @classmethod
    def from_body(cls, status_code: int, body: bytes | str) -> HTTPError:
        """Build the error from a JSON body holding ``error`` or ``errors``."""
        try:
            messages = _error_messages(json.loads(body))
        except ValueError as exc:
            return cls(status_code, [f"unmarshalling errors body: {exc}"])
        return cls(status_code, messages)


def _error_messages(document: object) -> list[str]:
    if document is None:
        return []
    if not isinstance(document, Mapping):
        raise ValueError(f"cannot unmarshal {type(document).__name__} into an errors body")
    errors = document.get("errors")
    error = document.get("error")
    if errors is not None:
        if not isinstance(errors, list) or not all(isinstance(e, str) for e in errors):
            raise ValueError("errors: expected a list of strings")
    if error is not None and not isinstance(error, str):
        raise ValueError("error: expected a string")
    if errors:
        return list(errors)
    if error:
        return [error]
    return []


def is_not_exist(err: BaseException) -> bool:
    """True if ``err`` is an API "not found" error."""
    return isinstance(err, HTTPError) and err.status_code == _NOT_FOUND