# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/config/endpoint.py

from __future__ import annotations

from typing import Optional
from urllib.parse import SplitResult, urlsplit, urlunsplit

from .errors import InvalidURLError

_DEFAULT_PORTS = {"https": 443, "http": 80}


class Endpoint:
    """
    A parsed URL with an explicit text form.

    ``Endpoint.parse(text).format()`` keeps scheme, host, port and path
    exactly as written.
    """

    __slots__ = ("_url",)

    def __init__(self, url: SplitResult):
        self._url = url

    @classmethod
    def parse(cls, text: str) -> "Endpoint":
        if not isinstance(text, str):
            raise InvalidURLError(repr(text), "expected a string")

        if not text or any(c.isspace() for c in text):
            raise InvalidURLError(text, "empty or contains whitespace")

        try:
            parts = urlsplit(text)
            # raises ValueError for a non-numeric or out of range port
            parts.port
        except ValueError as exc:
            raise InvalidURLError(text, str(exc)) from exc

        if not parts.scheme:
            raise InvalidURLError(text, "missing scheme")
        if not parts.hostname:
            raise InvalidURLError(text, "missing host")

        return cls(parts)

    def format(self) -> str:
        return urlunsplit(self._url)

    @property
    def url(self) -> SplitResult:
        return self._url

    @property
    def scheme(self) -> str:
        return self._url.scheme

    @property
    def host(self) -> str:
        return self._url.hostname or ""

    @property
    def port(self) -> Optional[int]:
        if self._url.port is not None:
            return self._url.port
        return _DEFAULT_PORTS.get(self._url.scheme)

    @property
    def path(self) -> str:
        return self._url.path

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"Endpoint({self.format()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Endpoint):
            return NotImplemented
        return self._url == other._url

    def __hash__(self) -> int:
        return hash(self._url)
