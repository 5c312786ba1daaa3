# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/config/errors.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


class ConfigError(Exception):
    """Base class for configuration failures."""


class UnknownVersionError(ConfigError, LookupError):
    """Raised when a document declares a schema version nobody registered."""

    def __init__(self, version: str, known: Iterable[str] = ()):
        self.version = version
        self.known = sorted(known)
        hint = f" (known: {', '.join(self.known)})" if self.known else ""
        super().__init__(f"unknown config version {version!r}{hint}")


@dataclass(frozen=True)
class FieldError:
    path: str
    cause: str

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.cause}"


class MalformedFieldError(ConfigError, ValueError):
    """
    Raised when one or more raw values cannot be converted to their typed form.

    Every offending field found during a decode is reported in ``errors``,
    not just the first one.
    """

    def __init__(self, errors: Iterable[FieldError]):
        self.errors: List[FieldError] = list(errors)
        lines = "\n".join(f"  {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} malformed field(s):\n{lines}")

    @classmethod
    def single(cls, path: str, cause: str) -> "MalformedFieldError":
        return cls([FieldError(path=path, cause=cause)])

    @property
    def paths(self) -> List[str]:
        return [e.path for e in self.errors]


class InvalidURLError(ConfigError, ValueError):
    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"invalid URL {text!r}: {reason}")


class InsufficientSpaceError(ConfigError, ValueError):
    def __init__(self, message: str, *, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(message)


@dataclass(frozen=True)
class Violation:
    """
    A structurally valid but semantically inconsistent value.

    ``rule`` is a stable identifier (e.g. ``cidr-dhcp-exclusive``) callers can
    match on; ``detail`` is meant for humans.
    """
    path: str
    rule: str
    detail: str

    def __str__(self) -> str:
        return f"{self.path}: [{self.rule}] {self.detail}"


class ValidationFailed(ConfigError):
    """Carries a batch of violations for callers that want an exception."""

    def __init__(self, violations: Iterable[Violation]):
        self.violations: List[Violation] = list(violations)
        lines = "\n".join(f"  {v}" for v in self.violations)
        super().__init__(f"{len(self.violations)} violation(s):\n{lines}")
