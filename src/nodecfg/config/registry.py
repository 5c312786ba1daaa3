# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/config/registry.py

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping

from pydantic import BaseModel, ValidationError

from .errors import FieldError, MalformedFieldError, UnknownVersionError

log = logging.getLogger("nodecfg.config")

Factory = Callable[[], BaseModel]


def _loc_to_path(loc: tuple) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def field_errors(exc: ValidationError) -> List[FieldError]:
    """Flatten a pydantic ValidationError into YAML-path FieldErrors."""
    out: List[FieldError] = []
    for err in exc.errors(include_url=False):
        # drop validator wrapper segments such as function-after[...]
        loc = tuple(p for p in err["loc"] if not str(p).startswith("function-"))
        out.append(FieldError(path=_loc_to_path(loc), cause=err["msg"]))
    return out


class DocumentRegistry:
    """
    Maps a schema version tag to the factory of its document model.

    One registry is built at startup and then only read. Register every
    version before the first decode; registering while other threads
    decode is not supported.
    """

    def __init__(self) -> None:
        self._factories: Dict[str, Factory] = {}

    def register(self, version: str, factory: Factory) -> None:
        if not version:
            raise ValueError("version tag must not be empty")
        if version in self._factories:
            raise ValueError(f"config version {version!r} is already registered")
        self._factories[version] = factory
        log.debug("registered config version %s", version)

    def versions(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, version: object) -> bool:
        return version in self._factories

    def _factory(self, version: str) -> Factory:
        try:
            return self._factories[version]
        except KeyError:
            raise UnknownVersionError(version, self._factories) from None

    def empty(self, version: str) -> BaseModel:
        """Zero-value document for *version*."""
        return self._factory(version)()

    def decode(self, version: str, tree: Any) -> BaseModel:
        """
        Build the typed document for *version* from a decoded YAML tree.

        Raises UnknownVersionError for an unregistered tag and
        MalformedFieldError listing every field that failed to convert.
        """
        factory = self._factory(version)
        if tree is None:
            tree = {}
        if not isinstance(tree, Mapping):
            raise MalformedFieldError.single("", f"expected a mapping, got {type(tree).__name__}")

        declared = tree.get("version")
        if declared not in (None, "", version):
            raise MalformedFieldError.single(
                "version", f"document declares {declared!r} but was decoded as {version!r}"
            )

        data = dict(tree)
        data["version"] = version

        model_cls = factory if isinstance(factory, type) else type(factory())
        try:
            doc = model_cls.model_validate(data)
        except ValidationError as exc:
            errors = field_errors(exc)
            log.debug("decode of %s document failed with %d error(s)", version, len(errors))
            raise MalformedFieldError(errors) from exc

        log.debug("decoded %s document", version)
        return doc

    def decode_document(self, tree: Any) -> BaseModel:
        """Decode a tree using the version tag it declares."""
        if not isinstance(tree, Mapping):
            raise MalformedFieldError.single("", "expected a mapping at the document root")

        version = tree.get("version")
        if not isinstance(version, str) or not version:
            raise MalformedFieldError.single("version", "missing or not a string")
        return self.decode(version, tree)


def default_registry() -> DocumentRegistry:
    """A registry with every built-in schema version registered."""
    from .v1alpha1.models import Config

    registry = DocumentRegistry()
    registry.register("v1alpha1", Config)
    return registry
