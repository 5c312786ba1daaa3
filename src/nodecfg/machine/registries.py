# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/machine/registries.py

"""
Which mirrors, credentials and TLS settings apply to a registry host.

Lookup is always two-tier: the exact host name first, then the ``*``
wildcard entry. No match means direct, anonymous, verified-TLS access.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, TypeVar
from urllib.parse import urlsplit

from nodecfg.config.errors import Violation
from nodecfg.config.v1alpha1.models import (
    RegistriesConfig,
    RegistryAuthConfig,
    RegistryMirrorConfig,
    RegistryTLSConfig,
)

WILDCARD = "*"
DEFAULT_REGISTRY = "docker.io"

T = TypeVar("T")


def _lookup(entries: Mapping[str, T], host: str) -> Optional[T]:
    if host in entries:
        return entries[host]
    return entries.get(WILDCARD)


def registry_host(image_ref: str) -> str:
    """
    Registry host part of an image reference.

    ``nginx`` and ``library/nginx`` live on docker.io; the first path
    component is a host only when it looks like one (has a dot or a port,
    or is ``localhost``).
    """
    name = image_ref.split("@", 1)[0]
    first, sep, _ = name.partition("/")
    if sep and ("." in first or ":" in first or first == "localhost"):
        return first
    return DEFAULT_REGISTRY


def resolve_mirror(registries: RegistriesConfig, host: str) -> Optional[RegistryMirrorConfig]:
    return _lookup(registries.mirrors, host)


def resolve_auth_tls(
    registries: RegistriesConfig, host: str
) -> Tuple[Optional[RegistryAuthConfig], Optional[RegistryTLSConfig]]:
    cfg = _lookup(registries.config, host)
    if cfg is None:
        return None, None
    return cfg.auth, cfg.tls


def mirror_endpoints(registries: RegistriesConfig, host: str) -> List[str]:
    """Endpoints to try for *host*, preferred first. Empty means go direct."""
    mirror = resolve_mirror(registries, host)
    return list(mirror.endpoints) if mirror is not None else []


@dataclass(frozen=True)
class Credential:
    """
    The one credential form that wins for a registry.

    kind is one of ``identity_token``, ``auth``, ``basic`` or ``anonymous``.
    """
    kind: str
    identity_token: str = ""
    auth: str = ""
    username: str = ""
    password: str = ""

    @property
    def is_anonymous(self) -> bool:
        return self.kind == "anonymous"


ANONYMOUS = Credential(kind="anonymous")


def effective_auth(auth: Optional[RegistryAuthConfig]) -> Credential:
    """
    Pick a single credential out of *auth*.

    A well-formed document sets only one form. When several are set the
    tie-break is identityToken, then auth, then username/password; the
    field docs give no order, so this is a chosen rule, covered by tests
    (see test_effective_auth_precedence_*).
    """
    if auth is None:
        return ANONYMOUS
    if auth.identity_token:
        return Credential(kind="identity_token", identity_token=auth.identity_token)
    if auth.auth:
        return Credential(kind="auth", auth=auth.auth)
    if auth.username and auth.password:
        return Credential(kind="basic", username=auth.username, password=auth.password)
    return ANONYMOUS


def validate_registries(
    registries: RegistriesConfig, path: str = "machine.registries"
) -> List[Violation]:
    out: List[Violation] = []
    for name, mirror in registries.mirrors.items():
        mpath = f"{path}.mirrors.{name}.endpoints"
        if not mirror.endpoints:
            out.append(Violation(mpath, "mirror-endpoints-required", "at least one endpoint is needed"))
        for i, ep in enumerate(mirror.endpoints):
            parts = urlsplit(ep)
            if not parts.scheme or not parts.netloc:
                out.append(Violation(f"{mpath}[{i}]", "invalid-mirror-endpoint", f"{ep!r} is not a URL"))

    for name, cfg in registries.config.items():
        if cfg.auth is None:
            continue
        a = cfg.auth
        if bool(a.username) != bool(a.password) and not (a.auth or a.identity_token):
            out.append(Violation(
                f"{path}.config.{name}.auth", "auth-incomplete",
                "username and password must be set together",
            ))
    return out


def summarize(registries: RegistriesConfig, host: str) -> Dict[str, object]:
    """Everything that applies to *host*, in plain types (for display)."""
    auth, tls = resolve_auth_tls(registries, host)
    cred = effective_auth(auth)
    return {
        "host": host,
        "endpoints": mirror_endpoints(registries, host),
        "credential": cred.kind,
        "insecure_skip_verify": bool(tls and tls.insecure_skip_verify),
        "custom_ca": bool(tls and tls.ca),
        "client_identity": bool(tls and tls.client_identity and not tls.client_identity.is_empty),
    }
