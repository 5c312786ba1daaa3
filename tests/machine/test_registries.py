import pytest

from nodecfg.config.v1alpha1.models import (
    RegistriesConfig,
    RegistryAuthConfig,
    RegistryConfig,
    RegistryMirrorConfig,
    RegistryTLSConfig,
)
from nodecfg.machine.registries import (
    effective_auth,
    mirror_endpoints,
    registry_host,
    resolve_auth_tls,
    resolve_mirror,
    summarize,
    validate_registries,
)


def _registries(with_wildcard=True):
    mirrors = {"docker.io": RegistryMirrorConfig(endpoints=["https://registry.local", "https://registry-1.docker.io"])}
    if with_wildcard:
        mirrors["*"] = RegistryMirrorConfig(endpoints=["https://cache.local"])
    return RegistriesConfig(mirrors=mirrors)


# ----------------- mirrors -----------------

def test_exact_match_wins_over_wildcard():
    regs = _registries()
    assert resolve_mirror(regs, "docker.io") is regs.mirrors["docker.io"]


def test_wildcard_catches_unlisted_hosts():
    regs = _registries()
    assert resolve_mirror(regs, "quay.io") is regs.mirrors["*"]


def test_no_match_without_wildcard():
    assert resolve_mirror(_registries(with_wildcard=False), "unlisted.example") is None
    assert mirror_endpoints(_registries(with_wildcard=False), "unlisted.example") == []


def test_mirror_endpoints_keep_preference_order():
    assert mirror_endpoints(_registries(), "docker.io") == [
        "https://registry.local",
        "https://registry-1.docker.io",
    ]


# ----------------- auth / tls -----------------

def test_auth_tls_resolved_independently_of_mirrors():
    regs = RegistriesConfig(
        mirrors={"docker.io": RegistryMirrorConfig(endpoints=["https://registry.local"])},
        config={
            "registry.local": RegistryConfig(tls=RegistryTLSConfig(insecure_skip_verify=True)),
            "*": RegistryConfig(auth=RegistryAuthConfig(username="u", password="p")),
        },
    )
    auth, tls = resolve_auth_tls(regs, "registry.local")
    assert auth is None
    assert tls.insecure_skip_verify is True

    auth, tls = resolve_auth_tls(regs, "docker.io")
    assert auth.username == "u"
    assert tls is None


def test_no_config_means_anonymous_verified():
    auth, tls = resolve_auth_tls(RegistriesConfig(), "ghcr.io")
    assert (auth, tls) == (None, None)
    assert effective_auth(auth).is_anonymous


def test_effective_auth_basic():
    cred = effective_auth(RegistryAuthConfig(username="u", password="p"))
    assert cred.kind == "basic"
    assert (cred.username, cred.password) == ("u", "p")


def test_effective_auth_username_alone_is_anonymous():
    assert effective_auth(RegistryAuthConfig(username="u")).kind == "anonymous"


# The documented field semantics give no precedence between the auth forms.
# identityToken > auth > username/password is a chosen tie-break.

def test_effective_auth_precedence_identity_token_over_basic():
    cred = effective_auth(RegistryAuthConfig(username="u", password="p", identity_token="idt"))
    assert cred.kind == "identity_token"
    assert cred.identity_token == "idt"
    assert cred.username == ""


def test_effective_auth_precedence_identity_token_over_auth():
    cred = effective_auth(RegistryAuthConfig(auth="dTpw", identity_token="idt"))
    assert cred.kind == "identity_token"


def test_effective_auth_precedence_auth_over_basic():
    cred = effective_auth(RegistryAuthConfig(username="u", password="p", auth="dTpw"))
    assert cred.kind == "auth"
    assert cred.auth == "dTpw"


# ----------------- helpers -----------------

@pytest.mark.parametrize("ref,host", [
    ("nginx", "docker.io"),
    ("library/nginx:1.19", "docker.io"),
    ("ghcr.io/talos-systems/installer:latest", "ghcr.io"),
    ("localhost:5000/app", "localhost:5000"),
    ("localhost/app", "localhost"),
    ("registry.local/app@sha256:abcd", "registry.local"),
])
def test_registry_host(ref, host):
    assert registry_host(ref) == host


def test_validate_registries():
    regs = RegistriesConfig(
        mirrors={
            "docker.io": RegistryMirrorConfig(endpoints=[]),
            "ghcr.io": RegistryMirrorConfig(endpoints=["not-a-url"]),
        },
        config={"registry.local": RegistryConfig(auth=RegistryAuthConfig(username="u"))},
    )
    assert [(v.path, v.rule) for v in validate_registries(regs)] == [
        ("machine.registries.mirrors.docker.io.endpoints", "mirror-endpoints-required"),
        ("machine.registries.mirrors.ghcr.io.endpoints[0]", "invalid-mirror-endpoint"),
        ("machine.registries.config.registry.local.auth", "auth-incomplete"),
    ]


def test_summarize():
    regs = RegistriesConfig(
        mirrors={"*": RegistryMirrorConfig(endpoints=["https://cache.local"])},
        config={"*": RegistryConfig(auth=RegistryAuthConfig(identity_token="t"),
                                    tls=RegistryTLSConfig(ca="Y2E="))},
    )
    info = summarize(regs, "quay.io")
    assert info == {
        "host": "quay.io",
        "endpoints": ["https://cache.local"],
        "credential": "identity_token",
        "insecure_skip_verify": False,
        "custom_ca": True,
        "client_identity": False,
    }
