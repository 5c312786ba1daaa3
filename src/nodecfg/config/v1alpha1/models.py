# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/config/v1alpha1/models.py

"""
Typed models for the ``v1alpha1`` machine configuration document.

Field names are snake_case; the YAML keys are the camelCase aliases. Every
model is frozen: a document is replaced wholesale on update, never mutated.
"""

from __future__ import annotations

import base64
import binascii
import re
from datetime import timedelta
from typing import Annotated, Any, ClassVar, Dict, List, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..endpoint import Endpoint
from . import defaults

UInt8 = Annotated[int, Field(ge=0, le=0xFF)]
UInt16 = Annotated[int, Field(ge=0, le=0xFFFF)]
UInt32 = Annotated[int, Field(ge=0, le=0xFFFFFFFF)]
UInt64 = Annotated[int, Field(ge=0)]


def _scalar_text(value: Any) -> Any:
    # unquoted numbers and booleans in string maps are taken as text
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


StrMap = Dict[str, Annotated[str, BeforeValidator(_scalar_text)]]

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``1h30m`` or ``8760h0m0s``."""
    s = text.strip()
    if not s:
        raise ValueError("empty duration")
    sign = 1
    if s[0] in "+-":
        sign = -1 if s[0] == "-" else 1
        s = s[1:]
    if s == "0":
        return timedelta(0)

    pos, seconds = 0, 0.0
    for m in _DURATION_PART.finditer(s):
        if m.start() != pos:
            break
        seconds += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()

    if not s or pos != len(s):
        raise ValueError(f"invalid duration {text!r}")
    try:
        return timedelta(seconds=sign * seconds)
    except OverflowError:
        raise ValueError(f"duration {text!r} is out of range") from None


def format_duration(value: timedelta) -> str:
    total = value // timedelta(microseconds=1)
    sign = "-" if total < 0 else ""
    total = abs(total)
    whole, micros = divmod(total, 1_000_000)
    hours, rest = divmod(whole, 3600)
    minutes, seconds = divmod(rest, 60)
    secs = f"{seconds}.{micros:06d}".rstrip("0") if micros else str(seconds)
    return f"{sign}{hours}h{minutes}m{secs}s"


def _check_base64(value: str) -> str:
    try:
        base64.b64decode("".join(value.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"not valid base64: {exc}") from exc
    return value


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
        arbitrary_types_allowed=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # explicit YAML nulls mean "use the default"
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class PEMEncodedCertificateAndKey(_Model):
    crt: str = ""
    key: str = ""

    @field_validator("crt", "key")
    @classmethod
    def _base64(cls, v: str) -> str:
        return _check_base64(v) if v else v

    @property
    def is_empty(self) -> bool:
        return not self.crt and not self.key

    @property
    def is_half_populated(self) -> bool:
        return bool(self.crt) != bool(self.key)


# ------------------------------------------------------------------------------
# Network
# ------------------------------------------------------------------------------

class Route(_Model):
    network: str = ""
    gateway: str = ""


class DHCPOptions(_Model):
    route_metric: UInt32 = 0


class Bond(_Model):
    """
    Bonding options.

    Everything except ``interfaces`` is handed to the kernel bonding driver
    as-is; only the value types are checked here.
    """
    interfaces: List[str] = Field(default_factory=list)
    arp_ip_target: List[str] = Field(default_factory=list, alias="arpIPTarget")
    mode: str = ""
    xmit_hash_policy: str = ""
    lacp_rate: str = ""
    ad_actor_system: str = ""
    arp_validate: str = ""
    arp_all_targets: str = ""
    primary: str = ""
    primary_reselect: str = ""
    fail_over_mac: str = ""
    ad_select: str = ""
    miimon: UInt32 = 0
    updelay: UInt32 = 0
    downdelay: UInt32 = 0
    arp_interval: UInt32 = 0
    resend_igmp: UInt32 = 0
    min_links: UInt32 = 0
    lp_interval: UInt32 = 0
    packets_per_slave: UInt32 = 0
    num_peer_notif: UInt8 = 0
    tlb_dynamic_lb: UInt8 = 0
    all_slaves_active: UInt8 = 0
    use_carrier: bool = False
    ad_actor_sys_prio: UInt16 = 0
    ad_user_port_key: UInt16 = 0
    peer_notify_delay: UInt32 = 0


class Vlan(_Model):
    vlan_id: UInt16 = Field(default=0, alias="vlanId")
    cidr: str = ""
    dhcp: bool = False
    routes: List[Route] = Field(default_factory=list)


class Device(_Model):
    interface: str = ""
    cidr: str = ""
    routes: List[Route] = Field(default_factory=list)
    bond: Optional[Bond] = None
    vlans: List[Vlan] = Field(default_factory=list)
    mtu: int = Field(default=0, ge=0)
    dhcp: bool = False
    ignore: bool = False
    dummy: bool = False
    dhcp_options: Optional[DHCPOptions] = None


class ExtraHost(_Model):
    ip: str = ""
    aliases: List[str] = Field(default_factory=list)


class NetworkConfig(_Model):
    hostname: str = ""
    interfaces: List[Device] = Field(default_factory=list)
    nameservers: List[str] = Field(default_factory=list)
    extra_host_entries: List[ExtraHost] = Field(default_factory=list)

    def resolved_nameservers(self) -> List[str]:
        return list(self.nameservers) or list(defaults.NAMESERVERS)


# ------------------------------------------------------------------------------
# Disks, files, install
# ------------------------------------------------------------------------------

class DiskPartition(_Model):
    # bytes; 0 means "the rest of the disk"
    size: UInt64 = 0
    mountpoint: str = ""


class MachineDisk(_Model):
    device: str = ""
    partitions: List[DiskPartition] = Field(default_factory=list)


class MachineFile(_Model):
    content: str = ""
    permissions: UInt32 = 0
    path: str = ""
    op: str = ""


class InstallConfig(_Model):
    disk: str = ""
    extra_kernel_args: List[str] = Field(default_factory=list)
    image: str = ""
    bootloader: bool = False
    wipe: bool = False

    def resolved_disk(self) -> str:
        return self.disk or defaults.INSTALL_DISK

    def resolved_image(self) -> str:
        return self.image or defaults.INSTALLER_IMAGE


class TimeConfig(_Model):
    disabled: bool = False
    servers: List[str] = Field(default_factory=list)

    def resolved_servers(self) -> List[str]:
        return list(self.servers) or [defaults.TIME_SERVER]


class Mount(_Model):
    destination: str = ""
    type: str = ""
    source: str = ""
    options: List[str] = Field(default_factory=list)


class KubeletConfig(_Model):
    image: str = ""
    extra_args: StrMap = Field(default_factory=dict)
    extra_mounts: List[Mount] = Field(default_factory=list)

    def resolved_image(self) -> str:
        return self.image or defaults.KUBELET_IMAGE


# ------------------------------------------------------------------------------
# Registries
# ------------------------------------------------------------------------------

class RegistryMirrorConfig(_Model):
    # first endpoint is preferred, the rest are fallbacks
    endpoints: List[str] = Field(default_factory=list)


class RegistryAuthConfig(_Model):
    username: str = ""
    password: str = ""
    auth: str = ""
    identity_token: str = ""


class RegistryTLSConfig(_Model):
    client_identity: Optional[PEMEncodedCertificateAndKey] = None
    ca: str = ""
    insecure_skip_verify: bool = False

    @field_validator("ca")
    @classmethod
    def _ca_base64(cls, v: str) -> str:
        return _check_base64(v) if v else v


class RegistryConfig(_Model):
    tls: Optional[RegistryTLSConfig] = None
    auth: Optional[RegistryAuthConfig] = None


class RegistriesConfig(_Model):
    mirrors: Dict[str, RegistryMirrorConfig] = Field(default_factory=dict)
    config: Dict[str, RegistryConfig] = Field(default_factory=dict)


# ------------------------------------------------------------------------------
# Machine
# ------------------------------------------------------------------------------

class MachineConfig(_Model):
    machine_type: str = Field(default="", alias="type")
    token: str = ""
    ca: Optional[PEMEncodedCertificateAndKey] = None
    cert_sans: List[str] = Field(default_factory=list, alias="certSANs")
    kubelet: Optional[KubeletConfig] = None
    network: Optional[NetworkConfig] = None
    disks: List[MachineDisk] = Field(default_factory=list)
    install: Optional[InstallConfig] = None
    files: List[MachineFile] = Field(default_factory=list)
    env: StrMap = Field(default_factory=dict)
    time: Optional[TimeConfig] = None
    sysctls: StrMap = Field(default_factory=dict)
    registries: RegistriesConfig = Field(default_factory=RegistriesConfig)

    def interfaces(self) -> List[Device]:
        return list(self.network.interfaces) if self.network else []


# ------------------------------------------------------------------------------
# Cluster
# ------------------------------------------------------------------------------

class ControlPlaneConfig(_Model):
    endpoint: Optional[Endpoint] = None
    local_api_server_port: int = Field(default=0, ge=0, le=65535, alias="localAPIServerPort")

    @field_validator("endpoint", mode="before")
    @classmethod
    def _parse_endpoint(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Endpoint.parse(v)
        return v

    @field_serializer("endpoint")
    def _format_endpoint(self, v: Optional[Endpoint]) -> Optional[str]:
        return v.format() if v is not None else None

    def resolved_local_api_server_port(self) -> int:
        return self.local_api_server_port or defaults.LOCAL_API_SERVER_PORT


class CNIConfig(_Model):
    name: str = ""
    urls: List[str] = Field(default_factory=list)


class ClusterNetworkConfig(_Model):
    cni: Optional[CNIConfig] = None
    dns_domain: str = ""
    pod_subnets: List[str] = Field(default_factory=list)
    service_subnets: List[str] = Field(default_factory=list)

    def resolved_cni_name(self) -> str:
        return self.cni.name if self.cni and self.cni.name else defaults.CNI_NAME

    def resolved_dns_domain(self) -> str:
        return self.dns_domain or defaults.DNS_DOMAIN

    def resolved_pod_subnets(self) -> List[str]:
        return list(self.pod_subnets) or [defaults.POD_SUBNET]

    def resolved_service_subnets(self) -> List[str]:
        return list(self.service_subnets) or [defaults.SERVICE_SUBNET]


class _ComponentConfig(_Model):
    image: str = ""
    extra_args: StrMap = Field(default_factory=dict)

    default_image: ClassVar[str] = ""

    def resolved_image(self) -> str:
        return self.image or self.default_image


class APIServerConfig(_ComponentConfig):
    cert_sans: List[str] = Field(default_factory=list, alias="certSANs")

    default_image: ClassVar[str] = defaults.API_SERVER_IMAGE


class ControllerManagerConfig(_ComponentConfig):
    default_image: ClassVar[str] = defaults.CONTROLLER_MANAGER_IMAGE


class SchedulerConfig(_ComponentConfig):
    default_image: ClassVar[str] = defaults.SCHEDULER_IMAGE


class ProxyConfig(_ComponentConfig):
    mode: str = ""

    default_image: ClassVar[str] = defaults.PROXY_IMAGE

    def resolved_mode(self) -> str:
        return self.mode or defaults.PROXY_MODE


class EtcdConfig(_ComponentConfig):
    ca: Optional[PEMEncodedCertificateAndKey] = None

    default_image: ClassVar[str] = defaults.ETCD_IMAGE


class PodCheckpointer(_Model):
    image: str = ""


class CoreDNS(_Model):
    image: str = ""

    def resolved_image(self) -> str:
        return self.image or defaults.COREDNS_IMAGE


class AdminKubeconfigConfig(_Model):
    cert_lifetime: Optional[timedelta] = None

    @field_validator("cert_lifetime", mode="before")
    @classmethod
    def _parse_lifetime(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_duration(v)
        return v

    @field_serializer("cert_lifetime")
    def _format_lifetime(self, v: Optional[timedelta]) -> Optional[str]:
        return format_duration(v) if v is not None else None

    def resolved_cert_lifetime(self) -> timedelta:
        return self.cert_lifetime or defaults.ADMIN_KUBECONFIG_CERT_LIFETIME


class ClusterConfig(_Model):
    control_plane: Optional[ControlPlaneConfig] = None
    cluster_name: str = ""
    network: Optional[ClusterNetworkConfig] = None
    token: str = ""
    aescbc_encryption_secret: str = Field(default="", alias="aescbcEncryptionSecret")
    ca: Optional[PEMEncodedCertificateAndKey] = None
    api_server: Optional[APIServerConfig] = None
    controller_manager: Optional[ControllerManagerConfig] = None
    proxy: Optional[ProxyConfig] = None
    scheduler: Optional[SchedulerConfig] = None
    etcd: Optional[EtcdConfig] = None
    pod_checkpointer: Optional[PodCheckpointer] = None
    core_dns: Optional[CoreDNS] = Field(default=None, alias="coreDNS")
    extra_manifests: List[str] = Field(default_factory=list)
    extra_manifest_headers: StrMap = Field(default_factory=dict)
    admin_kubeconfig: AdminKubeconfigConfig = Field(default_factory=AdminKubeconfigConfig)
    allow_scheduling_on_masters: bool = False

    def endpoint(self) -> Optional[Endpoint]:
        return self.control_plane.endpoint if self.control_plane else None


# ------------------------------------------------------------------------------
# Root
# ------------------------------------------------------------------------------

class Config(_Model):
    """The ``v1alpha1`` configuration document."""

    version: str = ""
    debug: bool = False
    persist: bool = False
    machine: Optional[MachineConfig] = None
    cluster: Optional[ClusterConfig] = None

    def pem_pairs(self) -> Dict[str, PEMEncodedCertificateAndKey]:
        """Every certificate/key pair in the document, keyed by YAML path."""
        pairs: Dict[str, PEMEncodedCertificateAndKey] = {}
        if self.machine is not None:
            if self.machine.ca is not None:
                pairs["machine.ca"] = self.machine.ca
            for name, reg in self.machine.registries.config.items():
                if reg.tls is not None and reg.tls.client_identity is not None:
                    pairs[f"machine.registries.config.{name}.tls.clientIdentity"] = (
                        reg.tls.client_identity
                    )
        if self.cluster is not None:
            if self.cluster.ca is not None:
                pairs["cluster.ca"] = self.cluster.ca
            if self.cluster.etcd is not None and self.cluster.etcd.ca is not None:
                pairs["cluster.etcd.ca"] = self.cluster.etcd.ca
        return pairs
