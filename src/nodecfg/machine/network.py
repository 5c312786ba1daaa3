# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/machine/network.py

"""
Queries and checks over the ``machine.network.interfaces`` list.

Nothing here touches a real interface. Provisioning merges what a DHCP
lease returned with the static values using ``effective_routes`` and
``effective_mtu``; interfaces not listed in the config are left to the
"DHCP everything" default and never reach this module.
"""

from __future__ import annotations

import ipaddress
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from nodecfg.config.errors import Violation
from nodecfg.config.v1alpha1.models import Device, Route, Vlan

DEFAULT_MTU = 1500
DEFAULT_ROUTE_METRIC = 1024

VLAN_ID_MIN = 1
VLAN_ID_MAX = 4094


def _check_cidr(cidr: str, path: str) -> List[Violation]:
    try:
        ipaddress.ip_interface(cidr)
    except ValueError as exc:
        return [Violation(path, "invalid-cidr", f"{cidr!r} is not in CIDR notation: {exc}")]
    if "/" not in cidr:
        return [Violation(path, "invalid-cidr", f"{cidr!r} is missing a prefix length")]
    return []


def _check_routes(routes: Sequence[Route], path: str) -> List[Violation]:
    out: List[Violation] = []
    for i, route in enumerate(routes):
        rpath = f"{path}[{i}]"
        try:
            ipaddress.ip_network(route.network, strict=False)
        except ValueError:
            out.append(Violation(
                f"{rpath}.network", "invalid-route-network",
                f"{route.network!r} is not a network address",
            ))
        # an empty gateway is an on-link route
        if route.gateway:
            try:
                ipaddress.ip_address(route.gateway)
            except ValueError:
                out.append(Violation(
                    f"{rpath}.gateway", "invalid-route-gateway",
                    f"{route.gateway!r} is not an IP address",
                ))
    return out


def _check_addressing(cidr: str, dhcp: bool, routes: Sequence[Route], path: str) -> List[Violation]:
    out: List[Violation] = []
    if cidr and dhcp:
        out.append(Violation(
            path, "cidr-dhcp-exclusive",
            "cidr and dhcp are mutually exclusive; set one of them (or neither for SLAAC)",
        ))
    if cidr:
        out.extend(_check_cidr(cidr, f"{path}.cidr"))
    out.extend(_check_routes(routes, f"{path}.routes"))
    return out


def _check_vlans(vlans: Sequence[Vlan], path: str) -> List[Violation]:
    out: List[Violation] = []
    for i, vlan in enumerate(vlans):
        vpath = f"{path}[{i}]"
        if not VLAN_ID_MIN <= vlan.vlan_id <= VLAN_ID_MAX:
            out.append(Violation(
                f"{vpath}.vlanId", "vlan-id-range",
                f"vlan id {vlan.vlan_id} is outside {VLAN_ID_MIN}-{VLAN_ID_MAX}",
            ))
        out.extend(_check_addressing(vlan.cidr, vlan.dhcp, vlan.routes, vpath))

    # uniqueness is per parent device; the same id on two devices is fine
    counts = Counter(v.vlan_id for v in vlans)
    for vid, n in sorted(counts.items()):
        if n > 1:
            out.append(Violation(
                path, "vlan-id-duplicate", f"vlan id {vid} is declared {n} times",
            ))
    return out


def validate_device(device: Device, path: str = "device") -> List[Violation]:
    """
    Return every violation found on *device*.

    An ignored device is only checked for a name; its other fields have no
    effect, so they are not held against it.
    """
    out: List[Violation] = []
    if not device.interface:
        out.append(Violation(f"{path}.interface", "interface-required", "interface name is empty"))

    if device.ignore:
        return out

    out.extend(_check_addressing(device.cidr, device.dhcp, device.routes, path))

    if device.dummy and device.bond is not None:
        out.append(Violation(
            f"{path}.bond", "dummy-bond-conflict", "a dummy interface cannot be a bond",
        ))

    if device.bond is not None and not device.bond.interfaces:
        out.append(Violation(
            f"{path}.bond.interfaces", "bond-interfaces-required",
            "a bond needs at least one member interface",
        ))

    out.extend(_check_vlans(device.vlans, f"{path}.vlans"))
    return out


def validate_devices(
    devices: Iterable[Device], path: str = "machine.network.interfaces"
) -> List[Violation]:
    devices = list(devices)
    out: List[Violation] = []
    for i, device in enumerate(devices):
        out.extend(validate_device(device, f"{path}[{i}]"))

    counts = Counter(d.interface for d in devices if d.interface)
    for name, n in sorted(counts.items()):
        if n > 1:
            out.append(Violation(
                path, "interface-duplicate", f"interface {name!r} is configured {n} times",
            ))
    return out


def effective_routes(device: Device, dhcp_routes: Iterable[Route] = ()) -> List[Route]:
    """
    Static routes first, then whatever DHCP handed out.

    Order inside each group is kept and duplicates are not collapsed; the
    routing table is the network layer's business.
    """
    if device.ignore:
        return []
    return [*device.routes, *dhcp_routes]


def effective_mtu(device: Device, dhcp_mtu: Optional[int] = None) -> int:
    if device.mtu and not device.ignore:
        return device.mtu
    if dhcp_mtu:
        return dhcp_mtu
    return DEFAULT_MTU


def effective_route_metric(device: Device) -> Optional[int]:
    """Metric for DHCP-learned routes, or None when the device does not use DHCP."""
    if device.ignore or not device.dhcp:
        return None
    if device.dhcp_options is not None and device.dhcp_options.route_metric:
        return device.dhcp_options.route_metric
    return DEFAULT_ROUTE_METRIC
