# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/config/validate.py

from __future__ import annotations

import ipaddress
import logging
from typing import List

from nodecfg.machine.disks import validate_disks
from nodecfg.machine.network import validate_devices
from nodecfg.machine.registries import validate_registries

from .errors import ValidationFailed, Violation
from .v1alpha1 import defaults
from .v1alpha1.models import Config, MachineConfig

log = logging.getLogger("nodecfg.config")


def _validate_pem_pairs(cfg: Config) -> List[Violation]:
    out: List[Violation] = []
    for path, pair in cfg.pem_pairs().items():
        if pair.is_half_populated:
            missing = "key" if pair.crt else "crt"
            out.append(Violation(
                path, "pem-pair-incomplete",
                f"certificate and key must be set together, {missing} is missing",
            ))
    return out


def _validate_machine(machine: MachineConfig) -> List[Violation]:
    out: List[Violation] = []
    if machine.machine_type not in defaults.MACHINE_TYPES:
        out.append(Violation(
            "machine.type", "machine-type-invalid",
            f"{machine.machine_type!r} is not one of {', '.join(defaults.MACHINE_TYPES)}",
        ))

    if machine.network is not None:
        out.extend(validate_devices(machine.network.interfaces))
        for i, host in enumerate(machine.network.extra_host_entries):
            try:
                ipaddress.ip_address(host.ip)
            except ValueError:
                out.append(Violation(
                    f"machine.network.extraHostEntries[{i}].ip", "invalid-host-ip",
                    f"{host.ip!r} is not an IP address",
                ))

    out.extend(validate_disks(machine.disks))

    for i, f in enumerate(machine.files):
        if f.op not in defaults.FILE_OPS:
            out.append(Violation(
                f"machine.files[{i}].op", "file-op-invalid",
                f"{f.op!r} is not one of {', '.join(defaults.FILE_OPS)}",
            ))

    out.extend(validate_registries(machine.registries))
    return out


def validate_config(cfg: Config) -> List[Violation]:
    """
    Every semantic problem in *cfg*.

    Sections are checked independently, so one bad interface does not hide
    a bad disk.
    """
    out: List[Violation] = []
    if cfg.machine is not None:
        out.extend(_validate_machine(cfg.machine))

    if cfg.cluster is not None and cfg.cluster.endpoint() is None:
        out.append(Violation(
            "cluster.controlPlane.endpoint", "endpoint-required",
            "the control plane endpoint must be set",
        ))

    out.extend(_validate_pem_pairs(cfg))

    log.debug("validation found %d violation(s)", len(out))
    return out


def ensure_valid(cfg: Config) -> Config:
    """Return *cfg* unchanged, or raise ValidationFailed with every violation."""
    violations = validate_config(cfg)
    if violations:
        raise ValidationFailed(violations)
    return cfg
