# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/machine/disks.py

from __future__ import annotations

import posixpath
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from nodecfg.config.errors import InsufficientSpaceError, Violation
from nodecfg.config.v1alpha1.models import DiskPartition, MachineDisk


@dataclass(frozen=True)
class DiskInfo:
    """
    One block device as reported by the disk enumeration service.
    """
    device_name: str
    size: int
    model: str = ""


@dataclass(frozen=True)
class PlannedPartition:
    number: int         # 1-based, in config order
    mountpoint: str
    start: int          # byte offset from the first usable byte
    size: int


@dataclass(frozen=True)
class PartitionPlan:
    """
    Desired partition table for one disk.

    Partitioning happens at most once: a disk that already carries
    partitions is left alone, see ``should_apply``.
    """
    device: str
    capacity: int
    partitions: List[PlannedPartition] = field(default_factory=list)

    def should_apply(self, existing_partitions: int) -> bool:
        return existing_partitions == 0

    @property
    def allocated(self) -> int:
        return sum(p.size for p in self.partitions)


def fixed_size(disk: MachineDisk) -> int:
    """Bytes claimed by the partitions that have an explicit size."""
    return sum(p.size for p in disk.partitions)


def validate_disk(disk: MachineDisk, path: str = "disk") -> List[Violation]:
    out: List[Violation] = []
    if not disk.device:
        out.append(Violation(f"{path}.device", "device-required", "device name is empty"))

    remainder = [i for i, p in enumerate(disk.partitions) if p.size == 0]
    if len(remainder) > 1:
        out.append(Violation(
            f"{path}.partitions", "multiple-remainder-partitions",
            f"only one partition may take the remaining space, found {len(remainder)}",
        ))
    misplaced = [i for i in remainder if i != len(disk.partitions) - 1]
    if misplaced:
        out.append(Violation(
            f"{path}.partitions[{misplaced[0]}]", "remainder-partition-not-last",
            "a size 0 partition must be the last one on the disk",
        ))

    for i, part in enumerate(disk.partitions):
        if not posixpath.isabs(part.mountpoint):
            out.append(Violation(
                f"{path}.partitions[{i}].mountpoint", "mountpoint-not-absolute",
                f"{part.mountpoint!r} is not an absolute path",
            ))
    return out


def validate_disks(disks: Iterable[MachineDisk], path: str = "machine.disks") -> List[Violation]:
    disks = list(disks)
    out: List[Violation] = []
    for i, disk in enumerate(disks):
        out.extend(validate_disk(disk, f"{path}[{i}]"))

    mounts = Counter(
        posixpath.normpath(p.mountpoint)
        for d in disks for p in d.partitions if p.mountpoint
    )
    for mp, n in sorted(mounts.items()):
        if n > 1:
            out.append(Violation(
                path, "mountpoint-duplicate", f"{mp} is mounted {n} times",
            ))

    devices = Counter(d.device for d in disks if d.device)
    for dev, n in sorted(devices.items()):
        if n > 1:
            out.append(Violation(path, "device-duplicate", f"{dev} is listed {n} times"))
    return out


def resolve_size(partition: DiskPartition, remaining: int) -> int:
    """
    Size in bytes *partition* ends up with when *remaining* bytes are still free.
    """
    if partition.size:
        if partition.size > remaining:
            raise InsufficientSpaceError(
                f"partition for {partition.mountpoint} needs {partition.size} bytes, "
                f"only {remaining} left",
                required=partition.size,
                available=remaining,
            )
        return partition.size

    if remaining <= 0:
        raise InsufficientSpaceError(
            f"no space left for remainder partition {partition.mountpoint}",
            required=1,
            available=max(remaining, 0),
        )
    return remaining


def plan_partitions(disk: MachineDisk, capacity: int) -> PartitionPlan:
    """
    Lay the configured partitions out on a disk of *capacity* bytes.

    Raises InsufficientSpaceError when the fixed sizes alone do not fit.
    """
    need = fixed_size(disk)
    if need > capacity:
        raise InsufficientSpaceError(
            f"{disk.device}: partitions need {need} bytes, disk has {capacity}",
            required=need,
            available=capacity,
        )

    planned: List[PlannedPartition] = []
    offset = 0
    for i, part in enumerate(disk.partitions, start=1):
        size = resolve_size(part, capacity - offset)
        planned.append(PlannedPartition(number=i, mountpoint=part.mountpoint, start=offset, size=size))
        offset += size

    return PartitionPlan(device=disk.device, capacity=capacity, partitions=planned)


def check_disks(
    disks: Iterable[MachineDisk],
    discovered: Iterable[DiskInfo],
    path: str = "machine.disks",
) -> List[Violation]:
    """
    Hold the configured disks against what the node actually has.
    """
    by_name = {d.device_name: d for d in discovered}
    out: List[Violation] = []
    for i, disk in enumerate(disks):
        info: Optional[DiskInfo] = by_name.get(disk.device)
        if info is None:
            out.append(Violation(
                f"{path}[{i}].device", "disk-not-found", f"{disk.device} is not present on this node",
            ))
            continue
        try:
            plan_partitions(disk, info.size)
        except InsufficientSpaceError as exc:
            out.append(Violation(f"{path}[{i}].partitions", "insufficient-space", str(exc)))
    return out
