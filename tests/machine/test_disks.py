import pytest

from nodecfg.config.errors import InsufficientSpaceError
from nodecfg.config.v1alpha1.models import DiskPartition, MachineDisk
from nodecfg.machine.disks import (
    DiskInfo,
    check_disks,
    plan_partitions,
    resolve_size,
    validate_disk,
    validate_disks,
)


def _disk(*parts, device="/dev/sdb"):
    return MachineDisk(device=device, partitions=[DiskPartition(size=s, mountpoint=m) for s, m in parts])


def _rules(violations):
    return [v.rule for v in violations]


def test_remainder_partition_gets_what_is_left():
    disk = _disk((100000000, "/var/a"), (0, "/var/b"))
    first, second = disk.partitions
    assert resolve_size(first, 500000000) == 100000000
    assert resolve_size(second, 500000000 - 100000000) == 400000000


def test_plan_lays_out_partitions_in_order():
    plan = plan_partitions(_disk((100000000, "/var/a"), (0, "/var/b")), 500000000)
    assert [(p.number, p.mountpoint, p.start, p.size) for p in plan.partitions] == [
        (1, "/var/a", 0, 100000000),
        (2, "/var/b", 100000000, 400000000),
    ]
    assert plan.allocated == 500000000


def test_plan_is_applied_only_to_pristine_disks():
    plan = plan_partitions(_disk((100, "/var/a")), 1000)
    assert plan.should_apply(0)
    assert not plan.should_apply(2)


def test_fixed_sizes_larger_than_disk():
    with pytest.raises(InsufficientSpaceError) as ei:
        plan_partitions(_disk((300, "/var/a"), (300, "/var/b")), 500)
    assert ei.value.required == 600
    assert ei.value.available == 500


def test_resolve_size_rejects_partition_that_does_not_fit():
    with pytest.raises(InsufficientSpaceError):
        resolve_size(DiskPartition(size=600, mountpoint="/var/a"), 500)
    with pytest.raises(InsufficientSpaceError):
        resolve_size(DiskPartition(size=0, mountpoint="/var/a"), 0)


def test_two_remainder_partitions_are_rejected():
    rules = _rules(validate_disk(_disk((0, "/var/a"), (0, "/var/b"))))
    assert "multiple-remainder-partitions" in rules


def test_remainder_partition_must_be_last():
    violations = validate_disk(_disk((0, "/var/a"), (100, "/var/b")))
    assert _rules(violations) == ["remainder-partition-not-last"]
    assert violations[0].path == "disk.partitions[0]"


def test_mountpoints_must_be_absolute():
    violations = validate_disk(_disk((100, "var/a"), (0, "")))
    assert _rules(violations) == ["mountpoint-not-absolute", "mountpoint-not-absolute"]


def test_device_name_required():
    assert _rules(validate_disk(_disk((0, "/var/a"), device=""))) == ["device-required"]


def test_valid_disk():
    assert validate_disk(_disk((100000000, "/var/a"), (0, "/var/b"))) == []


def test_duplicate_mountpoints_across_disks():
    disks = [
        _disk((100, "/var/a"), device="/dev/sdb"),
        _disk((0, "/var/a/"), device="/dev/sdc"),
    ]
    violations = validate_disks(disks)
    assert _rules(violations) == ["mountpoint-duplicate"]
    assert violations[0].path == "machine.disks"


def test_duplicate_devices():
    disks = [_disk((100, "/var/a")), _disk((100, "/var/b"))]
    assert _rules(validate_disks(disks)) == ["device-duplicate"]


def test_check_disks_against_discovered_devices():
    disks = [
        _disk((100000000, "/var/a"), (0, "/var/b"), device="/dev/sdb"),
        _disk((100, "/var/c"), device="/dev/sdc"),
        _disk((5000, "/var/d"), device="/dev/sdd"),
    ]
    discovered = [
        DiskInfo(device_name="/dev/sdb", size=500000000, model="QEMU HARDDISK"),
        DiskInfo(device_name="/dev/sdd", size=1000),
    ]
    violations = check_disks(disks, discovered)
    assert [(v.path, v.rule) for v in violations] == [
        ("machine.disks[1].device", "disk-not-found"),
        ("machine.disks[2].partitions", "insufficient-space"),
    ]
