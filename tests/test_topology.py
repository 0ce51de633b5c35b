import pytest

from models import RedundancyKind, UnrecognizedKind
from parsers.zpool import parse_pool_report, parse_pool_reports
from samples import DEGRADED_POOL, IMPORT_SCAN, RAIDZ2_WITH_AUX_DEVICES, SPARE_IN_USE
from topology import (DeviceGroupSpec, TopologyRequest, build_add_args, build_create_args,
                      validate_pool_name)
from zfs_errors import (DuplicateDeviceError, EmptyTopologyError, InsufficientDevicesError,
                        InvalidPoolNameError, TopologyError, UnsupportedNestingError)


def test_mirror_args():
    request = TopologyRequest("tank", [DeviceGroupSpec.mirror("/dev/da0", "/dev/da1")])
    assert build_create_args(request) == ["mirror", "/dev/da0", "/dev/da1"]


def test_single_device():
    request = TopologyRequest("tank", [DeviceGroupSpec.leaf("/dev/da0")])
    assert build_create_args(request) == ["/dev/da0"]


def test_raidz1_below_minimum():
    request = TopologyRequest("tank", [DeviceGroupSpec.raidz(1, "/dev/da0")])
    with pytest.raises(InsufficientDevicesError) as exc_info:
        build_create_args(request)
    err = exc_info.value
    assert (err.kind, err.required, err.got) == ("raidz1", 2, 1)


@pytest.mark.parametrize("kind,required", [
    (RedundancyKind.MIRROR, 2),
    (RedundancyKind.RAIDZ1, 2),
    (RedundancyKind.RAIDZ2, 3),
    (RedundancyKind.RAIDZ3, 4),
])
def test_every_kind_below_minimum(kind, required):
    for count in range(1, required):
        devices = [f"/dev/da{n}" for n in range(count)]
        request = TopologyRequest("tank", [DeviceGroupSpec.leaf("/dev/ada9"), DeviceGroupSpec(kind, devices)])
        with pytest.raises(InsufficientDevicesError) as exc_info:
            build_create_args(request)
        assert exc_info.value.required == required
        assert exc_info.value.got == count


@pytest.mark.parametrize("kind,count", [("mirror", 2), ("raidz1", 2), ("raidz2", 3), ("raidz3", 4)])
def test_every_kind_at_minimum(kind, count):
    devices = [f"/dev/da{n}" for n in range(count)]
    assert build_create_args(TopologyRequest("tank", [DeviceGroupSpec.group(kind, devices)])) == [kind] + devices


def test_mixed_forest_order_is_pinned():
    request = TopologyRequest("tank", [
        DeviceGroupSpec.raidz(2, "da0", "da1", "da2"),
        DeviceGroupSpec.leaf("da3"),
        DeviceGroupSpec.group("mirror", ["da4", "da5"], index=1),
    ])
    assert build_create_args(request) == ["raidz2", "da0", "da1", "da2", "da3", "mirror-1", "da4", "da5"]


def test_aux_sections():
    request = TopologyRequest(
        "tank",
        vdevs=[DeviceGroupSpec.mirror("da0", "da1")],
        logs=[DeviceGroupSpec.mirror("nvme0", "nvme1")],
        caches=["nvme2"],
        spares=["da2", "da3"],
        special=[DeviceGroupSpec.mirror("nvme3", "nvme4")],
    )
    assert build_create_args(request) == [
        "mirror", "da0", "da1",
        "special", "mirror", "nvme3", "nvme4",
        "log", "mirror", "nvme0", "nvme1",
        "cache", "nvme2",
        "spare", "da2", "da3",
    ]


@pytest.mark.parametrize("request_kwargs", [
    {"vdevs": [DeviceGroupSpec.mirror("da0", "da1"), DeviceGroupSpec.mirror("da2", "da0")]},
    {"vdevs": [DeviceGroupSpec.leaf("da0"), DeviceGroupSpec.leaf("da0")]},
    {"vdevs": [DeviceGroupSpec.mirror("da0", "da0")]},
    {"vdevs": [DeviceGroupSpec.leaf("da0")], "caches": ["da0"]},
    {"vdevs": [DeviceGroupSpec.leaf("da0")], "spares": ["da1", "da1"]},
    {"vdevs": [DeviceGroupSpec.leaf("da0")], "logs": [DeviceGroupSpec.leaf("da0")]},
])
def test_duplicates_anywhere(request_kwargs):
    with pytest.raises(DuplicateDeviceError) as exc_info:
        build_create_args(TopologyRequest("tank", **request_kwargs))
    assert exc_info.value.identifier in ("da0", "da1")


def test_duplicates_are_case_sensitive():
    request = TopologyRequest("tank", [DeviceGroupSpec.leaf("/dev/DA0"), DeviceGroupSpec.leaf("/dev/da0")])
    assert build_create_args(request) == ["/dev/DA0", "/dev/da0"]


def test_duplicates_reported_before_minimums():
    request = TopologyRequest("tank", [DeviceGroupSpec.raidz(3, "da0", "da0")])
    with pytest.raises(DuplicateDeviceError):
        build_create_args(request)


def test_empty_forest():
    with pytest.raises(EmptyTopologyError):
        build_create_args(TopologyRequest("tank", []))
    with pytest.raises(EmptyTopologyError):
        build_create_args(TopologyRequest("tank", [], caches=["nvme0"]))


def test_add_args():
    assert build_add_args("tank", [DeviceGroupSpec.mirror("da2", "da3")]) == ["mirror", "da2", "da3"]


def test_add_only_aux_devices():
    assert build_add_args("tank", [], caches=["nvme0"]) == ["cache", "nvme0"]
    with pytest.raises(EmptyTopologyError):
        build_add_args("tank", [])


@pytest.mark.parametrize("section", ["logs", "special", "dedup"])
@pytest.mark.parametrize("spec", [
    DeviceGroupSpec.raidz(1, "nvme0", "nvme1"),
    DeviceGroupSpec.raidz(2, "nvme0", "nvme1", "nvme2"),
    DeviceGroupSpec.raidz(3, "nvme0", "nvme1", "nvme2", "nvme3"),
])
def test_raidz_refused_in_aux_sections(section, spec):
    request = TopologyRequest("tank", [DeviceGroupSpec.mirror("da0", "da1")], **{section: [spec]})
    with pytest.raises(UnsupportedNestingError) as exc_info:
        build_create_args(request)
    assert exc_info.value.kind == spec.kind.token
    with pytest.raises(UnsupportedNestingError):
        build_add_args("tank", [], **{section: [spec]})


def test_aux_sections_accept_leaves_and_mirrors():
    request = TopologyRequest(
        "tank", [DeviceGroupSpec.raidz(1, "da0", "da1")],
        logs=[DeviceGroupSpec.leaf("nvme0")],
        dedup=[DeviceGroupSpec.mirror("nvme1", "nvme2")],
    )
    assert build_create_args(request) == [
        "raidz1", "da0", "da1", "dedup", "mirror", "nvme1", "nvme2", "log", "nvme0",
    ]


@pytest.mark.parametrize("name", ["", "1tank", "mirror", "raidz2", "spare", "log", "mirrorpool", "tank/home", "tank pool"])
def test_invalid_pool_names(name):
    with pytest.raises(InvalidPoolNameError):
        validate_pool_name(name)
    with pytest.raises(InvalidPoolNameError):
        build_create_args(TopologyRequest(name, [DeviceGroupSpec.leaf("da0")]))


@pytest.mark.parametrize("name", ["tank", "z", "backup-01", "pool_a.b:c"])
def test_valid_pool_names(name):
    validate_pool_name(name)


def test_spec_construction_errors():
    with pytest.raises(TopologyError):
        DeviceGroupSpec("stripe", ["da0", "da1"])
    with pytest.raises(TopologyError):
        DeviceGroupSpec(None, ["da0", "da1"])
    with pytest.raises(TopologyError):
        DeviceGroupSpec.mirror("da0", " da1")
    with pytest.raises(TypeError):
        DeviceGroupSpec(RedundancyKind.MIRROR, "da0")
    with pytest.raises(TopologyError):
        DeviceGroupSpec.raidz(4, "da0", "da1", "da2", "da3", "da4")
    with pytest.raises(TopologyError):
        DeviceGroupSpec(UnrecognizedKind("draid2"), ["da0", "da1", "da2"])


def test_round_trip_from_report():
    report = parse_pool_report(DEGRADED_POOL)
    request = TopologyRequest.from_report(report)

    assert all(spec.index is None for spec in request.vdevs)
    assert build_create_args(request) == ["mirror", "sda", "sdb", "mirror", "sdc", "sdd"]


def test_round_trip_with_aux_devices():
    request = TopologyRequest.from_report(parse_pool_report(RAIDZ2_WITH_AUX_DEVICES))
    assert build_create_args(request) == [
        "raidz2", "sda", "sdb", "sdc", "sdd",
        "special", "mirror", "nvme2n1", "nvme3n1",
        "log", "mirror", "nvme0n1", "nvme4n1", "sdg",
        "cache", "nvme1n1",
        "spare", "sdf", "sdh",
    ]


def test_round_trip_naked_leaves():
    naked = parse_pool_reports(IMPORT_SCAN)[0]
    assert build_create_args(TopologyRequest.from_report(naked)) == ["/vdevs/import/vdev0", "/vdevs/import/vdev1"]


def test_spare_in_use_cannot_be_recreated():
    report = parse_pool_report(SPARE_IN_USE)
    with pytest.raises(TopologyError, match="spare-0"):
        TopologyRequest.from_report(report)
