import subprocess
from unittest.mock import MagicMock

import pytest

import zfs_manager_core
from models import DatasetName, DatasetType, HealthState
from samples import IMPORT_SCAN, NOT_FOUND_STDERR, SIMPLE_MIRROR, TYPED_DATASET_LIST
from topology import DeviceGroupSpec, TopologyRequest
from zfs_errors import DatasetNotFoundError, InsufficientDevicesError, ZfsCommandError

ZPOOL = "/sbin/zpool"
ZFS = "/sbin/zfs"


def _completed(stdout="", stderr="", returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode,
                                       stdout=stdout.encode(), stderr=stderr.encode())


@pytest.fixture
def run_mock(monkeypatch):
    monkeypatch.setattr(zfs_manager_core, "ZPOOL_CMD_PATH", ZPOOL)
    monkeypatch.setattr(zfs_manager_core, "ZFS_CMD_PATH", ZFS)
    mock = MagicMock(return_value=_completed())
    monkeypatch.setattr(zfs_manager_core.subprocess, "run", mock)
    return mock


def _called_parts(run_mock):
    return run_mock.call_args.args[0]


class TestCreateAndAdd:
    def test_create_pool_command(self, run_mock):
        request = TopologyRequest("tank", [DeviceGroupSpec.mirror("/dev/da0", "/dev/da1")])
        zfs_manager_core.create_pool(request, options={"ashift": "12", "compression": "lz4", "bogus": "x"}, force=True)

        assert _called_parts(run_mock) == [
            ZPOOL, "create", "-f", "-o", "ashift=12", "-O", "compression=lz4",
            "tank", "mirror", "/dev/da0", "/dev/da1",
        ]

    def test_invalid_topology_runs_nothing(self, run_mock):
        request = TopologyRequest("tank", [DeviceGroupSpec.raidz(2, "/dev/da0", "/dev/da1")])
        with pytest.raises(InsufficientDevicesError):
            zfs_manager_core.create_pool(request)
        run_mock.assert_not_called()

    def test_create_failure(self, run_mock):
        run_mock.return_value = _completed(stderr="cannot create 'tank': pool already exists\n", returncode=1)
        request = TopologyRequest("tank", [DeviceGroupSpec.leaf("/dev/da0")])
        with pytest.raises(ZfsCommandError) as exc_info:
            zfs_manager_core.create_pool(request)
        assert exc_info.value.returncode == 1
        assert "pool already exists" in str(exc_info.value)

    def test_add_vdevs_command(self, run_mock):
        zfs_manager_core.add_vdevs("tank", [DeviceGroupSpec.mirror("da2", "da3")], spares=["da4"])
        assert _called_parts(run_mock) == [ZPOOL, "add", "tank", "mirror", "da2", "da3", "spare", "da4"]

    def test_missing_zpool_binary(self, run_mock, monkeypatch):
        monkeypatch.setattr(zfs_manager_core, "ZPOOL_CMD_PATH", None)
        with pytest.raises(ZfsCommandError, match="zpool command not found"):
            zfs_manager_core.get_pool_status("tank")


class TestPoolStatus:
    def test_get_pool_status(self, run_mock):
        run_mock.return_value = _completed(stdout=SIMPLE_MIRROR)
        report = zfs_manager_core.get_pool_status("tank")

        assert _called_parts(run_mock) == [ZPOOL, "status", "-p", "-P", "tank"]
        assert report.name == "tank"
        assert report.state is HealthState.ONLINE

    def test_get_pool_status_unknown_pool(self, run_mock):
        run_mock.return_value = _completed(stderr="cannot open 'nope': no such pool\n", returncode=1)
        with pytest.raises(ZfsCommandError) as exc_info:
            zfs_manager_core.get_pool_status("nope")
        assert exc_info.value.command_parts == [ZPOOL, "status", "-p", "-P", "nope"]

    def test_list_pool_statuses_without_pools(self, run_mock):
        run_mock.return_value = _completed(stdout="no pools available\n")
        assert zfs_manager_core.list_pool_statuses() == []

    def test_list_importable_pools(self, run_mock):
        run_mock.return_value = _completed(stdout=IMPORT_SCAN)
        reports = zfs_manager_core.list_importable_pools(search_dirs=["/vdevs/import"])

        assert _called_parts(run_mock) == [ZPOOL, "import", "-d", "/vdevs/import"]
        assert [r.name for r in reports] == ["naked_test", "mirrored"]

    @pytest.mark.parametrize("stdout,stderr", [("", ""), ("", "no pools available to import\n")])
    def test_nothing_to_import(self, run_mock, stdout, stderr):
        run_mock.return_value = _completed(stdout=stdout, stderr=stderr, returncode=1)
        assert zfs_manager_core.list_importable_pools() == []

    def test_import_scan_failure(self, run_mock):
        run_mock.return_value = _completed(stderr="cannot import: permission denied\n", returncode=1)
        with pytest.raises(ZfsCommandError):
            zfs_manager_core.list_importable_pools()


class TestDatasets:
    def test_list_datasets(self, run_mock):
        run_mock.return_value = _completed(stdout="tank\ntank/home\n")
        names = zfs_manager_core.list_datasets("tank")

        assert _called_parts(run_mock) == [ZFS, "list", "-H", "-o", "name", "-r", "tank"]
        assert names == [DatasetName(("tank",)), DatasetName(("tank", "home"))]

    def test_list_datasets_not_recursive(self, run_mock):
        run_mock.return_value = _completed(stdout="tank\n")
        zfs_manager_core.list_datasets(recursive=False)
        assert _called_parts(run_mock) == [ZFS, "list", "-H", "-o", "name"]

    def test_list_datasets_with_type(self, run_mock):
        run_mock.return_value = _completed(stdout=TYPED_DATASET_LIST)
        entries = zfs_manager_core.list_datasets_with_type()

        assert _called_parts(run_mock) == [
            ZFS, "list", "-H", "-o", "type,name", "-t", "filesystem,volume,snapshot,bookmark", "-r",
        ]
        assert entries[2] == (DatasetType.VOLUME, DatasetName(("tank", "vol0")))

    def test_missing_dataset(self, run_mock):
        run_mock.return_value = _completed(stderr=NOT_FOUND_STDERR, returncode=1)
        with pytest.raises(DatasetNotFoundError) as exc_info:
            zfs_manager_core.list_datasets("tank/missing")
        assert exc_info.value.dataset == DatasetName(("tank", "missing"))
        assert exc_info.value.returncode == 1

    def test_dataset_exists(self, run_mock):
        assert zfs_manager_core.dataset_exists("tank") is True
        run_mock.return_value = _completed(stderr=NOT_FOUND_STDERR, returncode=1)
        assert zfs_manager_core.dataset_exists("tank/missing") is False

    def test_dataset_exists_other_failure(self, run_mock):
        run_mock.return_value = _completed(stderr="permission denied\n", returncode=1)
        with pytest.raises(ZfsCommandError) as exc_info:
            zfs_manager_core.dataset_exists("tank")
        assert not isinstance(exc_info.value, DatasetNotFoundError)


class TestRunner:
    def test_timeout_from_config(self, run_mock, write_config):
        write_config({"command_timeout": 5})
        run_mock.return_value = _completed(stdout="tank\n")
        zfs_manager_core.list_datasets()
        assert run_mock.call_args.kwargs["timeout"] == 5

    def test_timeout_expired(self, run_mock):
        run_mock.side_effect = subprocess.TimeoutExpired(cmd="zpool", timeout=120)
        with pytest.raises(ZfsCommandError) as exc_info:
            zfs_manager_core.get_pool_status("tank")
        assert exc_info.value.returncode == -1
        assert "timed out after 120 seconds" in exc_info.value.stderr

    def test_binary_vanished(self, run_mock):
        run_mock.side_effect = FileNotFoundError()
        returncode, stdout, stderr = zfs_manager_core._run_command([ZPOOL, "status"])
        assert returncode == -1
        assert "Command not found" in stderr

    def test_command_log(self, run_mock, write_config, tmp_path):
        write_config({"command_log_enabled": True})
        run_mock.return_value = _completed(stdout=SIMPLE_MIRROR)
        zfs_manager_core.get_pool_status("tank")

        log_text = (tmp_path / "commands.log").read_text()
        assert "COMMAND: /sbin/zpool status -p -P tank" in log_text
        assert "RETURN CODE: 0" in log_text

    def test_command_log_disabled_by_default(self, run_mock, tmp_path):
        run_mock.return_value = _completed(stdout=SIMPLE_MIRROR)
        zfs_manager_core.get_pool_status("tank")
        assert not (tmp_path / "commands.log").exists()
