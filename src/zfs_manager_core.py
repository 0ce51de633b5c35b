# --- START OF FILE zfs_manager_core.py ---

import datetime # For logging timestamp
import os
import shlex
import stat # For setting log file permissions
import subprocess
from typing import Dict, List, Optional, Sequence, Tuple, Union

import config_manager
import constants
import debug_logging
import paths
from debug_logging import log_debug, log_error, log_info, log_warning
from models import DatasetName, DatasetType, PoolReport
from parsers.zfs import parse_dataset_list, parse_typed_dataset_list, try_parse_not_found_error
from parsers.zpool import parse_pool_report, parse_pool_reports
from topology import DeviceGroupSpec, TopologyRequest, build_add_args, build_create_args
from zfs_errors import DatasetNotFoundError, ZfsCommandError

# --- Find ZFS/ZPOOL Executables ---
# Use centralized helper from paths.py (search PATH and common platform locations)
ZFS_CMD_PATH = paths.find_executable("zfs")
ZPOOL_CMD_PATH = paths.find_executable("zpool")

debug_logging.configure_from_settings()


# --- Internal Command Runner ---
def _write_command_log(cmd_str: str, start_time, returncode: int, stdout: str, stderr: str):
    log_path = paths.COMMAND_LOG_FILE_PATH
    duration = datetime.datetime.now() - start_time
    try:
        log_dir = os.path.dirname(log_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        if not os.path.exists(log_path):
            open(log_path, 'a').close()
            try:
                # rw------- : the log can contain dataset names and device paths
                os.chmod(log_path, stat.S_IRUSR | stat.S_IWUSR)
            except OSError as perm_e:
                log_warning("CORE", f"Could not set permissions on log file {log_path}: {perm_e}")

        with open(log_path, 'a', encoding='utf-8') as log_file:
            log_file.write(f"--- {start_time.strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]} ---\n")
            log_file.write(f"COMMAND: {cmd_str}\n")
            log_file.write(f"RETURN CODE: {returncode}\n")
            log_file.write(f"DURATION: {duration.total_seconds():.3f}s\n")
            if stdout: log_file.write("STDOUT:\n"); log_file.write(stdout.strip() + "\n")
            if stderr: log_file.write("STDERR:\n"); log_file.write(stderr.strip() + "\n")
            log_file.write("\n")
    except (IOError, OSError) as log_e:
        log_error("CORE", f"Error writing to log file '{log_path}': {log_e}")


def _run_command(command_parts: List[str], *, log_enabled: Optional[bool] = None) -> Tuple[int, str, str]:
    """
    Runs a command using subprocess and returns (returncode, stdout, stderr).

    Launch failures and timeouts come back as returncode -1 with the reason in stderr.
    When log_enabled is None the 'command_log_enabled' setting decides.
    """
    if not command_parts or not command_parts[0]:
        err_msg = "Error: Invalid command parts provided to _run_command."
        log_error("CORE", err_msg)
        return -1, "", err_msg

    try:
        cmd_str_safe = shlex.join(command_parts)
    except TypeError:
        cmd_str_safe = str(command_parts) # Fallback

    if log_enabled is None:
        log_enabled = config_manager.get_bool_setting("command_log_enabled", constants.DEFAULT_LOGGING_ENABLED)
    timeout_seconds = config_manager.get_positive_int_setting("command_timeout", constants.DEFAULT_COMMAND_TIMEOUT)

    log_debug("CORE", f"Executing: {cmd_str_safe}")
    start_time = datetime.datetime.now()
    stdout, stderr, returncode = "", "", -1

    try:
        process = subprocess.run(
            command_parts,
            stdout=subprocess.PIPE, stderr=subprocess.PIPE,
            text=False, # Read bytes
            check=False, # Don't raise exception on non-zero exit
            timeout=timeout_seconds
        )
        returncode = process.returncode
        # Decode with error handling
        stdout = process.stdout.decode('utf-8', errors='replace') if process.stdout else ""
        stderr = process.stderr.decode('utf-8', errors='replace') if process.stderr else ""

        if returncode != 0:
            log_debug("CORE", f"Command failed (ret={returncode}) for: {cmd_str_safe}")
            if stderr: log_debug("CORE", f"Stderr:\n{stderr.strip()}")
    except FileNotFoundError:
        stderr = f"Error: Command not found: '{command_parts[0]}'."
        log_error("CORE", stderr)
    except PermissionError:
        stderr = f"Error: Permission denied executing '{command_parts[0]}'."
        log_error("CORE", stderr)
    except subprocess.TimeoutExpired:
        stderr = f"Error: Command '{cmd_str_safe}' timed out after {timeout_seconds} seconds."
        log_error("CORE", stderr)
    finally:
        if log_enabled:
            _write_command_log(cmd_str_safe, start_time, returncode, stdout, stderr)

    return returncode, stdout, stderr


# --- Command Builder Base Class ---
class CommandBuilder:
    def __init__(self, base_command: str):
        if not base_command:
            raise ValueError("Base command cannot be empty")
        self._parts: List[str] = [base_command]

    def _add_option(self, flag: str, value: Union[str, bool]):
        if isinstance(value, bool):
            if value: self._parts.append(flag)
        elif value is not None:
            self._parts.extend([flag, str(value)])
        return self

    def _add_flag(self, flag: str, condition: bool = True):
        if condition:
            self._parts.append(flag)
        return self

    def _add_key_value_option(self, flag: str, key: str, value: str):
        if key and value is not None:
            self._parts.extend([flag, f"{key}={value}"])
        return self

    def _add_args(self, *args: Optional[str]):
        for arg in args:
            if arg is not None:
                self._parts.append(arg)
        return self

    def _add_arg_list(self, args: Optional[List[str]]):
        if args:
            self._parts.extend(args)
        return self

    def build(self) -> List[str]:
        return list(self._parts)

    def run(self, *, log_enabled: Optional[bool] = None) -> Tuple[int, str, str]:
        """Builds and runs the command using _run_command."""
        return _run_command(self.build(), log_enabled=log_enabled)

# --- ZFS Command Builder ---
class ZfsCommandBuilder(CommandBuilder):
    def __init__(self, action: str):
        if not ZFS_CMD_PATH: raise ZfsCommandError("zfs command not found.")
        super().__init__(ZFS_CMD_PATH)
        self._add_args(action)

    def recursive(self, condition=True): return self._add_flag('-r', condition)
    def script(self, condition=True): return self._add_flag('-H', condition) # No header, tab separated
    def type(self, types: str): return self._add_option('-t', types) # e.g., "filesystem,volume"
    def output_props(self, props: List[str]): return self._add_option('-o', ','.join(props))
    def target(self, name: Optional[str]): return self._add_args(name)

# --- ZPOOL Command Builder ---
class ZpoolCommandBuilder(CommandBuilder):
    def __init__(self, action: str):
        if not ZPOOL_CMD_PATH: raise ZfsCommandError("zpool command not found.")
        super().__init__(ZPOOL_CMD_PATH)
        self._add_args(action)

    def force(self, condition=True): return self._add_flag('-f', condition)
    def parsable(self, condition=True): return self._add_flag('-p', condition) # Exact counters
    def full_paths(self, condition=True): return self._add_flag('-P', condition) # Full device paths
    def pool_option(self, key: str, value: str): return self._add_key_value_option('-o', key, value)
    def fs_option(self, key: str, value: str): return self._add_key_value_option('-O', key, value)
    def search_dirs(self, dir_paths: Sequence[str]):
        for d in dir_paths: self._add_option('-d', d)
        return self
    def pool(self, name: str): return self._add_args(name)

    def topology(self, args: List[str]):
        """Appends vdev arguments from topology.build_create_args / build_add_args, order preserved."""
        return self._add_arg_list(args)


def _raise_for_dataset_error(message: str, builder: CommandBuilder, stderr: str, retcode: int):
    """Raises DatasetNotFoundError when stderr has the "dataset does not exist" shape, else ZfsCommandError."""
    for line in stderr.strip().split('\n'):
        missing = try_parse_not_found_error(line)
        if missing is not None:
            raise DatasetNotFoundError(missing, builder.build(), stderr, retcode)
    raise ZfsCommandError(message, builder.build(), stderr, retcode)


def _is_no_pools_output(stdout: str, stderr: str) -> bool:
    text = f"{stdout}\n{stderr}".strip()
    return not text or text.startswith(constants.NO_POOLS_AVAILABLE)


# --- Core Get Functions ---
def get_pool_status(pool_name: str) -> PoolReport:
    builder = ZpoolCommandBuilder('status').parsable().full_paths().pool(pool_name)
    retcode, stdout, stderr = builder.run()
    if retcode != 0: raise ZfsCommandError(f"Failed to get status for pool '{pool_name}'.", builder.build(), stderr, retcode)
    report = parse_pool_report(stdout)
    if report.name != pool_name:
        raise ZfsCommandError(f"Status output names pool '{report.name}', expected '{pool_name}'.", builder.build(), stderr, retcode)
    return report


def list_pool_statuses() -> List[PoolReport]:
    builder = ZpoolCommandBuilder('status').parsable().full_paths()
    retcode, stdout, stderr = builder.run()
    if retcode != 0: raise ZfsCommandError("Failed to get pool status.", builder.build(), stderr, retcode)
    if _is_no_pools_output(stdout, ""):
        return []
    return parse_pool_reports(stdout)


def list_importable_pools(search_dirs: Optional[Sequence[str]] = None) -> List[PoolReport]:
    """Pools `zpool import` could import, optionally scanning only the given directories."""
    builder = ZpoolCommandBuilder('import')
    if search_dirs:
        builder.search_dirs(search_dirs)
    retcode, stdout, stderr = builder.run()
    if retcode != 0:
        # Nothing to import is reported as a failure by some releases
        if _is_no_pools_output(stdout, stderr):
            return []
        raise ZfsCommandError("Failed to scan for importable pools.", builder.build(), stderr, retcode)
    if _is_no_pools_output(stdout, ""):
        return []
    reports = parse_pool_reports(stdout)
    log_debug("CORE", f"Found {len(reports)} importable pool(s)")
    return reports


def list_datasets(root: Optional[str] = None, recursive: bool = True) -> List[DatasetName]:
    builder = ZfsCommandBuilder('list').script().output_props(constants.ZFS_LIST_NAME_PROPS).recursive(recursive).target(root)
    retcode, stdout, stderr = builder.run()
    if retcode != 0: _raise_for_dataset_error("Failed to list datasets.", builder, stderr, retcode)
    return parse_dataset_list(stdout)


def list_datasets_with_type(root: Optional[str] = None) -> List[Tuple[DatasetType, DatasetName]]:
    builder = (ZfsCommandBuilder('list').script().output_props(constants.ZFS_LIST_TYPED_PROPS)
               .type(constants.ZFS_LIST_ALL_TYPES).recursive().target(root))
    retcode, stdout, stderr = builder.run()
    if retcode != 0: _raise_for_dataset_error("Failed to list datasets.", builder, stderr, retcode)
    return parse_typed_dataset_list(stdout)


def dataset_exists(name: str) -> bool:
    builder = ZfsCommandBuilder('list').script().output_props(constants.ZFS_LIST_NAME_PROPS).target(name)
    retcode, stdout, stderr = builder.run()
    if retcode == 0:
        return True
    try:
        _raise_for_dataset_error(f"Failed to check dataset '{name}'.", builder, stderr, retcode)
    except DatasetNotFoundError:
        return False


# --- Action Functions ---
def create_pool(request: TopologyRequest, options: Optional[Dict[str, str]] = None, force: bool = False):
    # Validates the topology before anything is run
    vdev_args = build_create_args(request)

    builder = ZpoolCommandBuilder('create').force(force)
    if options:
        for key, value in options.items():
            if not isinstance(key, str) or not isinstance(value, str): continue # Skip invalid option types
            if key in constants.POOL_CREATE_FS_PROPS or key.startswith('feature@'): builder.fs_option(key, value)
            elif key in constants.POOL_CREATE_POOL_PROPS: builder.pool_option(key, value)
            else: log_warning("CORE", f"Ignoring unknown option '{key}' during pool creation.")
    builder.pool(request.name).topology(vdev_args)

    retcode, stdout, stderr = builder.run()
    if retcode != 0: raise ZfsCommandError(f"Failed to create pool '{request.name}'.", builder.build(), stderr, retcode)
    log_info("CORE", f"Created pool '{request.name}'")


def add_vdevs(pool_name: str, vdevs: Sequence[DeviceGroupSpec], logs: Sequence[DeviceGroupSpec] = (),
              caches: Sequence[str] = (), spares: Sequence[str] = (),
              special: Sequence[DeviceGroupSpec] = (), dedup: Sequence[DeviceGroupSpec] = (), force: bool = False):
    vdev_args = build_add_args(pool_name, vdevs, logs=logs, caches=caches, spares=spares, special=special, dedup=dedup)

    builder = ZpoolCommandBuilder('add').force(force).pool(pool_name).topology(vdev_args)
    retcode, stdout, stderr = builder.run()
    if retcode != 0: raise ZfsCommandError(f"Failed to add vdevs to pool '{pool_name}'.", builder.build(), stderr, retcode)
    log_info("CORE", f"Added {len(vdev_args)} vdev argument(s) to pool '{pool_name}'")

# --- END OF FILE zfs_manager_core.py ---
