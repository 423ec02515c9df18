import os
import threading
from datetime import datetime
from unittest.mock import Mock, patch

import pytest

from mediadeck.config.loader import AppConfig
from mediadeck.errors import ErrorKind, FilesystemError, ProjectError
from mediadeck.projects.manager import (
    ProjectManager,
    count_projects,
    find_project,
    get_manager,
    get_projects,
    invalidate_registry,
)
from mediadeck.storage.filesystem import DirectoryEntry, FileStat, LocalFilesystem
from mediadeck.storage.models import DriveType, PhysicalDrive, StorageGroup, StorageSlot


def make_manager(config, drives, filesystem=None, test_mode=False):
    catalog = Mock(return_value=drives)
    return ProjectManager(config, catalog=catalog, filesystem=filesystem or LocalFilesystem(), test_mode=test_mode)

def touch(path, stamp):
    os.utime(path, (stamp, stamp))

def test_forced_scan_returns_master_and_backup(app_config, drives, mounts):
    manager = make_manager(app_config, drives)

    view = manager.get_projects(force_rescan=True)

    assert list(view.master) == ["Vol-A"]
    [trip] = view.master["Vol-A"]
    assert trip.name == "Trip2024"
    assert trip.path == str(mounts["master"] / "Projects" / "Trip2024")
    assert trip.storage_group == "1"
    assert trip.drive_type == DriveType.MASTER

    [placeholder] = view.backup["Vol-B"]
    assert (placeholder.name, placeholder.path) == ("", "")
    assert placeholder.storage_group == "1"
    assert placeholder.drive_type == DriveType.BACKUP
    assert placeholder.backup_id == "1"

    assert count_projects(view) == 1
    assert manager.scan_count == 1

def test_windows_drive_letters_in_test_mode(app_config):
    fs = Mock()
    fs.exists.return_value = True
    fs.stat.return_value = FileStat(mod_time=datetime(2024, 5, 1))
    fs.list_subdirectories.side_effect = lambda path: {
        "D:\\Projects": [
            DirectoryEntry(name="Trip2024", full_path="D:\\Projects\\Trip2024"),
            DirectoryEntry(name="_GLOBAL_", full_path="D:\\Projects\\_GLOBAL_"),
        ],
        "E:\\Projects": [],
    }[path]
    drives = [
        PhysicalDrive(name="disk1", serial_number="AAA", mount_path="D:"),
        PhysicalDrive(name="disk2", serial_number="BBB", mount_path="E:"),
    ]
    manager = make_manager(app_config, drives, fs, test_mode=True)

    view = manager.get_projects(force_rescan=True)

    assert [(r.name, r.path) for r in view.master["Vol-A"]] == [("Trip2024", "D:\\Projects\\Trip2024")]
    assert [(r.name, r.path, r.backup_id) for r in view.backup["Vol-B"]] == [("", "", "1")]
    fs.is_reachable.assert_not_called()

def test_second_read_is_served_from_registry(app_config, drives):
    fs = Mock(wraps=LocalFilesystem())
    manager = make_manager(app_config, drives, fs)

    first = manager.get_projects()
    fs.reset_mock()
    second = manager.get_projects()

    assert manager.scan_count == 1
    assert second == first
    fs.list_subdirectories.assert_not_called()
    fs.make_directory.assert_not_called()

def test_changed_projects_folder_triggers_rescan(app_config, drives, mounts):
    manager = make_manager(app_config, drives)
    manager.get_projects()

    (mounts["backup"] / "Projects" / "Wedding").mkdir()
    touch(mounts["backup"] / "Projects", 1_700_000_000)
    view = manager.get_projects()

    assert manager.scan_count == 2
    assert [r.name for r in view.backup["Vol-B"]] == ["Wedding"]

def test_identical_rescan_keeps_registry_entries(app_config, drives, mounts):
    manager = make_manager(app_config, drives)
    manager.get_projects()
    cache = app_config.registry
    master, backup, scanned = cache.master, cache.backup, cache.last_scanned

    touch(mounts["master"] / "Projects", 1_700_000_000)
    manager.get_projects()

    assert manager.scan_count == 2
    assert cache.master is master
    assert cache.backup is backup
    assert cache.last_scanned >= scanned
    assert cache.project_dirs["AAA_Projects"] == datetime.fromtimestamp(1_700_000_000)

def test_absent_backup_is_skipped(app_config, drives):
    manager = make_manager(app_config, drives[:1])

    view = manager.get_projects()

    assert view.backup == {}
    assert [r.name for r in view.master["Vol-A"]] == ["Trip2024"]
    assert app_config.storage["1"].backups[1].is_available is False
    assert [key for key, _ in app_config.errors.items()] == ["1.Backup.1"]

def test_absent_optional_backup_is_silent(app_config, drives):
    app_config.storage["1"].backups[1].optional = True
    manager = make_manager(app_config, drives[:1])

    manager.get_projects()

    assert len(app_config.errors) == 0

def test_unreachable_drive_does_not_invalidate_registry(app_config, drives):
    manager = make_manager(app_config, drives)
    manager.get_projects()

    manager.catalog.return_value = drives[:1]
    view = manager.get_projects()

    assert manager.scan_count == 1
    # Served from the registry, as last observed
    assert "Vol-B" in view.backup

def test_forced_rescan_preserves_unreachable_drives(app_config, drives):
    manager = make_manager(app_config, drives)
    manager.get_projects()

    manager.catalog.return_value = drives[:1]
    view = manager.get_projects(force_rescan=True)

    assert manager.scan_count == 2
    assert [r.backup_id for r in view.backup["Vol-B"]] == ["1"]
    assert "BBB_Projects" in app_config.registry.project_dirs

def test_listing_failure_keeps_previous_entry(app_config, drives, mounts):
    fs = Mock(wraps=LocalFilesystem())
    manager = make_manager(app_config, drives, fs)
    manager.get_projects()

    fs.list_subdirectories.side_effect = FilesystemError(ErrorKind.IO_ERROR, "Projects")
    view = manager.get_projects(force_rescan=True)

    assert [r.name for r in view.master["Vol-A"]] == ["Trip2024"]
    # Timestamps of failed drives are dropped so the next read rescans
    assert "AAA_Projects" not in app_config.registry.project_dirs

def test_invalidate_forces_next_scan(app_config, drives):
    manager = make_manager(app_config, drives)
    manager.get_projects()

    manager.invalidate()

    assert app_config.registry.last_scanned is None
    assert app_config.registry.master == {}
    manager.get_projects()
    assert manager.scan_count == 2

def test_failed_catalog_leaves_registry_untouched(app_config, drives):
    manager = make_manager(app_config, drives)
    manager.get_projects()
    before = app_config.registry.model_copy(deep=True)

    manager.catalog.side_effect = RuntimeError("probe crashed")
    with pytest.raises(RuntimeError):
        manager.get_projects(force_rescan=True)

    assert app_config.registry == before

def test_unconfigured_slots_are_ignored(drives):
    config = AppConfig(storage={"1": StorageGroup(master=StorageSlot(serial_number="AAA", label="Vol-A"),
                                                  backups={1: StorageSlot()})})
    manager = make_manager(config, drives)

    view = manager.get_projects()

    assert view.backup == {}
    assert len(config.errors) == 0

def test_find_project_skips_placeholders(app_config, drives):
    view = make_manager(app_config, drives).get_projects()

    assert find_project(view, "Trip2024").label == "Vol-A"
    assert find_project(view, "") is None
    assert find_project(view, "Trip2024", DriveType.BACKUP) is None
    assert count_projects(view, DriveType.BACKUP) == 0

def test_create_project(app_config, drives, mounts):
    manager = make_manager(app_config, drives)
    manager.get_projects()

    path = manager.create_project("1", "Wedding")

    assert path == str(mounts["master"] / "Projects" / "Wedding")
    assert os.path.isdir(path)
    assert app_config.registry.last_scanned is None
    view = manager.get_projects()
    assert sorted(r.name for r in view.master["Vol-A"]) == ["Trip2024", "Wedding"]

@pytest.mark.parametrize("name", ["", "_GLOBAL_", "a/b", "Trip2024"])
def test_create_project_rejects_bad_names(app_config, drives, name):
    manager = make_manager(app_config, drives)
    with pytest.raises(ProjectError):
        manager.create_project("1", name)

def test_create_project_requires_known_group_and_drive(app_config, drives):
    with pytest.raises(ProjectError, match="not configured"):
        make_manager(app_config, drives).create_project("9", "Wedding")
    with pytest.raises(ProjectError, match="not available"):
        make_manager(app_config, drives[1:]).create_project("1", "Wedding")

def test_module_level_calls_share_one_manager(app_config, drives):
    with patch("mediadeck.projects.manager.get_physical_drives", return_value=drives):
        view = get_projects(app_config)
        manager = get_manager(app_config)
        invalidate_registry(app_config)

    assert manager is get_manager(app_config)
    assert "Vol-A" in view.master
    assert app_config.registry.last_scanned is None

def test_manager_is_kept_on_its_config(app_config, drives):
    manager = get_manager(app_config)
    other = AppConfig(storage={})

    assert app_config._manager is manager
    assert get_manager(other) is not manager
    assert other._manager.config is other

def test_cloned_drives_get_one_entry_each(tmp_path, mounts):
    (tmp_path / "vol-c" / "Projects").mkdir(parents=True)
    config = AppConfig(storage={"1": StorageGroup(
        master=StorageSlot(serial_number="AAA"),
        backups={1: StorageSlot(serial_number="BBB"), 2: StorageSlot(serial_number="CCC")},
    )})
    drives = [
        PhysicalDrive(name="sdb", serial_number="AAA", label="MEDIA", mount_path=str(mounts["master"])),
        PhysicalDrive(name="sdc", serial_number="BBB", label="MEDIA", mount_path=str(mounts["backup"])),
        PhysicalDrive(name="sdd", serial_number="CCC", label="MEDIA", mount_path=str(tmp_path / "vol-c")),
    ]

    view = make_manager(config, drives).get_projects()

    assert not set(view.master) & set(view.backup)
    assert [r.name for r in view.master["AAA"]] == ["Trip2024"]
    assert sorted(view.backup) == ["BBB", "CCC"]
    for serial, records in view.backup.items():
        [placeholder] = records
        assert placeholder.is_placeholder
        assert placeholder.serial_number == serial

def test_storage_status_reports_resolved_slots(app_config, drives):
    manager = make_manager(app_config, drives[:1])

    report = manager.storage_status()

    assert [s.is_available for s in report] == [True, False]
    assert report[1].error is not None

def test_storage_status_waits_for_running_scan(app_config, drives):
    manager = make_manager(app_config, drives)
    callers = []
    manager.catalog.side_effect = lambda: callers.append(threading.current_thread().name) or drives

    with manager._lock:
        worker = threading.Thread(target=manager.storage_status, name="status")
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()
        assert callers == []

    worker.join(timeout=5)
    assert callers == ["status"]
