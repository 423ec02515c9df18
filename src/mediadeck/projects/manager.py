import logging
import threading
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from mediadeck.config.settings import config as settings
from mediadeck.errors import FilesystemError, ProjectError, StorageConfigError
from mediadeck.logs import SUCCESS
from mediadeck.projects import registry
from mediadeck.projects.models import ProjectRecord, ProjectView
from mediadeck.projects.scanner import DriveScan, ProjectScanner, ScanStatus, project_dir_key
from mediadeck.storage.devices import get_physical_drives
from mediadeck.storage.filesystem import LocalFilesystem, join_drive
from mediadeck.storage.models import DriveType, SlotStatus, slot_key
from mediadeck.storage.resolver import confirm_storage, drive_labels, iter_slots, storage_status

logger = logging.getLogger(__name__)


class ProjectManager:
    """Serves the Master/Backup project view, rescanning drives only when needed."""

    def __init__(self, config, catalog=None, filesystem=None, test_mode: Optional[bool] = None):
        if config is None:
            raise StorageConfigError("No configuration loaded")
        self.config = config
        self.catalog = catalog or get_physical_drives
        self.fs = filesystem or LocalFilesystem()
        self.test_mode = settings.test_mode if test_mode is None else test_mode
        self.scanner = ProjectScanner(config.paths, self.fs, config.errors, self.test_mode)
        self.scan_count = 0
        self._lock = threading.RLock()

    def get_projects(self, force_rescan: bool = False) -> ProjectView:
        with self._lock:
            if self.config.storage is None:
                raise StorageConfigError("Configuration has no storage groups")

            drives = self.catalog()
            confirm_storage(self.config, drives)
            cache = self.config.registry

            if not force_rescan and registry.is_valid(cache, self.config, self.scanner):
                logger.debug("Serving projects from registry")
                return registry.build_view(cache)

            self._scan(drives)
            return registry.build_view(cache)

    def storage_status(self) -> List[SlotStatus]:
        """Resolves every slot against the catalog and reports its state."""
        with self._lock:
            confirm_storage(self.config, self.catalog())
            return storage_status(self.config)

    def invalidate(self) -> None:
        """Empties the registry so the next read performs a full scan."""
        with self._lock:
            registry.clear(self.config.registry)
            logger.info("Project registry invalidated")

    def _scan(self, drives) -> None:
        self.scan_count += 1
        cache = self.config.registry
        logger.info(f"Scanning {len(self.config.storage)} storage groups for projects")

        labels = drive_labels(self.config, drives)
        scans: List[DriveScan] = []
        for group_id, drive_type, backup_id, slot in iter_slots(self.config):
            if not slot.is_configured:
                continue
            label = labels[slot_key(group_id, drive_type, backup_id)]
            scans.append(self.scanner.scan_drive(slot, group_id, drive_type, backup_id, drives, label))

        fresh = {DriveType.MASTER: {}, DriveType.BACKUP: {}}
        project_dirs: Dict[str, datetime] = {}
        scanned_labels = set()
        skipped_serials = set()

        for scan in scans:
            if scan.status == ScanStatus.SCANNED:
                fresh[scan.drive_type].setdefault(scan.label, []).extend(scan.records)
                scanned_labels.add(scan.label)
                if scan.project_dir_time is not None:
                    project_dirs[scan.project_dir_key] = scan.project_dir_time
            elif scan.status == ScanStatus.SKIPPED:
                skipped_serials.add(scan.serial_number)

        master = registry.build_entries(fresh[DriveType.MASTER])
        backup = registry.build_entries(fresh[DriveType.BACKUP])

        # Drives not scanned in this pass keep what was last seen on them
        self._carry_over(cache.master, master, scanned_labels, backup)
        self._carry_over(cache.backup, backup, scanned_labels, master)
        for serial in skipped_serials:
            key = project_dir_key(serial)
            if key in cache.project_dirs and key not in project_dirs:
                project_dirs[key] = cache.project_dirs[key]

        if registry.commit(cache, master, backup, project_dirs):
            total = count_projects(registry.build_view(cache))
            logger.log(SUCCESS, f"Project registry updated: {total} projects on {len(master) + len(backup)} drives")
        else:
            logger.info("Project registry unchanged")

    @staticmethod
    def _carry_over(previous, fresh, scanned_labels, other_role) -> None:
        for label, entry in previous.items():
            if label in scanned_labels or label in fresh or label in other_role:
                continue
            fresh[label] = entry

    def create_project(self, storage_group: str, name: str) -> str:
        """Creates a project folder on the group's Master drive and invalidates the registry."""
        name = (name or "").strip()
        if not name:
            raise ProjectError("Project name is required")
        if any(sep in name for sep in ("/", "\\", ":")) or name in (".", ".."):
            raise ProjectError(f"Invalid project name '{name}'")
        if name.lower() == self.config.paths.global_folder.lower():
            raise ProjectError(f"'{name}' is reserved")

        with self._lock:
            group = self.config.storage.get(str(storage_group))
            if group is None:
                raise ProjectError(f"Storage group '{storage_group}' is not configured")

            confirm_storage(self.config, self.catalog())
            slot = group.master
            if not slot.is_available or not self.scanner.is_reachable(slot):
                raise ProjectError(f"Master drive of storage group '{storage_group}' is not available")

            path = join_drive(self.scanner.projects_path(slot.drive_letter), name)
            if self.fs.exists(path):
                raise ProjectError(f"Project '{name}' already exists at {path}")
            try:
                self.fs.make_directory(path)
            except FilesystemError as e:
                raise ProjectError(f"Cannot create project '{name}': {e}") from e

            self.invalidate()
            logger.log(SUCCESS, f"Created project {path}")
            return path


def iter_projects(view: ProjectView, drive_type: Optional[DriveType] = None) -> Iterator[ProjectRecord]:
    """Yields real projects, skipping drive placeholders."""
    sections = []
    if drive_type in (None, DriveType.MASTER):
        sections.append(view.master)
    if drive_type in (None, DriveType.BACKUP):
        sections.append(view.backup)
    for section in sections:
        for label in sorted(section):
            for record in section[label]:
                if not record.is_placeholder:
                    yield record


def count_projects(view: ProjectView, drive_type: Optional[DriveType] = None) -> int:
    return sum(1 for _ in iter_projects(view, drive_type))


def find_project(view: ProjectView, name: str, drive_type: DriveType = DriveType.MASTER) -> Optional[ProjectRecord]:
    if not name:
        return None
    for record in iter_projects(view, drive_type):
        if record.name == name:
            return record
    return None


def get_manager(config) -> ProjectManager:
    """One manager per configuration object, kept on the config so callers share a lock."""
    if config is None:
        raise StorageConfigError("No configuration loaded")
    manager = config._manager
    if manager is None or manager.config is not config:
        manager = ProjectManager(config)
        config._manager = manager
    return manager


def get_projects(config, force_rescan: bool = False) -> ProjectView:
    return get_manager(config).get_projects(force_rescan)


def invalidate_registry(config) -> None:
    get_manager(config).invalidate()

