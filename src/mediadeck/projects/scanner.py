"""
Project discovery on a single drive.

A drive's projects are the immediate subfolders of its Projects folder. The
reserved global folder is created on demand and never listed. The Projects
folder's modification time is recorded so the registry can tell later whether
the drive needs to be rescanned.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from mediadeck.errors import ErrorAction, ErrorKind, FilesystemError, ScanStage, action_for
from mediadeck.projects.models import NOT_AVAILABLE, UNKNOWN, ProjectRecord
from mediadeck.storage.devices import find_drive
from mediadeck.storage.filesystem import LocalFilesystem, join_drive
from mediadeck.storage.models import DriveType, PhysicalDrive, StorageSlot, slot_key

logger = logging.getLogger(__name__)


class ScanStatus(str, Enum):
    SCANNED = "scanned"
    SKIPPED = "skipped"  # not mounted, not reachable or known bad
    FAILED = "failed"    # reachable, but the projects could not be listed


class DriveScan(BaseModel):
    label: str = ""
    serial_number: str = ""
    drive_type: DriveType = DriveType.MASTER
    status: ScanStatus = ScanStatus.SKIPPED
    records: List[ProjectRecord] = Field(default_factory=list)
    project_dir_key: str = ""
    project_dir_time: Optional[datetime] = None
    error: Optional[str] = None


def project_dir_key(serial_number: str) -> str:
    return f"{serial_number}_Projects"


class ProjectScanner:
    def __init__(self, paths, filesystem=None, errors=None, test_mode: bool = False):
        self.paths = paths
        self.fs = filesystem or LocalFilesystem()
        self.errors = errors
        self.test_mode = test_mode

    def projects_path(self, drive_letter: str) -> str:
        return join_drive(drive_letter, self.paths.projects_folder)

    def is_reachable(self, slot: StorageSlot) -> bool:
        if not slot.drive_letter:
            return False
        if self.test_mode:
            return True
        return self.fs.is_reachable(slot.drive_letter)

    def _handle(self, stage: ScanStage, scan: DriveScan, error: FilesystemError) -> ErrorAction:
        action = action_for(stage)
        if action == ErrorAction.ABORT_SCAN:
            raise error
        logger.warning(f"{scan.label}: {stage.value} failed: {error}")
        scan.error = str(error)
        return action

    @staticmethod
    def _fail(scan: DriveScan) -> DriveScan:
        scan.status = ScanStatus.FAILED
        scan.records = []
        scan.project_dir_time = None
        return scan

    def ensure_global(self, projects_path: str) -> None:
        """Creates the reserved global folder and its assets subfolder if missing."""
        global_path = join_drive(projects_path, self.paths.global_folder)
        assets_path = join_drive(global_path, self.paths.assets_folder)
        for path in (global_path, assets_path):
            if not self.fs.exists(path):
                self.fs.make_directory(path)
                logger.info(f"Created {path}")

    def scan_drive(
        self,
        slot: StorageSlot,
        storage_group: str,
        drive_type: DriveType,
        backup_id: str = "",
        drives: Optional[List[PhysicalDrive]] = None,
        label: Optional[str] = None,
    ) -> DriveScan:
        key = slot_key(storage_group, drive_type, backup_id)
        drive = find_drive(drives or [], slot.serial_number)
        label = label or slot.label or (drive.label if drive else "") or slot.serial_number
        scan = DriveScan(label=label, serial_number=slot.serial_number, drive_type=drive_type)

        if not slot.optional and self.errors is not None and self.errors.has(key):
            logger.debug(f"{key}: skipping drive with validation error")
            return scan
        if not slot.drive_letter:
            logger.debug(f"{key}: not mounted")
            return scan
        if not self.is_reachable(slot):
            error = FilesystemError(ErrorKind.UNREACHABLE, slot.drive_letter)
            if self._handle(ScanStage.PROBE, scan, error) == ErrorAction.SKIP_DRIVE:
                return scan

        template = ProjectRecord(
            drive_letter=slot.drive_letter,
            label=label,
            serial_number=slot.serial_number,
            storage_group=storage_group,
            drive_type=drive_type,
            backup_id=backup_id if drive_type == DriveType.BACKUP else "",
        )
        if drive is not None:
            template = template.model_copy(update={
                "manufacturer": drive.manufacturer or NOT_AVAILABLE,
                "model": drive.model or NOT_AVAILABLE,
                "filesystem_type": drive.filesystem_type or NOT_AVAILABLE,
                "partition_kind": drive.partition_kind or NOT_AVAILABLE,
                "total_bytes": drive.total_bytes,
                "used_bytes": drive.used_bytes,
                "free_bytes": drive.free_bytes,
                "health_status": drive.health_status or UNKNOWN,
            })

        projects_path = self.projects_path(slot.drive_letter)
        scan.status = ScanStatus.SCANNED

        if not self.fs.exists(projects_path):
            try:
                self.fs.make_directory(projects_path)
                logger.info(f"{label}: created {projects_path}")
            except FilesystemError as e:
                if self._handle(ScanStage.CREATE_PROJECTS, scan, e) == ErrorAction.SKIP_DRIVE:
                    return self._fail(scan)
                # Reachable drive without a Projects folder: no projects
                scan.records = [template]
                return scan

        try:
            self.ensure_global(projects_path)
        except FilesystemError as e:
            if self._handle(ScanStage.ENSURE_GLOBAL, scan, e) == ErrorAction.SKIP_DRIVE:
                return self._fail(scan)

        # Taken after the global folder exists so creating it does not invalidate the cache
        try:
            scan.project_dir_key = project_dir_key(slot.serial_number)
            scan.project_dir_time = self.fs.stat(projects_path).mod_time
        except FilesystemError as e:
            if self._handle(ScanStage.STAT_PROJECTS, scan, e) == ErrorAction.SKIP_DRIVE:
                return self._fail(scan)

        try:
            entries = self.fs.list_subdirectories(projects_path)
        except FilesystemError as e:
            if self._handle(ScanStage.LIST_PROJECTS, scan, e) == ErrorAction.SKIP_DRIVE:
                return self._fail(scan)
            entries = []

        reserved = self.paths.global_folder.lower()
        for entry in entries:
            if entry.name.lower() == reserved:
                continue
            scan.records.append(template.model_copy(update={"name": entry.name, "path": entry.full_path}))

        if not scan.records:
            scan.records.append(template)

        logger.debug(f"{label}: {len(entries)} folders, {len(scan.records)} records")
        return scan
