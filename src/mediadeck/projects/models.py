from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from mediadeck.storage.models import DriveType

NOT_AVAILABLE = "N/A"
UNKNOWN = "Unknown"

# Drive-level attributes shared by every project on one drive
DRIVE_FIELDS = (
    "drive_letter",
    "label",
    "serial_number",
    "storage_group",
    "drive_type",
    "backup_id",
    "manufacturer",
    "model",
    "filesystem_type",
    "partition_kind",
    "total_bytes",
    "used_bytes",
    "free_bytes",
    "health_status",
)


class ProjectRecord(BaseModel):
    name: str = ""
    path: str = ""
    drive_letter: str = ""
    label: str = ""
    serial_number: str = ""
    storage_group: str = ""
    drive_type: DriveType = DriveType.MASTER
    backup_id: str = ""
    manufacturer: str = NOT_AVAILABLE
    model: str = NOT_AVAILABLE
    filesystem_type: str = NOT_AVAILABLE
    partition_kind: str = NOT_AVAILABLE
    total_bytes: int = 0
    used_bytes: int = 0
    free_bytes: int = 0
    health_status: str = UNKNOWN

    @property
    def is_placeholder(self) -> bool:
        """A drive with no projects is still listed once so its metadata can be shown."""
        return not self.name and not self.path

    def identity(self) -> str:
        return "|".join([
            self.drive_type.value,
            self.label,
            self.backup_id,
            self.serial_number,
            self.name,
            self.path,
        ])


class DriveSummary(BaseModel):
    drive_letter: str = ""
    label: str = ""
    serial_number: str = ""
    storage_group: str = ""
    drive_type: DriveType = DriveType.MASTER
    backup_id: str = ""
    manufacturer: str = NOT_AVAILABLE
    model: str = NOT_AVAILABLE
    filesystem_type: str = NOT_AVAILABLE
    partition_kind: str = NOT_AVAILABLE
    total_bytes: int = 0
    used_bytes: int = 0
    free_bytes: int = 0
    health_status: str = UNKNOWN


class DriveRegistryEntry(BaseModel):
    drive: DriveSummary
    projects: List[ProjectRecord] = Field(default_factory=list)

    @classmethod
    def from_projects(cls, projects: List[ProjectRecord]) -> "DriveRegistryEntry":
        first = projects[0]
        summary = DriveSummary(**{name: getattr(first, name) for name in DRIVE_FIELDS})
        return cls(drive=summary, projects=list(projects))


class RegistryCache(BaseModel):
    master: Dict[str, DriveRegistryEntry] = Field(default_factory=dict)
    backup: Dict[str, DriveRegistryEntry] = Field(default_factory=dict)
    project_dirs: Dict[str, datetime] = Field(default_factory=dict)
    last_scanned: Optional[datetime] = None

    @property
    def has_scanned(self) -> bool:
        return self.last_scanned is not None


class ProjectView(BaseModel):
    """Projects grouped by drive label for Master and Backup drives."""
    master: Dict[str, List[ProjectRecord]] = Field(default_factory=dict)
    backup: Dict[str, List[ProjectRecord]] = Field(default_factory=dict)


class ProjectCreate(BaseModel):
    storage_group: str
    name: str
