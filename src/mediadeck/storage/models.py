from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator


class DriveType(str, Enum):
    MASTER = "Master"
    BACKUP = "Backup"


class PhysicalDrive(BaseModel):
    """One attached disk as seen by the storage catalog."""
    name: str
    serial_number: str = ""
    mount_path: str = ""
    label: str = ""
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    filesystem_type: Optional[str] = None
    partition_kind: Optional[str] = None
    total_bytes: int = 0
    used_bytes: int = 0
    free_bytes: int = 0
    health_status: str = "Unknown"


class StorageSlot(BaseModel):
    serial_number: str = ""
    label: str = ""
    optional: bool = False
    # Live state, refreshed by the resolver
    drive_letter: str = ""
    is_available: bool = False

    @field_validator("serial_number", "label", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else str(value)

    @property
    def is_configured(self) -> bool:
        return bool(self.serial_number.strip())


class StorageGroup(BaseModel):
    master: StorageSlot = Field(default_factory=StorageSlot)
    backups: Dict[int, StorageSlot] = Field(default_factory=dict)

    @field_validator("backups")
    @classmethod
    def _positive_ids(cls, backups: Dict[int, StorageSlot]) -> Dict[int, StorageSlot]:
        for backup_id in backups:
            if backup_id < 1:
                raise ValueError(f"backup id must be a positive integer, got {backup_id}")
        return backups


class SlotStatus(BaseModel):
    storage_group: str
    drive_type: DriveType
    backup_id: str = ""
    label: str
    serial_number: str
    drive_letter: str
    is_available: bool
    optional: bool
    error: Optional[str] = None


def slot_key(storage_group: str, drive_type: DriveType, backup_id=None) -> str:
    """Error tracker key for a slot: '<group>.Master' or '<group>.Backup.<id>'."""
    if drive_type == DriveType.MASTER:
        return f"{storage_group}.Master"
    return f"{storage_group}.Backup.{backup_id}"
