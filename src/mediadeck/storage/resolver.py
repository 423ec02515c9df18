"""Maps configured storage slots to the drives currently attached to the host."""

import logging
from collections import Counter
from typing import Dict, Iterator, List, Optional, Tuple

from mediadeck.storage.devices import find_drive, get_physical_drives
from mediadeck.storage.models import DriveType, PhysicalDrive, SlotStatus, StorageSlot, slot_key

logger = logging.getLogger(__name__)


class ErrorTracker:
    """Keyed validation errors; the first message recorded for a key wins."""

    def __init__(self):
        self._errors: Dict[str, str] = {}

    def record(self, key: str, message: str) -> bool:
        if key in self._errors:
            return False
        self._errors[key] = message
        return True

    def has(self, key: str) -> bool:
        return key in self._errors

    def get(self, key: str) -> Optional[str]:
        return self._errors.get(key)

    def clear(self, key: Optional[str] = None) -> None:
        if key is None:
            self._errors.clear()
        else:
            self._errors.pop(key, None)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._errors.items())

    def __len__(self) -> int:
        return len(self._errors)


def resolve_slot(
    slot: StorageSlot,
    drives: List[PhysicalDrive],
    key: str,
    tracker: Optional[ErrorTracker] = None,
) -> Tuple[StorageSlot, Optional[str]]:
    """
    Updates the slot's live drive letter and availability from the catalog.

    The slot is updated in place, so passing a slot owned by an AppConfig refreshes
    the configuration for every later reader. Returns the slot and the error message
    recorded for it, if any. A missing drive never raises.
    """
    if slot is None:
        raise ValueError("slot is required")
    if drives is None:
        raise ValueError("drives is required")

    if not slot.is_configured:
        slot.drive_letter = ""
        slot.is_available = False
        return slot, None

    serial = slot.serial_number.strip()
    drive = find_drive(drives, serial)

    if drive is not None and drive.mount_path:
        slot.drive_letter = drive.mount_path
        slot.is_available = True
        if tracker is not None:
            tracker.clear(key)
        logger.debug(f"{key}: serial {serial} mounted at {drive.mount_path}")
        return slot, None

    slot.drive_letter = ""
    slot.is_available = False

    label = slot.label or serial
    if slot.optional:
        logger.info(f"{key}: optional drive '{label}' (serial {serial}) is not connected")
        return slot, None

    message = f"Drive '{label}' (serial {serial}) for {key} is not connected"
    if tracker is not None and tracker.record(key, message):
        logger.warning(message)
    return slot, message


def iter_slots(config) -> Iterator[Tuple[str, DriveType, str, StorageSlot]]:
    """Yields (group, drive type, backup id, slot) with groups and backup ids in ascending order."""
    for group_id in sorted(config.storage, key=_group_sort_key):
        group = config.storage[group_id]
        yield group_id, DriveType.MASTER, "", group.master
        for backup_id in sorted(group.backups):
            yield group_id, DriveType.BACKUP, str(backup_id), group.backups[backup_id]


def _group_sort_key(group_id: str):
    # Numeric ids sort numerically, anything else after them by name
    return (0, int(group_id), "") if group_id.isdigit() else (1, 0, group_id)


def confirm_storage(config, drives: Optional[List[PhysicalDrive]] = None) -> ErrorTracker:
    """Resolves every configured slot against the storage catalog."""
    if config is None:
        raise ValueError("config is required")
    if drives is None:
        drives = get_physical_drives()

    tracker = config.errors
    for group_id, drive_type, backup_id, slot in iter_slots(config):
        resolve_slot(slot, drives, slot_key(group_id, drive_type, backup_id), tracker)
    return tracker


def storage_status(config) -> List[SlotStatus]:
    """Reports the current state of every configured slot."""
    report = []
    for group_id, drive_type, backup_id, slot in iter_slots(config):
        report.append(SlotStatus(
            storage_group=group_id,
            drive_type=drive_type,
            backup_id=backup_id,
            label=slot.label,
            serial_number=slot.serial_number,
            drive_letter=slot.drive_letter,
            is_available=slot.is_available,
            optional=slot.optional,
            error=config.errors.get(slot_key(group_id, drive_type, backup_id)),
        ))
    return report


def drive_labels(config, drives: List[PhysicalDrive]) -> Dict[str, str]:
    """
    Registry label of every configured slot, keyed by slot key.

    A configured label is used as is. An unlabelled slot takes its volume label
    unless another slot uses the same one, as cloned disks do, in which case it
    falls back to the serial number.
    """
    slots = [(slot_key(g, t, b), slot) for g, t, b, slot in iter_slots(config) if slot.is_configured]
    taken = {slot.label for _, slot in slots if slot.label}

    volumes = {}
    for key, slot in slots:
        if not slot.label:
            drive = find_drive(drives or [], slot.serial_number)
            volumes[key] = drive.label if drive else ""
    counts = Counter(volumes.values())

    labels = {}
    for key, slot in slots:
        volume = volumes.get(key, "")
        if slot.label:
            labels[key] = slot.label
        elif volume and volume not in taken and counts[volume] == 1:
            labels[key] = volume
        else:
            labels[key] = slot.serial_number.strip()
    return labels
