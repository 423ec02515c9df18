import logging
import subprocess
from typing import Any, Dict, List, Optional

from mediadeck.hwosinfo.hw import get_disk_usage, get_disks as get_raw_disks
from mediadeck.storage.models import PhysicalDrive

logger = logging.getLogger(__name__)

HEALTHY_STATES = ("running", "live")


def _clean(value: Any) -> str:
    return str(value).strip() if value else ""


def _first_mounted(device: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the first node (the disk itself or one of its partitions) that has a mountpoint."""
    if device.get("mountpoint"):
        return device
    for p in device.get("children") or []:
        if p.get("mountpoint"):
            return p
    return None


def _health(state: Any) -> str:
    state = _clean(state).lower()
    if not state:
        return "Unknown"
    if state in HEALTHY_STATES:
        return "Healthy"
    return state.capitalize()


def parse_drive(device: Dict[str, Any]) -> PhysicalDrive:
    """Turn one lsblk disk node into a PhysicalDrive."""
    mounted = _first_mounted(device)
    mount_path = _clean(mounted.get("mountpoint")) if mounted else ""
    total = int(device.get("size") or 0)
    used = 0
    free = 0

    if mount_path:
        usage = get_disk_usage(mount_path)
        if usage:
            total, used, free = usage["total"], usage["used"], usage["free"]

    source = mounted or device
    return PhysicalDrive(
        name=_clean(device.get("name")),
        serial_number=_clean(device.get("serial")),
        mount_path=mount_path,
        label=_clean(source.get("label")),
        manufacturer=_clean(device.get("vendor")) or None,
        model=_clean(device.get("model")) or None,
        filesystem_type=_clean(source.get("fstype")) or None,
        partition_kind=_clean(device.get("pttype")) or None,
        total_bytes=total,
        used_bytes=used,
        free_bytes=free,
        health_status=_health(device.get("state")),
    )


def get_physical_drives() -> List[PhysicalDrive]:
    """
    Lists physically attached disks with their current mount path and capacity.
    Returns an empty list when the host cannot be probed.
    """
    try:
        raw_data = get_raw_disks()
    except (OSError, subprocess.SubprocessError, ValueError) as e:
        logger.warning(f"Could not enumerate storage devices: {e}")
        return []

    drives = []
    for device in raw_data:
        name = device.get("name", "")
        # Skip loop devices and ram disks
        if name.startswith("loop") or name.startswith("ram"):
            continue
        if device.get("type", "disk") != "disk":
            continue
        drives.append(parse_drive(device))

    logger.debug(f"Storage catalog found {len(drives)} drives")
    return drives


def find_drive(drives: List[PhysicalDrive], serial_number: str) -> Optional[PhysicalDrive]:
    """Returns the first drive with a non-empty serial equal to serial_number."""
    serial_number = (serial_number or "").strip()
    if not serial_number:
        return None
    for drive in drives:
        if drive.serial_number and drive.serial_number == serial_number:
            return drive
    return None
