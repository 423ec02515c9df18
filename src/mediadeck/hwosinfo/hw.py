import json
import shutil
import subprocess
from typing import Any, Dict, List, Optional

import psutil

LSBLK_COLUMNS = "NAME,PATH,SIZE,MODEL,VENDOR,SERIAL,TYPE,FSTYPE,LABEL,PTTYPE,STATE,MOUNTPOINT"


def get_disks() -> List[Dict[str, Any]]:
    """Return lsblk block devices with their partitions nested under 'children'."""
    if not shutil.which("lsblk"):
        return []

    # -J: JSON output
    # -b: Bytes
    # -o: Specific columns
    cmd = ["lsblk", "-J", "-b", "-o", LSBLK_COLUMNS]
    output = subprocess.check_output(cmd, timeout=10).decode()
    data = json.loads(output)
    return data.get("blockdevices", [])


def get_disk_usage(mountpoint: str) -> Optional[Dict[str, int]]:
    """Return total/used/free bytes for a mounted path, or None if it cannot be read."""
    try:
        usage = psutil.disk_usage(mountpoint)
    except OSError:
        return None
    return {"total": usage.total, "used": usage.used, "free": usage.free}

