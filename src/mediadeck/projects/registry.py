"""
In-memory registry of discovered projects.

The registry keeps, per drive label, one drive summary plus every project found
on the drive, and the last seen modification time of each drive's Projects
folder. Those timestamps are the only thing used to decide whether a rescan is
needed; drives that are not reachable are ignored by the check.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from mediadeck.errors import FilesystemError
from mediadeck.projects.models import DriveRegistryEntry, ProjectRecord, ProjectView, RegistryCache
from mediadeck.projects.scanner import project_dir_key
from mediadeck.storage.resolver import iter_slots

logger = logging.getLogger(__name__)


def is_valid(cache: RegistryCache, config, scanner) -> bool:
    """Returns False when a scan is needed."""
    if not cache.has_scanned:
        logger.debug("Registry has never been populated")
        return False

    for group_id, drive_type, backup_id, slot in iter_slots(config):
        if not slot.is_configured or not scanner.is_reachable(slot):
            continue

        key = project_dir_key(slot.serial_number)
        cached = cache.project_dirs.get(key)
        if cached is None:
            logger.debug(f"Registry invalid: no timestamp for {key}")
            return False

        try:
            live = scanner.fs.stat(scanner.projects_path(slot.drive_letter)).mod_time
        except FilesystemError as e:
            logger.debug(f"Registry invalid: cannot stat projects of {key}: {e}")
            return False

        if live != cached:
            logger.debug(f"Registry invalid: {key} changed ({cached} -> {live})")
            return False

    return True


def flatten(entries: Dict[str, DriveRegistryEntry]) -> Iterable[ProjectRecord]:
    for entry in entries.values():
        yield from entry.projects


def identities(*entry_maps: Dict[str, DriveRegistryEntry]) -> Set[str]:
    return {record.identity() for entries in entry_maps for record in flatten(entries)}


def has_changed(
    cache: RegistryCache,
    master: Dict[str, DriveRegistryEntry],
    backup: Dict[str, DriveRegistryEntry],
) -> bool:
    """Order-independent comparison of the cached and freshly scanned projects."""
    return identities(cache.master, cache.backup) != identities(master, backup)


def build_entries(records_by_label: Dict[str, List[ProjectRecord]]) -> Dict[str, DriveRegistryEntry]:
    return {
        label: DriveRegistryEntry.from_projects(records)
        for label, records in records_by_label.items()
        if records
    }


def commit(
    cache: RegistryCache,
    master: Dict[str, DriveRegistryEntry],
    backup: Dict[str, DriveRegistryEntry],
    project_dirs: Dict[str, datetime],
    scanned_at: Optional[datetime] = None,
) -> bool:
    """
    Stores a completed scan in the cache.

    Timestamps are always refreshed. The Master and Backup maps are only replaced
    when the set of projects actually changed. Returns True if they were replaced.
    """
    changed = has_changed(cache, master, backup)
    if changed:
        cache.master = master
        cache.backup = backup

    cache.project_dirs = dict(project_dirs)
    cache.last_scanned = scanned_at or datetime.now()
    return changed


def build_view(cache: RegistryCache) -> ProjectView:
    """Rebuilds the per-label project lists straight from the cached entries."""
    return ProjectView(
        master={label: list(entry.projects) for label, entry in cache.master.items()},
        backup={label: list(entry.projects) for label, entry in cache.backup.items()},
    )


def clear(cache: RegistryCache) -> None:
    cache.master = {}
    cache.backup = {}
    cache.project_dirs = {}
    cache.last_scanned = None
