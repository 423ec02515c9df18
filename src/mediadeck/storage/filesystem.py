import os
from datetime import datetime
from typing import List

from pydantic import BaseModel

from mediadeck.errors import ErrorKind, FilesystemError


class DirectoryEntry(BaseModel):
    name: str
    full_path: str


class FileStat(BaseModel):
    mod_time: datetime


def drive_root(mount_path: str) -> str:
    """Normalizes a mount path so it can be joined; 'D:' becomes 'D:\\'."""
    mount_path = mount_path.strip()
    if len(mount_path) == 2 and mount_path[1] == ":":
        return mount_path + "\\"
    return mount_path


def join_drive(mount_path: str, *parts: str) -> str:
    root = drive_root(mount_path)
    # Windows paths keep their separator whatever the host
    if len(root) >= 2 and root[1] == ":":
        return "\\".join([root.rstrip("\\")] + list(parts))
    return os.path.join(root, *parts)


class LocalFilesystem:
    """Filesystem service backed by the local OS."""

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_reachable(self, mount_path: str) -> bool:
        """Fast check that a drive root still answers."""
        if not mount_path:
            return False
        return os.path.isdir(drive_root(mount_path))

    def stat(self, path: str) -> FileStat:
        try:
            st = os.stat(path)
        except OSError as e:
            raise FilesystemError.from_os_error(path, e) from e
        return FileStat(mod_time=datetime.fromtimestamp(st.st_mtime))

    def list_subdirectories(self, path: str) -> List[DirectoryEntry]:
        entries = []
        try:
            with os.scandir(path) as it:
                for entry in it:
                    if entry.is_dir(follow_symlinks=False):
                        entries.append(DirectoryEntry(name=entry.name, full_path=entry.path))
        except OSError as e:
            raise FilesystemError.from_os_error(path, e) from e
        return entries

    def make_directory(self, path: str) -> None:
        try:
            os.makedirs(path, exist_ok=True)
        except FileExistsError as e:
            # A file is in the way
            raise FilesystemError(ErrorKind.IO_ERROR, path, "path exists and is not a directory") from e
        except OSError as e:
            raise FilesystemError.from_os_error(path, e) from e
