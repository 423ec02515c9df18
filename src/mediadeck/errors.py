from enum import Enum


class MediaDeckError(Exception):
    """Base error for mediadeck."""


class StorageConfigError(MediaDeckError):
    """The storage group table is missing or malformed."""


class ProjectError(MediaDeckError):
    """A project request cannot be fulfilled."""


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    UNREACHABLE = "unreachable"
    IO_ERROR = "io_error"


class FilesystemError(MediaDeckError):
    def __init__(self, kind: ErrorKind, path: str, message: str = ""):
        super().__init__(f"{kind.value}: {path}" + (f" ({message})" if message else ""))
        self.kind = kind
        self.path = path

    @classmethod
    def from_os_error(cls, path: str, error: OSError) -> "FilesystemError":
        if isinstance(error, FileNotFoundError):
            kind = ErrorKind.NOT_FOUND
        elif isinstance(error, PermissionError):
            kind = ErrorKind.PERMISSION_DENIED
        else:
            kind = ErrorKind.IO_ERROR
        return cls(kind, path, error.strerror or str(error))


class ScanStage(str, Enum):
    PROBE = "probe"
    CREATE_PROJECTS = "create_projects"
    STAT_PROJECTS = "stat_projects"
    ENSURE_GLOBAL = "ensure_global"
    LIST_PROJECTS = "list_projects"


class ErrorAction(str, Enum):
    SKIP_DRIVE = "skip_drive"
    LOG_AND_CONTINUE = "log_and_continue"
    ABORT_SCAN = "abort_scan"


# What a drive scan does when a filesystem call fails at a given stage.
SCAN_ERROR_POLICY = {
    ScanStage.PROBE: ErrorAction.SKIP_DRIVE,
    ScanStage.CREATE_PROJECTS: ErrorAction.LOG_AND_CONTINUE,
    ScanStage.STAT_PROJECTS: ErrorAction.LOG_AND_CONTINUE,
    ScanStage.ENSURE_GLOBAL: ErrorAction.LOG_AND_CONTINUE,
    ScanStage.LIST_PROJECTS: ErrorAction.SKIP_DRIVE,
}


def action_for(stage: ScanStage) -> ErrorAction:
    return SCAN_ERROR_POLICY.get(stage, ErrorAction.ABORT_SCAN)
