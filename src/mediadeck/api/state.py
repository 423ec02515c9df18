from typing import Optional

from mediadeck.config.loader import load_config
from mediadeck.projects.manager import ProjectManager, get_manager

_manager: Optional[ProjectManager] = None


def get_project_manager() -> ProjectManager:
    """Loads the configuration on first use and returns the process-wide manager."""
    global _manager
    if _manager is None:
        _manager = get_manager(load_config())
    return _manager
