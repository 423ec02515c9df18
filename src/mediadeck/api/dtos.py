from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from mediadeck.projects.models import ProjectView
from mediadeck.storage.models import PhysicalDrive, SlotStatus


class BaseResponse(BaseModel):
    status: str = "success"
    message: Optional[str] = None


class SuccessResponse(BaseResponse):
    pass


class ErrorResponse(BaseResponse):
    status: str = "error"


class ProjectsInfo(BaseModel):
    projects: ProjectView
    total: int


class ProjectCreated(BaseModel):
    path: str


class VersionInfo(BaseModel):
    version: str


class DataResponse(BaseResponse):
    data: Optional[Union[
        ProjectsInfo,
        ProjectCreated,
        VersionInfo,
        List[PhysicalDrive],
        List[SlotStatus],
        Dict[str, Any]
    ]] = None
