"""API router for project discovery."""

import logging
import traceback

from fastapi import APIRouter, Depends, HTTPException

from mediadeck.api.dtos import DataResponse, ErrorResponse, ProjectCreated, ProjectsInfo, SuccessResponse
from mediadeck.api.state import get_project_manager
from mediadeck.errors import MediaDeckError, ProjectError
from mediadeck.projects.manager import ProjectManager, count_projects
from mediadeck.projects.models import ProjectCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.get(
    "",
    response_model=DataResponse,
    responses={500: {"model": ErrorResponse, "description": "Internal Server Error"}}
)
def list_projects(force: bool = False, manager: ProjectManager = Depends(get_project_manager)):
    """
    Lists projects on every Master and Backup drive, grouped by drive label.
    Drives are only rescanned when their Projects folder changed or `force` is set.
    """
    try:
        view = manager.get_projects(force_rescan=force)
        return DataResponse(data=ProjectsInfo(projects=view, total=count_projects(view)))
    except MediaDeckError as e:
        logger.error(f"Error listing projects: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(
    "/invalidate",
    response_model=SuccessResponse,
)
def invalidate(manager: ProjectManager = Depends(get_project_manager)):
    """Empties the project registry; the next listing performs a full scan."""
    manager.invalidate()
    return SuccessResponse(message="Project registry invalidated")


@router.post(
    "",
    response_model=DataResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"}
    }
)
def create_project(request: ProjectCreate, manager: ProjectManager = Depends(get_project_manager)):
    """Creates a project folder on the Master drive of a storage group."""
    try:
        path = manager.create_project(request.storage_group, request.name)
        return DataResponse(message=f"Project {request.name} created", data=ProjectCreated(path=path))
    except ProjectError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MediaDeckError as e:
        logger.error(f"Error creating project: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=500, detail=str(e))
