"""API router for storage drives."""

from fastapi import APIRouter, Depends, HTTPException

from mediadeck.api.dtos import DataResponse, ErrorResponse
from mediadeck.api.state import get_project_manager
from mediadeck.errors import MediaDeckError
from mediadeck.projects.manager import ProjectManager

router = APIRouter(prefix="/storage", tags=["Storage"])


@router.get(
    "/drives",
    response_model=DataResponse,
    responses={500: {"model": ErrorResponse, "description": "Internal Server Error"}}
)
def list_drives(manager: ProjectManager = Depends(get_project_manager)):
    """
    List the physical drives currently attached to the host.
    """
    return DataResponse(data=manager.catalog())


@router.get(
    "/status",
    response_model=DataResponse,
    responses={500: {"model": ErrorResponse, "description": "Internal Server Error"}}
)
def get_status(manager: ProjectManager = Depends(get_project_manager)):
    """
    Resolve every configured Master and Backup slot and report its availability.
    """
    try:
        return DataResponse(data=manager.storage_status())
    except MediaDeckError as e:
        raise HTTPException(status_code=500, detail=str(e))
