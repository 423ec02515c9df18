from fastapi import APIRouter

from mediadeck.api.dtos import DataResponse, VersionInfo

router = APIRouter(prefix="/info", tags=["Info"])


@router.get("/version", response_model=DataResponse)
def get_version_endpoint():
    from mediadeck.version import get_version
    return DataResponse(data=VersionInfo(version=get_version()))
