import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from mediadeck.api.dtos import ErrorResponse
from mediadeck.api.routers import info, projects, storage
from mediadeck.api.state import get_project_manager
from mediadeck.config.settings import config
from mediadeck.errors import MediaDeckError, StorageConfigError
from mediadeck.projects.refresher import RegistryRefresher
from mediadeck.version import get_version

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    refresher = None
    try:
        refresher = RegistryRefresher(get_project_manager(), config.refresh_interval)
        refresher.start()
    except MediaDeckError as e:
        logger.error(f"Background refresh not started: {e}")
    yield
    if refresher is not None:
        refresher.stop()


app = FastAPI(
    title="MediaDeck API",
    description="Projects across Master and Backup storage drives.",
    version=get_version(),
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(info.router)
app.include_router(projects.router)
app.include_router(storage.router)


@app.exception_handler(StorageConfigError)
async def storage_config_error(request: Request, exc: StorageConfigError):
    logger.error(f"Configuration error: {exc}")
    return JSONResponse(status_code=500, content=ErrorResponse(message=str(exc)).model_dump())
