import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pagecraft.config import settings
from pagecraft.routers import projects, files, blocks, versions
from pagecraft.utils.logging_utils import configure_logging
from pagecraft.vfs.errors import VFSError

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="PageCraft", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(projects.router)
app.include_router(files.router)
app.include_router(blocks.router)
app.include_router(versions.router)


@app.exception_handler(VFSError)
async def vfs_error_handler(request: Request, exc: VFSError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/health")
async def health():
    return {"status": "ok"}
