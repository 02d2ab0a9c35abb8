import logging
import os
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import Settings
from .errors import IngestError
from .routers.images import get_service, router as images_router
from .services.pipeline import ImageService
from .storage import TEMP_DIR

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

debug_router = APIRouter(prefix="/debug", tags=["debug"])


@debug_router.get("/files")
def list_stored_files(request: Request):
    """
    Debug endpoint to list files in each storage directory and their permissions.
    """
    layout = get_service(request).layout
    directories = dict(layout.dirs)
    directories[TEMP_DIR] = layout.temp_dir

    listing = {}
    for kind, directory in directories.items():
        files = []
        for filename in sorted(os.listdir(directory)):
            stat = os.stat(os.path.join(directory, filename))
            files.append({
                "filename": filename,
                "size": stat.st_size,
                "permissions": oct(stat.st_mode)[-3:],
            })
        listing[kind] = {
            "path": directory,
            "dir_permissions": oct(os.stat(directory).st_mode)[-3:],
            "files": files,
        }
    return {"upload_dir": layout.base_dir, "directories": listing}


@debug_router.get("/orphans")
async def list_orphans(request: Request):
    orphans = get_service(request).find_orphans()
    return {
        "count": len(orphans),
        "orphans": [
            {
                "kind": o.kind,
                "storage_name": o.storage_name,
                "path": o.path,
                "size": o.size,
                "age_seconds": round(o.age_seconds, 1),
            }
            for o in orphans
        ],
    }


@debug_router.delete("/orphans")
async def sweep_orphans(request: Request, older_than: Optional[float] = None):
    """
    Remove orphaned files older than ``older_than`` seconds
    (defaults to ORPHAN_GRACE_SECONDS).
    """
    results = get_service(request).sweep_orphans(older_than)
    return {
        "removed": [r.path for r in results if r.ok],
        "failed": [{"path": r.path, "status": r.status.value, "error": r.error}
                   for r in results if not r.ok],
    }


async def ingest_error_handler(request: Request, exc: IngestError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    service = ImageService(settings)

    app = FastAPI(title="Image Hub API")
    app.state.settings = settings
    app.state.image_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(IngestError, ingest_error_handler)

    app.include_router(images_router)
    app.include_router(debug_router)

    # temp/ is never served
    for kind, directory in service.layout.dirs.items():
        app.mount(
            f"{settings.public_prefix}/{kind}",
            StaticFiles(directory=directory),
            name=f"images-{kind}",
        )

    @app.get("/")
    def read_root():
        return {"message": "Welcome to Image Hub API"}

    logger.info(f"Storing uploads under {service.layout.base_dir} "
                f"(catalog: {settings.catalog_backend})")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
