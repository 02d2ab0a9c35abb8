from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from ..errors import NotFound
from ..models import InboundFile
from ..schemas import AssetOut, DeleteOut, FileErrorOut, UploadManyOut, UploadOut
from ..services.deletion import DeletionOutcome
from ..services.pipeline import ImageService, IngestResult

router = APIRouter(
    prefix="/api",
    tags=["images"],
    responses={404: {"description": "Not found"}},
)


def get_service(request: Request) -> ImageService:
    return request.app.state.image_service


def _error_out(result: IngestResult) -> FileErrorOut:
    return FileErrorOut(
        filename=result.original_name,
        error=result.error.message,
        code=result.error.code,
        stage=result.stage.value,
    )


# Handlers touching the catalog are async so they run on the event loop,
# never concurrently with each other from worker threads.

@router.post("/upload/single", response_model=UploadOut, status_code=201)
async def upload_single(
    image: Optional[UploadFile] = File(None),
    service: ImageService = Depends(get_service),
):
    if image is None:
        raise HTTPException(status_code=400, detail="No image uploaded")

    record = (await service.ingest(InboundFile.from_upload(image))).unwrap()
    return UploadOut(message="Image uploaded successfully", file=AssetOut.from_record(record))


@router.post("/upload/multiple", response_model=UploadManyOut, status_code=201)
async def upload_multiple(
    images: Optional[List[UploadFile]] = File(None),
    service: ImageService = Depends(get_service),
):
    if not images:
        raise HTTPException(status_code=400, detail="No images uploaded")

    results = await service.ingest_many([InboundFile.from_upload(f) for f in images])
    committed = [AssetOut.from_record(r.record) for r in results if r.ok]
    errors = [_error_out(r) for r in results if not r.ok]

    if not committed:
        first = results[0].error
        return JSONResponse(
            status_code=first.status_code,
            content={**first.to_dict(), "errors": [e.model_dump() for e in errors]},
        )

    return UploadManyOut(
        message=f"{len(committed)} images uploaded successfully",
        files=committed,
        errors=errors,
    )


@router.get("/images", response_model=List[AssetOut])
async def list_images(service: ImageService = Depends(get_service)):
    return [AssetOut.from_record(r) for r in service.list_assets()]


@router.get("/images/{asset_id}", response_model=AssetOut)
async def get_image(asset_id: str, service: ImageService = Depends(get_service)):
    record = service.get_asset(asset_id)
    if record is None:
        raise NotFound(asset_id)
    return AssetOut.from_record(record)


@router.delete("/images/{asset_id}", response_model=DeleteOut)
async def delete_image(asset_id: str, service: ImageService = Depends(get_service)):
    """
    Delete an image record and every file stored for it.
    The record is removed even when some files cannot be.
    """
    report = service.delete_asset(asset_id)
    if report.outcome == DeletionOutcome.NOT_FOUND:
        raise NotFound(asset_id)

    if report.outcome == DeletionOutcome.PARTIAL_SUCCESS:
        return DeleteOut(
            message="Image record deleted but some files could not be removed from disk. "
                    "They will be cleaned up later.",
            partial_success=True,
            failed_paths=report.failed_paths,
        )
    return DeleteOut(message="Image deleted successfully")
