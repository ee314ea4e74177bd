from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from chartmaker.core.constants import MAX_UPLOAD_BYTES
from chartmaker.core.container import ServiceContainer, get_container
from chartmaker.core.exceptions import BadRequestError

router = APIRouter(prefix="/api", tags=["covers"])


class DownloadCoverRequest(BaseModel):
    url: str = ""
    filename: str = ""
    # "vndb" downloads through the VNDB client, anything else through Bangumi
    source: str = ""


@router.get("/covers")
async def list_covers(services: ServiceContainer = Depends(get_container)) -> list[str]:
    return services.covers.list_files()


@router.post("/download-cover")
async def download_cover(body: DownloadCoverRequest, services: ServiceContainer = Depends(get_container)):
    if body.source == "vndb":
        result = await services.vndb.download_cover(body.url, body.filename)
    else:
        result = await services.bangumi.download_cover(body.url, body.filename)
    return {"ok": True, **result.model_dump()}


@router.post("/upload-cover")
async def upload_cover(file: UploadFile = File(...), services: ServiceContainer = Depends(get_container)):
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise BadRequestError("File too large")
    result = services.covers.save_upload(file.filename or "", data)
    return {"ok": True, **result.model_dump()}
