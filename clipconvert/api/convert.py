# Conversion API endpoints - accept an upload, start the transcode, poll job status

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from typing import Optional
import logging

from clipconvert.api.dependencies import get_app_settings, get_job_service
from clipconvert.core.config import Settings
from clipconvert.core.errors import ClipConvertError, InvalidUploadError
from clipconvert.models.job import JobState
from clipconvert.services.file_service import save_upload
from clipconvert.services.job_service import JobService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/convert", status_code=202)
def convert_video(
    video: Optional[UploadFile] = File(None),
    service: JobService = Depends(get_job_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Upload a clip and start converting it to MP4

    - **video**: The video file (multipart field name `video`)

    Returns the job id immediately; poll /api/status/{job_id} for the result.
    """
    if video is None or not video.filename:
        raise HTTPException(status_code=400, detail="No video file was uploaded")

    try:
        input_path = save_upload(
            video.file,
            video.filename,
            settings.upload_dir,
            max_bytes=settings.max_upload_mb * 1024 * 1024,
        )
        job_id = service.submit(input_path)
    except InvalidUploadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ClipConvertError as e:
        logger.error(f"Failed to start conversion for {video.filename}: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "success": True,
        "job_id": job_id,
        "status": JobState.PENDING.value,
        "message": "Upload received, conversion started",
        "status_url": f"/api/status/{job_id}",
    }


@router.get("/status/{job_id}")
def get_job_status(job_id: str, service: JobService = Depends(get_job_service)):
    """
    Get status of a conversion job

    A complete status is delivered once; later reads of the same job return 404.
    """
    status = service.status(job_id)

    if not status.found:
        return JSONResponse(
            {"job_id": job_id, "status": status.status, "error": "Unknown job"},
            status_code=404,
        )

    body = {"job_id": job_id, "status": status.status}
    if status.status == JobState.COMPLETE.value:
        body["success"] = True
        body["url"] = status.output_location
    elif status.status == JobState.FAILED.value:
        body["success"] = False
        body["error"] = status.error_message or "Video conversion failed"

    return JSONResponse(body, headers={"Cache-Control": "no-store"})
