# FastAPI application entrypoint - wires services, mounts routers and static files, runs the sweepers

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from clipconvert import __version__
from clipconvert.api import convert, ping
from clipconvert.core.config import Settings, get_settings
from clipconvert.services.job_registry import JobRegistry
from clipconvert.services.job_service import JobService
from clipconvert.services.retention_sweeper import RetentionSweeper
from clipconvert.services.transcode_service import TranscodeService
from clipconvert.worker import TranscodeWorker

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_sweepers(settings: Settings, job_service: Optional[JobService] = None) -> list:
    return [
        RetentionSweeper(
            settings.video_dir,
            max_age=settings.retention_seconds,
            interval=settings.sweep_interval_seconds,
            name="video-sweeper",
        ),
        RetentionSweeper(
            settings.upload_dir,
            max_age=settings.upload_retention_seconds,
            interval=settings.sweep_interval_seconds,
            name="upload-sweeper",
            # Queued jobs can wait longer than the window; only orphans go
            skip=job_service.holds_input if job_service else None,
        ),
    ]


def create_app(
    settings: Optional[Settings] = None,
    transcoder: Optional[TranscodeService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    transcoder = transcoder or TranscodeService(
        ffmpeg_path=settings.ffmpeg_path,
        timeout=settings.transcode_timeout_seconds,
    )

    registry = JobRegistry(failed_ttl=settings.failed_job_ttl_seconds)
    worker = TranscodeWorker(transcoder, settings.transcode_profile(), max_workers=settings.max_workers)
    job_service = JobService(registry, worker, settings.video_dir, settings.public_video_prefix)
    sweepers = build_sweepers(settings, job_service)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings.upload_dir.mkdir(parents=True, exist_ok=True)
        settings.video_dir.mkdir(parents=True, exist_ok=True)

        tasks = [asyncio.create_task(sweeper.run_forever()) for sweeper in sweepers]
        logger.info(f"ClipConvert {__version__} ready, serving videos from {settings.video_dir}")
        try:
            yield
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            worker.shutdown(wait=False)

    app = FastAPI(title="ClipConvert", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.worker = worker
    app.state.job_service = job_service
    app.state.transcoder = transcoder

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ping.router, prefix="/api", tags=["health"])
    app.include_router(convert.router, prefix="/api", tags=["convert"])

    # Directory is created in lifespan, so skip the existence check at mount time
    app.mount(
        settings.public_video_prefix,
        StaticFiles(directory=settings.video_dir, check_dir=False),
        name="videos",
    )

    @app.get("/", include_in_schema=False)
    def read_root():
        index = settings.public_dir / "index.html"
        if index.is_file():
            return FileResponse(index)
        return {"system": "ClipConvert", "status": "online", "version": __version__}

    @app.get("/health")
    def health_check():
        """
        Service health: job counts, worker load, ffmpeg availability, output disk usage.
        """
        import psutil

        status = "healthy"
        issues = []

        ffmpeg_ok = transcoder.is_available()
        if not ffmpeg_ok:
            status = "degraded"
            issues.append("FFmpeg not found")

        disk_info = None
        try:
            disk = psutil.disk_usage(str(settings.video_dir))
            disk_info = {
                "total": disk.total,
                "used": disk.used,
                "free": disk.free,
                "percent": disk.percent
            }
            if disk.percent > 95:
                status = "degraded"
                issues.append("Low disk space")
        except OSError as e:
            logger.warning(f"Failed to read disk usage for {settings.video_dir}: {e}")

        return {
            "status": status,
            "timestamp": datetime.utcnow().isoformat(),
            "issues": issues if issues else None,
            "jobs": registry.counts(),
            "worker": {"active": worker.active, "max_workers": settings.max_workers},
            "ffmpeg": "available" if ffmpeg_ok else "missing",
            "disk": disk_info,
        }

    return app


app = create_app()


def run():
    """Console entrypoint: serve the app with uvicorn"""
    import uvicorn

    settings = get_settings()
    # Long keep-alive so slow uploads on poor links aren't cut off
    uvicorn.run("clipconvert.main:app", host="0.0.0.0", port=settings.port, timeout_keep_alive=600)


if __name__ == "__main__":
    run()
