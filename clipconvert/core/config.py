# Application settings and environment variable loading (Pydantic BaseSettings)

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clipconvert.models.profile import TranscodeProfile


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_prefix="CLIPCONVERT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage layout
    upload_dir: Path = Field(default=Path("uploads"))  # Scratch area for raw uploads
    public_dir: Path = Field(default=Path("public"))  # index.html lives here
    video_dir: Path = Field(default=Path("public/videos"))  # Finished MP4s, served statically
    public_video_prefix: str = Field(default="/videos")

    # Housekeeping
    retention_seconds: int = Field(default=86400)  # Age after which output videos are swept
    sweep_interval_seconds: int = Field(default=3600)
    upload_retention_seconds: int = Field(default=3600)  # Stale scratch inputs
    failed_job_ttl_seconds: int = Field(default=3600)

    # Worker / transcoder
    max_workers: int = Field(default=2)
    ffmpeg_path: Optional[str] = Field(default=None)  # Falls back to PATH lookup
    transcode_timeout_seconds: int = Field(default=3600)
    max_upload_mb: int = Field(default=500)

    # Encoding parameters handed verbatim to ffmpeg
    profile_video_codec: str = Field(default="libx264")
    profile_audio_codec: str = Field(default="aac")
    profile_audio_bitrate: str = Field(default="128k")
    profile_frame_rate: int = Field(default=30)
    profile_height: int = Field(default=720)
    profile_preset: str = Field(default="veryfast")
    profile_crf: int = Field(default=23)
    profile_video_bitrate: Optional[str] = Field(default=None)
    profile_max_rate: Optional[str] = Field(default=None)
    profile_buffer_size: Optional[str] = Field(default=None)
    profile_pixel_format: str = Field(default="yuv420p")
    profile_h264_profile: str = Field(default="main")
    profile_level: str = Field(default="3.1")
    profile_faststart: bool = Field(default=True)

    # HTTP
    cors_origins: List[str] = Field(default=["*"])
    port: int = Field(default=3000)

    def transcode_profile(self) -> TranscodeProfile:
        """Collect the profile_* fields into the blob passed to the transcoder"""
        return TranscodeProfile(
            video_codec=self.profile_video_codec,
            audio_codec=self.profile_audio_codec,
            audio_bitrate=self.profile_audio_bitrate,
            frame_rate=self.profile_frame_rate,
            height=self.profile_height,
            preset=self.profile_preset,
            crf=self.profile_crf,
            video_bitrate=self.profile_video_bitrate,
            max_rate=self.profile_max_rate,
            buffer_size=self.profile_buffer_size,
            pixel_format=self.profile_pixel_format,
            h264_profile=self.profile_h264_profile,
            level=self.profile_level,
            faststart=self.profile_faststart,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
