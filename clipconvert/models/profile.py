# Transcode profile - encoding knobs passed verbatim to ffmpeg

from typing import Optional

from pydantic import BaseModel


class TranscodeProfile(BaseModel):
    """Parameter set for one web-playable MP4 encode (defaults: H.264 720p30, AAC 128k)"""

    video_codec: str = "libx264"
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"
    frame_rate: int = 30
    height: int = 720  # Width is derived (-2) to keep aspect ratio and an even dimension
    preset: str = "veryfast"
    crf: int = 23
    video_bitrate: Optional[str] = None
    max_rate: Optional[str] = None
    buffer_size: Optional[str] = None
    pixel_format: str = "yuv420p"
    h264_profile: str = "main"
    level: str = "3.1"
    faststart: bool = True  # moov atom up front so playback starts before the download ends

    model_config = {"frozen": True}
