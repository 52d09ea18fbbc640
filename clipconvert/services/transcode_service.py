# Transcoding service - builds and runs the ffmpeg command for one upload

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from clipconvert.core.errors import TranscodeError
from clipconvert.models.profile import TranscodeProfile

logger = logging.getLogger(__name__)

# How much of ffmpeg's stderr to keep in error messages
STDERR_TAIL_CHARS = 2000


@dataclass
class TranscodeResult:
    output_path: str
    output_size: int


class TranscodeService:
    """Service for video transcoding operations using FFmpeg"""

    def __init__(self, ffmpeg_path: Optional[str] = None, timeout: Optional[float] = 3600):
        self._configured_path = ffmpeg_path
        self._ffmpeg_path: Optional[str] = None
        self.timeout = timeout

    @property
    def ffmpeg_path(self) -> str:
        """Locate the FFmpeg binary on first use"""
        if self._ffmpeg_path is None:
            self._ffmpeg_path = self._find_ffmpeg()
        return self._ffmpeg_path

    def _find_ffmpeg(self) -> str:
        candidates = [self._configured_path] if self._configured_path else []
        candidates += ["ffmpeg", "/usr/bin/ffmpeg", "/usr/local/bin/ffmpeg"]
        for candidate in candidates:
            path = shutil.which(candidate)
            if path:
                return path
        raise TranscodeError("FFmpeg not found. Please install FFmpeg.")

    def is_available(self) -> bool:
        try:
            self.ffmpeg_path
        except TranscodeError:
            return False
        return True

    def build_command(self, input_path: str, output_path: str, profile: TranscodeProfile) -> List[str]:
        """
        Build the FFmpeg argument list for a web-playable MP4

        Args:
            input_path: Uploaded source file
            output_path: Destination .mp4 path
            profile: Encoding parameters, passed through unchanged

        Returns:
            argv list suitable for subprocess
        """
        cmd = [
            self.ffmpeg_path,
            "-y",  # Overwrite output
            "-i", input_path,
            # Video settings
            "-c:v", profile.video_codec,
            "-r", str(profile.frame_rate),
            "-vf", f"scale=-2:{profile.height}",
            "-preset", profile.preset,
            "-crf", str(profile.crf),
        ]
        if profile.video_bitrate:
            cmd += ["-b:v", profile.video_bitrate]
        if profile.max_rate:
            cmd += ["-maxrate", profile.max_rate]
        if profile.buffer_size:
            cmd += ["-bufsize", profile.buffer_size]
        cmd += [
            "-pix_fmt", profile.pixel_format,
            "-profile:v", profile.h264_profile,
            "-level", profile.level,
            # Audio settings
            "-c:a", profile.audio_codec,
            "-b:a", profile.audio_bitrate,
        ]
        if profile.faststart:
            cmd += ["-movflags", "+faststart"]  # Enable progressive playback
        cmd += ["-f", "mp4", output_path]
        return cmd

    def transcode(self, input_path: str, output_path: str, profile: TranscodeProfile) -> TranscodeResult:
        """
        Transcode input_path into output_path. Blocks until ffmpeg exits.

        Raises:
            TranscodeError: ffmpeg missing, timed out, exited non-zero, or left no output
        """
        cmd = self.build_command(input_path, output_path, profile)
        logger.info(f"Starting transcode: {input_path} -> {output_path}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            raise TranscodeError(f"FFmpeg timed out after {self.timeout}s")
        except OSError as e:
            raise TranscodeError(f"Failed to start FFmpeg: {e}")

        if result.returncode != 0:
            stderr = (result.stderr or "")[-STDERR_TAIL_CHARS:]
            raise TranscodeError(f"FFmpeg failed with code {result.returncode}", stderr=stderr)

        if not os.path.isfile(output_path):
            raise TranscodeError(f"FFmpeg exited cleanly but {output_path} was not created")

        return TranscodeResult(output_path=output_path, output_size=os.path.getsize(output_path))
