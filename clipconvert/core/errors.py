# Exception types shared by the services and the API layer


class ClipConvertError(Exception):
    """Base class for all application errors"""


class InvalidUploadError(ClipConvertError):
    """The client did not supply a usable video file (maps to HTTP 400)"""


class TranscodeError(ClipConvertError):
    """ffmpeg could not produce the output file"""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr
