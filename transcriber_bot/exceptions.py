"""Errors raised while turning a Telegram attachment into a transcript."""


class TranscriptionError(Exception):
    """Base class for every failure of the transcription pipeline."""

    def __init__(self, file_id: str, message: str, cause: Exception | None = None):
        self.file_id = file_id
        self.cause = cause
        super().__init__(message)


class FileResolutionError(TranscriptionError):
    """Raised when Telegram cannot resolve a file id to a download path."""

    def __init__(self, file_id: str, cause: Exception | None = None):
        super().__init__(file_id, f"Failed to resolve Telegram file '{file_id}'", cause)


class DownloadError(TranscriptionError):
    """Raised when downloading the file bytes from Telegram fails."""

    def __init__(self, file_id: str, cause: Exception | None = None):
        super().__init__(file_id, f"Failed to download Telegram file '{file_id}'", cause)


class UploadError(TranscriptionError):
    """Raised when the ASR service cannot be reached or the upload breaks off."""

    def __init__(self, file_id: str, cause: Exception | None = None):
        super().__init__(file_id, f"Failed to upload '{file_id}' to the ASR service", cause)


class ServiceError(TranscriptionError):
    """Raised when the ASR service answers with a 4xx/5xx status."""

    def __init__(self, file_id: str, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(file_id, f"ASR service returned HTTP {status} for '{file_id}': {body}")


class DecodeError(TranscriptionError):
    """Raised when the ASR response is not a transcript JSON document."""

    def __init__(self, file_id: str, cause: Exception | None = None):
        super().__init__(file_id, f"Failed to decode ASR response for '{file_id}'", cause)
