"""
Error taxonomy for the ingest and deletion flows.

Every error carries a machine-readable ``code`` and the HTTP status the
router answers with; the message is safe to show to clients.
"""
from typing import List, Optional


def _format_size(nbytes: int) -> str:
    if nbytes >= 1024 * 1024 and nbytes % (1024 * 1024) == 0:
        return f"{nbytes // (1024 * 1024)}MB"
    if nbytes >= 1024 and nbytes % 1024 == 0:
        return f"{nbytes // 1024}KB"
    return f"{nbytes} bytes"


class IngestError(Exception):
    code = "ingest_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(IngestError):
    """Declared media type is outside the allow-set."""
    code = "unsupported_media_type"
    status_code = 415

    def __init__(self, media_type: str, message: Optional[str] = None):
        super().__init__(
            message
            or "Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed."
        )
        self.media_type = media_type


class LimitExceeded(IngestError):
    SIZE = "size"
    COUNT = "count"

    def __init__(self, kind: str, limit: int, message: Optional[str] = None):
        if kind not in (self.SIZE, self.COUNT):
            raise ValueError(f"unknown limit kind: {kind}")
        if message is None:
            if kind == self.SIZE:
                message = f"File too large. Maximum size is {_format_size(limit)}."
            else:
                message = f"Too many files. Maximum is {limit} files."
        super().__init__(message)
        self.kind = kind
        self.limit = limit

    @property
    def code(self) -> str:
        return "file_too_large" if self.kind == self.SIZE else "too_many_files"

    @property
    def status_code(self) -> int:
        return 413 if self.kind == self.SIZE else 400


class StorageIOError(IngestError):
    """Writing the staged upload to disk failed."""
    code = "io_error"


class CommitError(IngestError):
    """Moving the staged file into original storage failed."""
    code = "commit_failed"

    def __init__(self, message: str, temp_path: Optional[str] = None):
        super().__init__(message)
        self.temp_path = temp_path


class DerivationError(IngestError):
    code = "derivation_failed"

    def __init__(self, variant: str, failed: Optional[List[str]] = None, message: Optional[str] = None):
        self.variant = variant
        self.failed = failed or [variant]
        super().__init__(message or f"Error processing the uploaded file ({', '.join(self.failed)} variant failed)")


class CatalogError(IngestError):
    """The catalog backing could not record a fully derived asset."""
    code = "catalog_failed"


class NotFound(IngestError):
    code = "not_found"
    status_code = 404

    def __init__(self, asset_id: str):
        super().__init__("Image not found")
        self.asset_id = asset_id
