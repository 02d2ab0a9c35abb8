from dataclasses import asdict
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from .models import AssetRecord


class AssetOut(BaseModel):
    id: str
    original_name: str
    storage_name: str
    media_type: str
    size_bytes: int
    width: Optional[int] = None
    height: Optional[int] = None
    checksum: Optional[str] = None
    ingested_at: datetime
    variant_paths: Dict[str, str]

    @classmethod
    def from_record(cls, record: AssetRecord) -> "AssetOut":
        return cls(**asdict(record))


class FileErrorOut(BaseModel):
    filename: str
    error: str
    code: str
    stage: str


class UploadOut(BaseModel):
    message: str
    file: AssetOut


class UploadManyOut(BaseModel):
    message: str
    files: List[AssetOut]
    errors: List[FileErrorOut] = []


class DeleteOut(BaseModel):
    message: str
    partial_success: bool = False
    failed_paths: List[str] = []
