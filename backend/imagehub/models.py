from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from io import BytesIO
from typing import Dict, Optional

from sqlalchemy import Column, Integer, String, DateTime, JSON

from .database import Base


class VariantKind(str, Enum):
    ORIGINAL = "original"
    THUMBNAIL = "thumbnail"
    MEDIUM = "medium"


@dataclass(frozen=True)
class AssetRecord:
    """One fully ingested image: the original plus every derived variant."""
    id: str
    original_name: str
    storage_name: str
    media_type: str
    size_bytes: int
    ingested_at: datetime
    variant_paths: Dict[str, str]
    width: Optional[int] = None
    height: Optional[int] = None
    checksum: Optional[str] = None


@dataclass(frozen=True)
class StagedFile:
    temp_path: str
    storage_name: str
    media_type: str
    original_name: str
    size_bytes: int
    checksum: str


class BytesSource:
    """Async reader over an in-memory buffer, shaped like UploadFile.read()."""

    def __init__(self, data: bytes):
        self._buffer = BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


@dataclass
class InboundFile:
    """One file handed over by the multipart layer.

    ``source`` is anything with an awaitable ``read(size)``; ``size`` is the
    byte length when the transport knows it up front.
    """
    original_name: str
    media_type: str
    source: object
    size: Optional[int] = None

    @classmethod
    def from_bytes(cls, original_name: str, media_type: str, data: bytes) -> "InboundFile":
        return cls(original_name=original_name, media_type=media_type,
                   source=BytesSource(data), size=len(data))

    @classmethod
    def from_upload(cls, upload) -> "InboundFile":
        return cls(
            original_name=upload.filename or "",
            media_type=upload.content_type or "",
            source=upload,
            size=getattr(upload, "size", None),
        )


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands DateTime columns back without tzinfo; values are stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AssetRow(Base):
    __tablename__ = "assets"

    # Autoincrement key keeps catalog insertion order
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, index=True, nullable=False)
    original_name = Column(String)
    storage_name = Column(String, index=True, nullable=False)
    media_type = Column(String)
    size_bytes = Column(Integer)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    checksum = Column(String, nullable=True)
    variant_paths = Column(JSON)
    ingested_at = Column(DateTime(timezone=True))

    @classmethod
    def from_record(cls, record: AssetRecord) -> "AssetRow":
        return cls(
            id=record.id,
            original_name=record.original_name,
            storage_name=record.storage_name,
            media_type=record.media_type,
            size_bytes=record.size_bytes,
            width=record.width,
            height=record.height,
            checksum=record.checksum,
            variant_paths=dict(record.variant_paths),
            ingested_at=record.ingested_at.astimezone(timezone.utc),
        )

    def to_record(self) -> AssetRecord:
        return AssetRecord(
            id=self.id,
            original_name=self.original_name,
            storage_name=self.storage_name,
            media_type=self.media_type,
            size_bytes=self.size_bytes,
            ingested_at=_as_utc(self.ingested_at),
            variant_paths=dict(self.variant_paths or {}),
            width=self.width,
            height=self.height,
            checksum=self.checksum,
        )
