import os
from dataclasses import dataclass, field
from typing import FrozenSet, List

# Only these declared content types are accepted for ingest.
ALLOWED_MEDIA_TYPES: FrozenSet[str] = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
})

# 64KB chunk size for network IO
CHUNK_SIZE = 64 * 1024

DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024
DEFAULT_MAX_FILES = 5


@dataclass(frozen=True)
class Settings:
    upload_dir: str = "uploads"
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_files: int = DEFAULT_MAX_FILES
    allowed_media_types: FrozenSet[str] = ALLOWED_MEDIA_TYPES
    catalog_backend: str = "memory"
    database_url: str = "sqlite:///./catalog.db"
    public_prefix: str = "/images"
    orphan_grace_seconds: int = 3600
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            max_file_size=int(os.getenv("MAX_FILE_SIZE", str(DEFAULT_MAX_FILE_SIZE))),
            max_files=int(os.getenv("MAX_FILES", str(DEFAULT_MAX_FILES))),
            catalog_backend=os.getenv("CATALOG_BACKEND", "memory").lower(),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./catalog.db"),
            public_prefix=os.getenv("PUBLIC_PREFIX", "/images").rstrip("/"),
            orphan_grace_seconds=int(os.getenv("ORPHAN_GRACE_SECONDS", "3600")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
