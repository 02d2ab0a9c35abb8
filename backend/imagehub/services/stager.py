import hashlib
import logging
import os
import re
import secrets

from ..config import CHUNK_SIZE
from ..errors import LimitExceeded, StorageIOError
from ..models import InboundFile, StagedFile
from ..storage import StorageLayout

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"\.[a-z0-9]{1,10}")


def normalize_extension(filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return ext if _EXTENSION_RE.fullmatch(ext) else ""


def generate_storage_name(original_name: str) -> str:
    """128 random bits plus the lowercased original extension."""
    return secrets.token_hex(16) + normalize_extension(original_name)


def _discard(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.warning(f"Could not remove partial staged file {path}: {e}")


class Stager:
    def __init__(self, layout: StorageLayout, max_file_size: int, chunk_size: int = CHUNK_SIZE):
        self.layout = layout
        self.max_file_size = max_file_size
        self.chunk_size = chunk_size

    async def stage(self, inbound: InboundFile) -> StagedFile:
        """Stream the upload into temp/ under a fresh storage name.

        The SHA256 is computed while writing so the bytes are read once.
        A partial file is removed before any error propagates.
        """
        storage_name = generate_storage_name(inbound.original_name)
        temp_path = self.layout.temp_path(storage_name)
        sha256_hash = hashlib.sha256()
        written = 0

        try:
            with open(temp_path, "wb") as buffer:
                while content := await inbound.source.read(self.chunk_size):
                    written += len(content)
                    if written > self.max_file_size:
                        raise LimitExceeded(LimitExceeded.SIZE, self.max_file_size)
                    sha256_hash.update(content)
                    buffer.write(content)
        except LimitExceeded:
            _discard(temp_path)
            raise
        except OSError as e:
            _discard(temp_path)
            logger.error(f"Failed to stage {inbound.original_name!r}: {e}")
            raise StorageIOError(f"Could not store the uploaded file: {e.strerror or e}") from e
        except BaseException:
            # Client disconnects and cancellation land here
            _discard(temp_path)
            raise

        logger.info(f"Staged {inbound.original_name!r} as {storage_name} ({written} bytes)")
        return StagedFile(
            temp_path=temp_path,
            storage_name=storage_name,
            media_type=inbound.media_type,
            original_name=inbound.original_name,
            size_bytes=written,
            checksum=sha256_hash.hexdigest(),
        )
