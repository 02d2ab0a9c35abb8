import asyncio
import logging
import os
import secrets
from datetime import datetime, timezone
from typing import Dict

from sqlalchemy.exc import SQLAlchemyError

from ..catalog import Catalog
from ..errors import CatalogError, CommitError
from ..models import AssetRecord, StagedFile, VariantKind
from ..storage import StorageLayout
from ..utils.imaging import image_dimensions
from .derivatives import DerivativeEngine

logger = logging.getLogger(__name__)


class IdAllocator:
    """Hands out asset ids; an id is never issued twice in this process."""

    def __init__(self, nbytes: int = 8):
        self.nbytes = nbytes
        # Grows by one id per ingest for the process lifetime; deleted ids
        # stay here so they are never handed out again
        self._issued = set()

    def allocate(self) -> str:
        while True:
            asset_id = secrets.token_hex(self.nbytes)
            if asset_id not in self._issued:
                self._issued.add(asset_id)
                return asset_id


class CommitSequencer:
    """Turns a staged upload into a catalogued asset.

    promote() moves temp -> original, derive() renders the variants and
    publish() appends the record. Nothing is rolled back on failure: the
    original and any finished variants stay on disk under the storage name.
    """

    def __init__(self, layout: StorageLayout, engine: DerivativeEngine,
                 catalog: Catalog, ids: IdAllocator = None):
        self.layout = layout
        self.engine = engine
        self.catalog = catalog
        self.ids = ids or IdAllocator()

    def promote(self, staged: StagedFile) -> str:
        original_path = self.layout.path_for(VariantKind.ORIGINAL, staged.storage_name)
        try:
            os.rename(staged.temp_path, original_path)
        except OSError as e:
            # The temp file stays where it is for reconciliation
            logger.error(f"Commit of {staged.storage_name} failed, staged file left at {staged.temp_path}: {e}")
            raise CommitError("Error processing the uploaded file", temp_path=staged.temp_path) from e
        logger.info(f"Committed {staged.storage_name} to original storage")
        return original_path

    async def derive(self, staged: StagedFile, original_path: str) -> Dict[str, str]:
        return await self.engine.derive_all(original_path, staged.storage_name)

    async def publish(self, staged: StagedFile, original_path: str,
                      derived: Dict[str, str]) -> AssetRecord:
        width, height = await asyncio.to_thread(image_dimensions, original_path)
        record = AssetRecord(
            id=self.ids.allocate(),
            original_name=staged.original_name,
            storage_name=staged.storage_name,
            media_type=staged.media_type,
            size_bytes=staged.size_bytes,
            ingested_at=datetime.now(timezone.utc),
            variant_paths={
                kind: self.layout.public_url(kind, staged.storage_name)
                for kind in [VariantKind.ORIGINAL.value, *derived]
            },
            width=width,
            height=height,
            checksum=staged.checksum,
        )
        try:
            self.catalog.append(record)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Could not catalog {staged.storage_name}, files left on disk: {e}")
            raise CatalogError("Error processing the uploaded file") from e
        logger.info(f"Asset {record.id} ({record.original_name!r}) is now listed")
        return record
