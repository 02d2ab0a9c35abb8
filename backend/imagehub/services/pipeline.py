"""
Ingest and deletion entry points used by the HTTP layer.

Each file runs through Validate -> Stage -> Commit -> Derive -> Catalog.
A failure at any stage ends that file's run with a typed error; files in
the same request do not affect each other. Only the Catalog stage makes
an asset visible.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from ..catalog import Catalog, build_catalog
from ..config import Settings
from ..errors import IngestError
from ..models import AssetRecord, InboundFile
from ..storage import StorageLayout
from .commit import CommitSequencer
from .deletion import DeletionCoordinator, DeletionReport
from .derivatives import DerivativeEngine
from .reconcile import Orphan, find_orphans, sweep_orphans
from .stager import Stager
from .validator import Validator

logger = logging.getLogger(__name__)


class IngestStage(str, Enum):
    VALIDATE = "validate"
    STAGE = "stage"
    COMMIT = "commit"
    DERIVE = "derive"
    CATALOG = "catalog"
    DONE = "done"


@dataclass
class IngestResult:
    """Terminal state of one file's run: a record, or the error and the stage it failed in."""
    original_name: str
    stage: IngestStage
    record: Optional[AssetRecord] = None
    error: Optional[IngestError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> AssetRecord:
        if self.error is not None:
            raise self.error
        return self.record


class ImageService:
    def __init__(self, settings: Settings, catalog: Optional[Catalog] = None,
                 engine: Optional[DerivativeEngine] = None):
        self.settings = settings
        self.layout = StorageLayout(settings.upload_dir, settings.public_prefix)
        self.layout.ensure_dirs()
        self.catalog = catalog if catalog is not None else build_catalog(settings)
        self.validator = Validator(settings)
        self.stager = Stager(self.layout, settings.max_file_size)
        self.engine = engine or DerivativeEngine(self.layout)
        self.sequencer = CommitSequencer(self.layout, self.engine, self.catalog)
        self.deletion = DeletionCoordinator(self.layout, self.catalog)

    async def ingest(self, inbound: InboundFile) -> IngestResult:
        stage = IngestStage.VALIDATE
        try:
            self.validator.check_file(inbound)

            stage = IngestStage.STAGE
            staged = await self.stager.stage(inbound)

            stage = IngestStage.COMMIT
            original_path = self.sequencer.promote(staged)

            stage = IngestStage.DERIVE
            derived = await self.sequencer.derive(staged, original_path)

            stage = IngestStage.CATALOG
            record = await self.sequencer.publish(staged, original_path, derived)
        except IngestError as e:
            logger.warning(f"Ingest of {inbound.original_name!r} failed at {stage.value}: {e.message}")
            return IngestResult(inbound.original_name, stage, error=e)

        return IngestResult(inbound.original_name, IngestStage.DONE, record=record)

    async def ingest_many(self, files: Sequence[InboundFile]) -> List[IngestResult]:
        """Run every file independently; raises LimitExceeded(count) before staging any."""
        self.validator.check_count(files)
        return [await self.ingest(inbound) for inbound in files]

    def list_assets(self) -> List[AssetRecord]:
        return self.catalog.list_all()

    def get_asset(self, asset_id: str) -> Optional[AssetRecord]:
        return self.catalog.find_by_id(asset_id)

    def delete_asset(self, asset_id: str) -> DeletionReport:
        return self.deletion.delete(asset_id)

    def find_orphans(self) -> List[Orphan]:
        return find_orphans(self.layout, self.catalog)

    def sweep_orphans(self, older_than: Optional[float] = None):
        if older_than is None:
            older_than = self.settings.orphan_grace_seconds
        return sweep_orphans(self.layout, self.catalog, older_than)
