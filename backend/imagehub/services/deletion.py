"""
Deletion of one asset: every artifact on disk, then the catalog entry.

Disk cleanup is best-effort. Each path gets its own outcome and a failed
unlink never stops the loop; the catalog entry is removed regardless, so an
id whose deletion was requested is never listed again. Files that could not
be removed stay under their storage name for later reconciliation.
"""
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..catalog import Catalog
from ..models import AssetRecord
from ..storage import StorageLayout

logger = logging.getLogger(__name__)


class DeletionOutcome(str, Enum):
    NOT_FOUND = "not_found"
    FULL_SUCCESS = "full_success"
    PARTIAL_SUCCESS = "partial_success"


class PathStatus(str, Enum):
    REMOVED = "removed"
    MISSING = "missing"
    FAILED = "failed"


@dataclass(frozen=True)
class PathResult:
    kind: str
    path: str
    status: PathStatus
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == PathStatus.REMOVED


@dataclass
class DeletionReport:
    asset_id: str
    outcome: DeletionOutcome
    record: Optional[AssetRecord] = None
    paths: List[PathResult] = field(default_factory=list)

    @property
    def failed_paths(self) -> List[str]:
        return [p.path for p in self.paths if not p.ok]


def remove_artifact(kind: str, path: str) -> PathResult:
    if not os.path.exists(path):
        logger.warning(f"File not found on disk: {path}")
        return PathResult(kind, path, PathStatus.MISSING)
    try:
        os.remove(path)
    except OSError as e:
        logger.warning(f"Could not delete file {path}: {e}")
        return PathResult(kind, path, PathStatus.FAILED, str(e))
    logger.info(f"Deleted file: {path}")
    return PathResult(kind, path, PathStatus.REMOVED)


class DeletionCoordinator:
    def __init__(self, layout: StorageLayout, catalog: Catalog):
        self.layout = layout
        self.catalog = catalog

    def delete(self, asset_id: str) -> DeletionReport:
        # 1. Lookup
        record = self.catalog.find_by_id(asset_id)
        if record is None:
            return DeletionReport(asset_id, DeletionOutcome.NOT_FOUND)

        # 2. Disk cleanup
        paths = [
            remove_artifact(kind, self.layout.path_for(kind, record.storage_name))
            for kind in record.variant_paths
        ]

        # 3. Catalog removal, whatever happened on disk
        self.catalog.remove(asset_id)

        # 4. Report
        if all(p.ok for p in paths):
            outcome = DeletionOutcome.FULL_SUCCESS
        else:
            outcome = DeletionOutcome.PARTIAL_SUCCESS
            logger.warning(f"Asset {asset_id} deleted but some files were not removed: "
                           f"{[p.path for p in paths if not p.ok]}")
        return DeletionReport(asset_id, outcome, record, paths)
