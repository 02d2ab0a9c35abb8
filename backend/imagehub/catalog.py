"""
Catalog of ingested assets.

The pipeline only talks to the ``Catalog`` interface. ``InMemoryCatalog`` is
the default, process-scoped backing; ``SqlCatalog`` keeps the same contract
on top of SQLAlchemy.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .config import Settings
from .database import make_session_factory
from .models import AssetRecord, AssetRow

logger = logging.getLogger(__name__)


class Catalog(ABC):

    @abstractmethod
    def append(self, record: AssetRecord) -> None:
        """Add a record at the end. Raises ValueError if the id is already present."""

    @abstractmethod
    def find_by_id(self, asset_id: str) -> Optional[AssetRecord]:
        pass

    @abstractmethod
    def remove(self, asset_id: str) -> bool:
        """Remove the record; returns False when no record had that id."""

    @abstractmethod
    def list_all(self) -> List[AssetRecord]:
        """Point-in-time copy of every record, in insertion order."""

    def storage_names(self) -> set:
        return {record.storage_name for record in self.list_all()}


class InMemoryCatalog(Catalog):
    # dicts keep insertion order, and each mutation is a single step

    def __init__(self):
        self._records: Dict[str, AssetRecord] = {}

    def append(self, record: AssetRecord) -> None:
        if record.id in self._records:
            raise ValueError(f"asset id {record.id} is already catalogued")
        self._records[record.id] = record

    def find_by_id(self, asset_id: str) -> Optional[AssetRecord]:
        return self._records.get(asset_id)

    def remove(self, asset_id: str) -> bool:
        return self._records.pop(asset_id, None) is not None

    def list_all(self) -> List[AssetRecord]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)


class SqlCatalog(Catalog):
    """Catalog backed by the ``assets`` table; one transaction per operation."""

    def __init__(self, session_factory):
        self.SessionLocal = session_factory

    def append(self, record: AssetRecord) -> None:
        db = self.SessionLocal()
        try:
            if db.query(AssetRow).filter(AssetRow.id == record.id).first():
                raise ValueError(f"asset id {record.id} is already catalogued")
            db.add(AssetRow.from_record(record))
            db.commit()
        finally:
            db.close()

    def find_by_id(self, asset_id: str) -> Optional[AssetRecord]:
        db = self.SessionLocal()
        try:
            row = db.query(AssetRow).filter(AssetRow.id == asset_id).first()
            return row.to_record() if row else None
        finally:
            db.close()

    def remove(self, asset_id: str) -> bool:
        db = self.SessionLocal()
        try:
            deleted = db.query(AssetRow).filter(AssetRow.id == asset_id).delete()
            db.commit()
            return deleted > 0
        finally:
            db.close()

    def list_all(self) -> List[AssetRecord]:
        db = self.SessionLocal()
        try:
            return [row.to_record() for row in db.query(AssetRow).order_by(AssetRow.seq).all()]
        finally:
            db.close()


def build_catalog(settings: Settings) -> Catalog:
    backend = settings.catalog_backend
    if backend == "memory":
        return InMemoryCatalog()
    if backend == "sql":
        _, session_factory = make_session_factory(settings.database_url)
        logger.info(f"Using SQL catalog at {settings.database_url}")
        return SqlCatalog(session_factory)
    raise ValueError(f"Unknown catalog backend: {backend}")
